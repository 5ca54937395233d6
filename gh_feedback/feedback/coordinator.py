"""Compose and submit a response to a maintainer's feedback request."""

import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from ..config import TrackerSettings
from ..errors import CleanupError, DeliveryError, ValidationError
from ..notifications import NotificationSink
from ..storage.cache import CacheStore
from ..storage.session import OutstandingIssue, SessionStore
from .attachments import (
    AttachmentContext,
    collect_attachment,
    remove_temporary_files,
    stat_file,
)
from .channels import FeedbackChannel
from .models import AttachmentKind, FeedbackFile, FileCategory
from .state import (
    AnonymityChanged,
    Cleared,
    Event,
    FileAttached,
    FileRemoved,
    IssueSelected,
    MessageChanged,
    ResponderState,
    SendFailed,
    SendStarted,
    SendSucceeded,
    may_send,
    message_error,
    reduce,
)
from .sysinfo import system_info

logger = logging.getLogger(__name__)

SUBMIT_NOTIFICATION_ID = "submit-feedback-response"

NOT_LOGGED_IN_WARNING = (
    "You are not logged in. Please include your username in your message to "
    "give us a chance to reply."
)
ANONYMOUS_WARNING = (
    "If you send feedback anonymously we can not give you updates on your "
    "report or enquire for more details."
)


class SubmitStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"


class SubmitOutcome(BaseModel):
    """Result of one submit() call."""

    status: SubmitStatus
    issue_number: int | None = None
    error: str | None = None
    responder_closed: bool = Field(
        False, description="The responder was closed by this submission"
    )
    cleanup_failures: dict[str, str] = Field(default_factory=dict)


class FeedbackSubmissionCoordinator:
    """Drives a single feedback response from composing to submission.

    The composing state is an immutable ``ResponderState``; every change goes
    through ``dispatch``.
    """

    def __init__(
        self,
        cache: CacheStore,
        session: SessionStore,
        channel: FeedbackChannel,
        notifier: NotificationSink,
        settings: TrackerSettings,
        attachment_context: AttachmentContext | None = None,
    ):
        self.cache = cache
        self.session = session
        self.channel = channel
        self.notifier = notifier
        self.settings = settings
        self.attachment_context = attachment_context or AttachmentContext(
            data_dir=settings.data_dir, log_name=settings.app_name
        )
        self.state = ResponderState()

    def dispatch(self, event: Event) -> ResponderState:
        self.state = reduce(self.state, event)
        return self.state

    @property
    def outstanding_issues(self) -> list[OutstandingIssue]:
        return self.session.outstanding_issues

    @property
    def current(self) -> OutstandingIssue | None:
        if self.state.current_issue is None:
            return None
        return self.session.find_outstanding(self.state.current_issue)

    def sync_selection(self) -> None:
        """Select the first outstanding issue when nothing is selected."""
        outstanding = self.outstanding_issues
        if self.state.current_issue is None and outstanding:
            self.dispatch(IssueSelected(outstanding[0].number))

    def select(self, number: int) -> bool:
        """Select an outstanding issue; unknown numbers are ignored."""
        if self.session.find_outstanding(number) is None:
            return False
        self.dispatch(IssueSelected(number))
        return True

    def set_message(self, text: str) -> None:
        self.dispatch(MessageChanged(text))

    def set_anonymous(self, anonymous: bool) -> None:
        self.dispatch(AnonymityChanged(anonymous))

    @property
    def has_credential(self) -> bool:
        return bool(self.settings.token)

    @property
    def anonymous(self) -> bool:
        return self.state.anonymous or not self.has_credential

    @property
    def anonymity_warning(self) -> str | None:
        if not self.has_credential:
            return NOT_LOGGED_IN_WARNING
        if self.state.anonymous:
            return ANONYMOUS_WARNING
        return None

    def validate_message(self) -> ValidationError | None:
        return message_error(self.state.message, self.settings.min_message_length)

    @property
    def may_send(self) -> bool:
        return may_send(self.state, self.settings.min_message_length)

    def attach(self, file: FeedbackFile) -> None:
        """Add a file to the response, replacing one with the same name.

        Raises:
            AttachmentTooLarge: the combined size would exceed the budget
        """
        self.dispatch(FileAttached(file, self.settings.max_attachment_size))

    def attach_kind(self, kind: AttachmentKind) -> list[FeedbackFile]:
        """Generate or look up the files for ``kind`` and attach them."""
        files = collect_attachment(kind, self.attachment_context)
        for index, file in enumerate(files):
            try:
                self.attach(file)
            except Exception:
                remove_temporary_files(files[index:])
                raise
        return files

    def attach_path(self, path: Path | str) -> FeedbackFile | None:
        """Attach an existing file; returns None if it does not exist."""
        file = stat_file(path, FileCategory.USER)
        if file is not None:
            self.attach(file)
        return file

    def remove(self, filename: str) -> None:
        self.dispatch(FileRemoved(filename))

    def discard(self) -> None:
        """Drop the response being composed, deleting generated files."""
        remove_temporary_files(list(self.state.files.values()))
        self.dispatch(Cleared())

    async def submit(self) -> SubmitOutcome:
        """Send the composed response.

        Raises:
            ValidationError: the message is shorter than the minimum length
        """
        if self.state.sending:
            logger.debug("Submission already in flight")
            return SubmitOutcome(status=SubmitStatus.REJECTED)
        error = self.validate_message()
        if error is not None:
            raise error
        if not self.may_send:
            return SubmitOutcome(status=SubmitStatus.REJECTED)

        state = self.dispatch(SendStarted())
        number = state.current_issue
        files = list(state.files.values())
        outcome = SubmitOutcome(status=SubmitStatus.FAILED, issue_number=number)

        self.notifier.start_activity("Submitting feedback", SUBMIT_NOTIFICATION_ID)
        body = (
            system_info(self.settings.app_name, self.settings.app_version)
            + "\n"
            + state.message
        )
        try:
            await self.channel.deliver(
                f"Response to #{number}",
                body,
                [file.file_path for file in files],
                self.anonymous,
                issue_number=number,
            )
        except Exception as e:
            message = e.describe() if isinstance(e, DeliveryError) else str(e)
            logger.warning(f"❌ Failed to send feedback for #{number}: {message}")
            self.dispatch(SendFailed(message))
            self.notifier.show_error(
                "Failed to send feedback", message, SUBMIT_NOTIFICATION_ID
            )
            outcome.error = message
            self.session.open_responder(False)
            outcome.responder_closed = True
        else:
            self.dispatch(SendSucceeded())
            self.notifier.show_success("Feedback response sent successfully")
            self._record_response(number)
            outcome.status = SubmitStatus.SUCCEEDED
            outcome.responder_closed = self._prune_outstanding(number)
            self.notifier.dismiss(SUBMIT_NOTIFICATION_ID)
        finally:
            outcome.cleanup_failures = self._cleanup(files)
            self.dispatch(Cleared())

        return outcome

    def _record_response(self, number: int) -> None:
        outstanding = self.session.find_outstanding(number)
        if outstanding is None:
            logger.warning(f"Issue #{number} is no longer outstanding")
            return

        responded_at = outstanding.last_dev_comment.created_at
        # duplicates can map several cache keys onto the same issue
        for key, entry in self.cache.entries_for_number(number).items():
            self.cache.set_update_details(
                key,
                entry.model_copy(
                    update={
                        "last_comment_response": responded_at,
                        "notified_for_reply": False,
                    }
                ),
            )

    def _prune_outstanding(self, number: int) -> bool:
        remaining = [
            outstanding
            for outstanding in self.session.outstanding_issues
            if outstanding.number != number
        ]
        self.session.set_outstanding_issues(remaining)
        if not remaining:
            self.session.open_responder(False)
            return True
        return False

    def _cleanup(self, files: list[FeedbackFile]) -> dict[str, str]:
        failures = remove_temporary_files(files)
        if failures:
            self.notifier.show_error(
                "An error occurred removing temporary feedback files",
                str(CleanupError(failures)),
                SUBMIT_NOTIFICATION_ID,
            )
        return failures
