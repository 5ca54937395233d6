"""Refresh the issue cache and detect issues awaiting the reporter."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from ..config import TrackerSettings
from ..errors import ListUnavailable, TrackerError
from ..github_client.client import TrackerClient
from ..github_client.models import GitHubIssue
from ..github_client.own_issues import IssueListProvider
from ..notifications import NotificationAction, NotificationSink
from ..storage.cache import CacheStore, cache_entry
from ..storage.session import OutstandingIssue, SessionStore

logger = logging.getLogger(__name__)

FEEDBACK_NOTICE = "You've received feedback response"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshStatus(str, Enum):
    """How a refresh call ended."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    LIST_UNAVAILABLE = "list_unavailable"


class RefreshOutcome(BaseModel):
    """Summary of one refresh call."""

    status: RefreshStatus
    requested: list[str] = Field(default_factory=list, description="Ids listed")
    updated: list[str] = Field(
        default_factory=list, description="Cache keys written, in fetch order"
    )
    failed: dict[str, str] = Field(
        default_factory=dict, description="Id -> error for ids that failed"
    )
    notified_urls: list[str] = Field(default_factory=list)
    outstanding: list[int] = Field(
        default_factory=list, description="Issues found awaiting a response"
    )
    error: str | None = None


class IssueSyncEngine:
    """Keeps the issue cache fresh.

    Issues are fetched one after the other to stay well below the tracker's
    rate limits. Only one refresh runs at a time and refreshes are throttled
    by ``settings.refresh_cooldown``.
    """

    def __init__(
        self,
        client: TrackerClient,
        issue_list: IssueListProvider,
        cache: CacheStore,
        session: SessionStore,
        notifier: NotificationSink,
        settings: TrackerSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.issue_list = issue_list
        self.cache = cache
        self.session = session
        self.notifier = notifier
        self.settings = settings
        self.clock = clock
        self._last_refresh: datetime | None = None
        self._in_flight = False

    @property
    def refreshing(self) -> bool:
        return self._in_flight

    def _cooling_down(self, now: datetime) -> bool:
        if self._last_refresh is None:
            return False
        return now - self._last_refresh < self.settings.refresh_cooldown

    def is_reply_required(self, issue: GitHubIssue) -> bool:
        return any(
            label in self.settings.feedback_labels for label in issue.label_names
        )

    async def _list_issue_ids(self) -> list[str]:
        try:
            numbers = await self.issue_list.list_own_issue_ids()
        except Exception as e:
            raise ListUnavailable(f"Failed to get list of issues: {e}") from e
        return [str(number) for number in numbers]

    async def refresh(self, force: bool = False) -> RefreshOutcome:
        """Fetch stale issues and update the cache.

        Args:
            force: Re-fetch every listed issue regardless of its age. The
                cooldown applies even when forced.

        Returns:
            RefreshOutcome describing what happened
        """
        now = self.clock()
        if self._in_flight or self._cooling_down(now):
            logger.debug(f"Refresh skipped, last refresh at {self._last_refresh}")
            return RefreshOutcome(status=RefreshStatus.SKIPPED)

        self._in_flight = True
        self._last_refresh = now
        try:
            return await self._refresh(force)
        finally:
            self._in_flight = False

    async def _refresh(self, force: bool) -> RefreshOutcome:
        try:
            issue_ids = await self._list_issue_ids()
        except ListUnavailable as e:
            # usually a network hiccup, the next refresh will try again
            logger.warning(f"⚠️ {e}")
            return RefreshOutcome(status=RefreshStatus.LIST_UNAVAILABLE, error=str(e))

        self.cache.update_issue_list(issue_ids)
        outcome = RefreshOutcome(status=RefreshStatus.COMPLETED, requested=issue_ids)
        now = self.clock()
        found: dict[int, OutstandingIssue] = {}
        processed: set[int] = set()

        for issue_id in issue_ids:
            previous = self.cache.lookup(issue_id)
            if not (
                force
                or previous is None
                or previous.is_stale(now, self.settings.update_interval)
            ):
                continue

            try:
                await self._update_issue(issue_id, outcome, found, processed)
            except TrackerError as e:
                logger.warning(f"Failed to retrieve issue #{issue_id}: {e}")
                outcome.failed[issue_id] = str(e)

        if processed:
            kept = [
                outstanding
                for outstanding in self.session.outstanding_issues
                if outstanding.number not in processed
            ]
            self.session.set_outstanding_issues(kept + list(found.values()))
        outcome.outstanding = [
            outstanding.number for outstanding in self.session.outstanding_issues
        ]

        if outcome.notified_urls:
            self._notify_feedback_required(outcome.notified_urls)

        logger.info(
            f"Refreshed {len(outcome.updated)} of {len(issue_ids)} issues "
            f"({len(outcome.failed)} failed)"
        )
        return outcome

    async def _update_issue(
        self,
        issue_id: str,
        outcome: RefreshOutcome,
        found: dict[int, OutstandingIssue],
        processed: set[int],
    ) -> None:
        previous = self.cache.lookup(issue_id)
        issue = await self.client.fetch_issue(issue_id)
        key = str(issue.number)

        resolved_previous = self.cache.get(key) or previous
        last_response = (
            resolved_previous.last_comment_response if resolved_previous else None
        )

        has_been_notified = previous.notified_for_reply if previous else False
        reply_required = self.is_reply_required(issue)
        # a failed comment fetch leaves cache and outstanding issues untouched
        comment = await self.client.last_dev_comment(issue) if reply_required else None

        notification_needed = reply_required and not has_been_notified
        if notification_needed:
            outcome.notified_urls.append(self.settings.issue_html_url(key))

        self.cache.set_update_details(
            key,
            cache_entry(
                issue,
                cache_time=self.clock(),
                notified_for_reply=has_been_notified or notification_needed,
                last_comment_response=last_response,
            ),
        )
        self.cache.record_redirect(issue_id, key)
        outcome.updated.append(key)
        processed.add(issue.number)

        if comment is not None and (
            last_response is None or comment.created_at > last_response
        ):
            found[issue.number] = OutstandingIssue(issue=issue, last_dev_comment=comment)

    def _notify_feedback_required(self, urls: list[str]) -> None:
        links = "\n".join(urls)
        content = (
            "The developers require your assistance with a bug/suggestion which "
            "you have submitted. To view our response please open any of the "
            f"links below:\n\n{links}"
        )

        def show_dialog() -> None:
            self.notifier.show_dialog(
                "info", FEEDBACK_NOTICE, content, [NotificationAction("Close")]
            )

        self.notifier.show_info(FEEDBACK_NOTICE, NotificationAction("More", show_dialog))
