"""Immutable state of the feedback responder and its transitions.

Every user or system action is an event; ``reduce`` returns the state that
follows from applying it. States are never mutated in place.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from ..errors import AttachmentTooLarge, ValidationError
from .models import FeedbackFile


class Phase(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ResponderState(BaseModel):
    """Snapshot of the response being composed."""

    model_config = {"frozen": True}

    phase: Phase = Phase.IDLE
    current_issue: int | None = Field(None, description="Selected issue number")
    message: str = ""
    files: dict[str, FeedbackFile] = Field(default_factory=dict)
    anonymous: bool = Field(False, description="User chose to stay anonymous")
    error: str | None = Field(None, description="Failure of the last attempt")

    @property
    def attached_size(self) -> int:
        return sum(file.size for file in self.files.values())

    @property
    def sending(self) -> bool:
        return self.phase == Phase.SENDING


@dataclass(frozen=True)
class IssueSelected:
    number: int


@dataclass(frozen=True)
class MessageChanged:
    text: str


@dataclass(frozen=True)
class AnonymityChanged:
    anonymous: bool


@dataclass(frozen=True)
class FileAttached:
    file: FeedbackFile
    limit: int


@dataclass(frozen=True)
class FileRemoved:
    filename: str


@dataclass(frozen=True)
class SendStarted:
    pass


@dataclass(frozen=True)
class SendSucceeded:
    pass


@dataclass(frozen=True)
class SendFailed:
    error: str


@dataclass(frozen=True)
class Cleared:
    pass


Event = (
    IssueSelected
    | MessageChanged
    | AnonymityChanged
    | FileAttached
    | FileRemoved
    | SendStarted
    | SendSucceeded
    | SendFailed
    | Cleared
)


def message_error(message: str, min_length: int) -> ValidationError | None:
    """Validation failure for a message; an empty message is not an error."""
    if 0 < len(message) < min_length:
        return ValidationError(min_length)
    return None


def may_send(state: ResponderState, min_length: int) -> bool:
    return (
        not state.sending
        and state.current_issue is not None
        and len(state.message) > 0
        and message_error(state.message, min_length) is None
    )


def _composing(state: ResponderState, **changes: object) -> ResponderState:
    if state.sending:
        return state
    return state.model_copy(update={"phase": Phase.COMPOSING, **changes})


def _select(state: ResponderState, event: IssueSelected) -> ResponderState:
    return _composing(state, current_issue=event.number)


def _message(state: ResponderState, event: MessageChanged) -> ResponderState:
    return _composing(state, message=event.text)


def _anonymity(state: ResponderState, event: AnonymityChanged) -> ResponderState:
    return _composing(state, anonymous=event.anonymous)


def _attach(state: ResponderState, event: FileAttached) -> ResponderState:
    total = state.attached_size + event.file.size
    if total > event.limit:
        raise AttachmentTooLarge(total, event.limit)
    return _composing(state, files={**state.files, event.file.filename: event.file})


def _remove(state: ResponderState, event: FileRemoved) -> ResponderState:
    if event.filename not in state.files:
        return state
    files = {name: file for name, file in state.files.items() if name != event.filename}
    return _composing(state, files=files)


def _start(state: ResponderState, event: SendStarted) -> ResponderState:
    return state.model_copy(update={"phase": Phase.SENDING, "error": None})


def _succeeded(state: ResponderState, event: SendSucceeded) -> ResponderState:
    return state.model_copy(update={"phase": Phase.SUCCEEDED})


def _failed(state: ResponderState, event: SendFailed) -> ResponderState:
    return state.model_copy(update={"phase": Phase.FAILED, "error": event.error})


def _clear(state: ResponderState, event: Cleared) -> ResponderState:
    return ResponderState(anonymous=state.anonymous, error=state.error)


_TRANSITIONS: dict[type, Callable[[ResponderState, object], ResponderState]] = {
    IssueSelected: _select,
    MessageChanged: _message,
    AnonymityChanged: _anonymity,
    FileAttached: _attach,
    FileRemoved: _remove,
    SendStarted: _start,
    SendSucceeded: _succeeded,
    SendFailed: _failed,
    Cleared: _clear,
}


def reduce(state: ResponderState, event: Event) -> ResponderState:
    """Apply ``event`` to ``state``.

    Raises:
        AttachmentTooLarge: a FileAttached event would exceed its limit; the
            state is left as it was
    """
    return _TRANSITIONS[type(event)](state, event)
