"""Models for feedback attachments."""

from enum import Enum

from pydantic import BaseModel, Field


class FileCategory(str, Enum):
    """Where an attached file came from."""

    LOG = "log"
    LOG_COPY = "log_copy"
    STATE = "state"
    ACTIONS = "actions"
    DUMP = "dump"
    USER = "user"

    @property
    def is_temporary(self) -> bool:
        """Generated files that are deleted after a submission attempt."""
        return self in _TEMPORARY_CATEGORIES


_TEMPORARY_CATEGORIES = frozenset(
    {FileCategory.LOG_COPY, FileCategory.STATE, FileCategory.ACTIONS, FileCategory.DUMP}
)


class AttachmentKind(str, Enum):
    """Things the user can ask to have attached to a response."""

    LOG = "log"
    NETLOG = "netlog"
    SESSION = "session"
    SETTINGS = "settings"
    STATE = "state"
    ACTIONS = "actions"


class FeedbackFile(BaseModel):
    """A file attached to the response being composed, keyed by filename."""

    model_config = {"frozen": True}

    filename: str = Field(..., description="Display name, unique per response")
    file_path: str = Field(..., description="Location of the file content")
    type: FileCategory = Field(..., description="Origin of the file")
    size: int = Field(..., ge=0, description="Size in bytes")
