"""Feedback response composition and submission."""

from .attachments import AttachmentContext, collect_attachment
from .channels import FeedbackChannel, GitHubCommentChannel, OutboxChannel
from .coordinator import FeedbackSubmissionCoordinator, SubmitOutcome, SubmitStatus
from .models import AttachmentKind, FeedbackFile, FileCategory
from .state import Phase, ResponderState

__all__ = [
    "AttachmentContext",
    "AttachmentKind",
    "FeedbackChannel",
    "FeedbackFile",
    "FeedbackSubmissionCoordinator",
    "FileCategory",
    "GitHubCommentChannel",
    "OutboxChannel",
    "Phase",
    "ResponderState",
    "SubmitOutcome",
    "SubmitStatus",
    "collect_attachment",
]
