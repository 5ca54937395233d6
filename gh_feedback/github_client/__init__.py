"""GitHub client package for API interaction."""

from .client import TrackerClient
from .duplicates import DuplicateResolver
from .models import (
    GitHubComment,
    GitHubIssue,
    GitHubLabel,
    GitHubMilestone,
    GitHubUser,
    IssueState,
)
from .own_issues import GitHubIssueLister, IssueListProvider

__all__ = [
    "TrackerClient",
    "DuplicateResolver",
    "GitHubIssueLister",
    "IssueListProvider",
    "GitHubUser",
    "GitHubLabel",
    "GitHubMilestone",
    "GitHubComment",
    "GitHubIssue",
    "IssueState",
]
