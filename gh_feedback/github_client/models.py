"""Pydantic models for GitHub data structures.

These models map directly to GitHub's REST API v3 response structures and
ignore any field we do not consume.
API Reference: https://docs.github.com/en/rest/issues
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class IssueState(str, Enum):
    """State of an issue on the tracker."""

    OPEN = "open"
    CLOSED = "closed"


class GitHubUser(BaseModel):
    """GitHub user model representing a user account.

    Maps to GitHub REST API User object.
    API Reference: https://docs.github.com/en/rest/users/users
    """

    login: str = Field(..., description="GitHub username/login (string)")


class GitHubLabel(BaseModel):
    """GitHub label model representing repository labels.

    Maps to GitHub REST API Label object.
    API Reference: https://docs.github.com/en/rest/issues/labels
    """

    name: str = Field(..., description="Name of the label (string)")


class GitHubMilestone(BaseModel):
    """GitHub milestone model.

    API Reference: https://docs.github.com/en/rest/issues/milestones
    """

    number: int = Field(..., description="Milestone number within the repository")
    title: str = Field(..., description="Milestone title")
    state: str = Field(..., description="Current state: 'open', 'closed'")
    closed_issues: int = Field(0, description="Number of closed issues")
    open_issues: int = Field(0, description="Number of open issues")
    due_on: datetime | None = Field(None, description="Due date, if planned")


class GitHubComment(BaseModel):
    """GitHub comment model representing issue comments.

    Maps to GitHub REST API Issue Comment object.
    API Reference: https://docs.github.com/en/rest/issues/comments
    """

    user: GitHubUser = Field(..., description="Comment author details")
    body: str = Field("", description="Text content of the comment (string)")
    created_at: datetime = Field(
        ..., description="Timestamp of comment creation (ISO 8601)"
    )


class GitHubIssue(BaseModel):
    """GitHub issue model representing repository issues.

    Maps to GitHub REST API Issue object.
    API Reference: https://docs.github.com/en/rest/issues/issues
    """

    number: int = Field(..., description="Issue number within the repository (integer)")
    title: str = Field(..., description="Short description/title of the issue (string)")
    body: str | None = Field(
        None, description="Detailed description of the issue in markdown (string)"
    )
    user: GitHubUser | None = Field(None, description="Creator/author of the issue")
    state: IssueState = Field(..., description="Current state: 'open', 'closed'")
    labels: list[GitHubLabel] = Field(
        default_factory=list, description="Array of labels attached to the issue"
    )
    created_at: datetime = Field(
        ..., description="Timestamp of issue creation (ISO 8601)"
    )
    updated_at: datetime = Field(
        ..., description="Timestamp of last issue update (ISO 8601)"
    )
    closed_at: datetime | None = Field(
        None, description="Timestamp the issue was closed, None while open"
    )
    comments: int = Field(0, description="Number of comments on the issue")
    milestone: GitHubMilestone | None = Field(
        None, description="Milestone the issue is scheduled for"
    )
    comments_url: str = Field(..., description="API URL listing the issue comments")
    html_url: str = Field(..., description="Web URL of the issue")

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    def has_label(self, name: str) -> bool:
        return name in self.label_names
