"""Session scoped state that is never written to disk."""

from pydantic import BaseModel, Field

from ..github_client.models import GitHubComment, GitHubIssue


class OutstandingIssue(BaseModel):
    """An issue on which a maintainer is waiting for the reporter."""

    issue: GitHubIssue = Field(..., description="Issue as fetched from the tracker")
    last_dev_comment: GitHubComment = Field(
        ..., description="Most recent maintainer comment"
    )

    @property
    def number(self) -> int:
        return self.issue.number


class SessionStore:
    """Holds the outstanding issues and whether the responder is open."""

    def __init__(self) -> None:
        self._outstanding: list[OutstandingIssue] = []
        self.responder_open = False

    @property
    def outstanding_issues(self) -> list[OutstandingIssue]:
        return list(self._outstanding)

    def set_outstanding_issues(self, issues: list[OutstandingIssue]) -> None:
        self._outstanding = list(issues)

    def find_outstanding(self, number: int) -> OutstandingIssue | None:
        for outstanding in self._outstanding:
            if outstanding.number == number:
                return outstanding
        return None

    def open_responder(self, open: bool = True) -> None:
        self.responder_open = open
