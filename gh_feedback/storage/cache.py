"""Persistent cache of the issues the user reported."""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import BaseModel, Field

from ..github_client.models import GitHubIssue, IssueState

logger = logging.getLogger(__name__)


class MilestoneSummary(BaseModel):
    """Milestone details kept alongside a cached issue."""

    number: int
    title: str
    state: str
    closed_issues: int = 0
    open_issues: int = 0
    due_on: datetime | None = None

    @property
    def completion(self) -> float:
        total = self.closed_issues + self.open_issues
        return self.closed_issues / total if total else 0.0


class IssueCacheEntry(BaseModel):
    """Cached state of one tracked issue, keyed by ``str(number)``."""

    number: int = Field(..., description="Issue number on the tracker")
    title: str = Field(..., description="Issue title")
    body: str = Field("", description="Issue description")
    user: str | None = Field(None, description="Login of the reporter")
    state: IssueState = Field(..., description="open or closed")
    labels: list[str] = Field(default_factory=list, description="Label names")
    created_time: datetime = Field(..., description="Tracker creation time")
    last_updated: datetime = Field(..., description="Tracker side edit time")
    closed_time: datetime | None = Field(None, description="None while open")
    cache_time: datetime | None = Field(
        None, description="When this entry was last fetched"
    )
    comments: int = Field(0, description="Number of comments")
    milestone: MilestoneSummary | None = None
    notified_for_reply: bool = Field(
        False, description="User was told a reply is required"
    )
    last_comment_response: datetime | None = Field(
        None, description="Creation time of the maintainer comment last answered"
    )

    @property
    def key(self) -> str:
        return str(self.number)

    def is_stale(self, now: datetime, update_interval: timedelta) -> bool:
        if self.cache_time is None:
            return True
        return now - self.cache_time > update_interval


def cache_entry(
    issue: GitHubIssue,
    cache_time: datetime,
    notified_for_reply: bool = False,
    last_comment_response: datetime | None = None,
) -> IssueCacheEntry:
    """Build a cache entry from a freshly fetched issue."""
    milestone = None
    if issue.milestone is not None:
        milestone = MilestoneSummary(
            number=issue.milestone.number,
            title=issue.milestone.title,
            state=issue.milestone.state,
            closed_issues=issue.milestone.closed_issues,
            open_issues=issue.milestone.open_issues,
            due_on=issue.milestone.due_on,
        )

    return IssueCacheEntry(
        number=issue.number,
        title=issue.title,
        body=issue.body or "",
        user=issue.user.login if issue.user is not None else None,
        state=issue.state,
        labels=sorted(set(issue.label_names)),
        created_time=issue.created_at,
        last_updated=issue.updated_at,
        closed_time=issue.closed_at,
        cache_time=cache_time,
        comments=issue.comments,
        milestone=milestone,
        notified_for_reply=notified_for_reply,
        last_comment_response=last_comment_response,
    )


def visible_issues(
    entries: dict[str, IssueCacheEntry], now: datetime, hide_after: timedelta
) -> list[IssueCacheEntry]:
    """Entries worth showing, most recently updated first.

    Closed issues disappear once both their closing and their last update are
    older than ``hide_after``.
    """
    visible = [
        entry
        for entry in entries.values()
        if entry.state != IssueState.CLOSED
        or (entry.closed_time is not None and now - entry.closed_time < hide_after)
        or now - entry.last_updated < hide_after
    ]
    return sorted(visible, key=lambda entry: entry.last_updated, reverse=True)


class CacheDocument(BaseModel):
    """On-disk layout of the issue cache."""

    issues: dict[str, IssueCacheEntry] = Field(default_factory=dict)
    issue_list: list[str] = Field(
        default_factory=list, description="Ids from the last successful listing"
    )
    redirects: dict[str, str] = Field(
        default_factory=dict,
        description="Requested id -> key of the issue it resolved to",
    )


class CacheStore:
    """Owns all cache entries; every mutation goes through its methods.

    With a ``path`` the cache is written back to disk after each mutation,
    without one it only lives in memory.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        self._document = CacheDocument()
        if self.path is not None:
            self._document = self._load(self.path)

    @staticmethod
    def _load(path: Path) -> CacheDocument:
        if not path.exists():
            return CacheDocument()
        try:
            with open(path, encoding="utf-8") as f:
                return CacheDocument.model_validate(json.load(f))
        except Exception as e:
            logger.warning(f"Discarding unreadable issue cache {path}: {e}")
            return CacheDocument()

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(self._document.model_dump_json(indent=2))

    @property
    def issues(self) -> dict[str, IssueCacheEntry]:
        """Snapshot of all entries by key."""
        return dict(self._document.issues)

    @property
    def issue_list(self) -> list[str]:
        return list(self._document.issue_list)

    def get(self, key: str) -> IssueCacheEntry | None:
        return self._document.issues.get(key)

    def lookup(self, issue_id: str) -> IssueCacheEntry | None:
        """Entry for a requested id, following a recorded duplicate redirect."""
        key = self._document.redirects.get(issue_id, issue_id)
        return self._document.issues.get(key)

    def entries_for_number(self, number: int) -> dict[str, IssueCacheEntry]:
        return {
            key: entry
            for key, entry in self._document.issues.items()
            if entry.number == number
        }

    def set_update_details(self, key: str, entry: IssueCacheEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous one."""
        if key != entry.key:
            raise ValueError(
                f"Cache key {key!r} does not match issue number {entry.number}"
            )
        self._document.issues[key] = entry
        self.save()

    def record_redirect(self, issue_id: str, resolved_key: str) -> None:
        if issue_id == resolved_key:
            if self._document.redirects.pop(issue_id, None) is not None:
                self.save()
            return
        self._document.redirects[issue_id] = resolved_key
        self.save()

    def update_issue_list(self, issue_ids: list[str]) -> None:
        self._document.issue_list = list(issue_ids)
        self.save()
