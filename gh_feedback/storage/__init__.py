"""Issue cache and session state."""

from .cache import (
    CacheStore,
    IssueCacheEntry,
    MilestoneSummary,
    cache_entry,
    visible_issues,
)
from .session import OutstandingIssue, SessionStore

__all__ = [
    "CacheStore",
    "IssueCacheEntry",
    "MilestoneSummary",
    "OutstandingIssue",
    "SessionStore",
    "cache_entry",
    "visible_issues",
]
