"""Issue cache synchronization."""

from .engine import IssueSyncEngine, RefreshOutcome, RefreshStatus

__all__ = ["IssueSyncEngine", "RefreshOutcome", "RefreshStatus"]
