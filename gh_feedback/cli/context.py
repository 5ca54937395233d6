"""Wiring of the engine components for CLI commands."""

from dataclasses import dataclass
from typing import Any

from rich.console import Console

from ..config import TrackerSettings
from ..feedback.attachments import AttachmentContext
from ..github_client.client import TrackerClient
from ..github_client.own_issues import (
    GitHubIssueLister,
    IssueListProvider,
    StaticIssueList,
)
from ..notifications import ConsoleNotifier
from ..storage.cache import CacheStore
from ..storage.session import SessionStore
from ..sync.engine import IssueSyncEngine


@dataclass
class AppContext:
    settings: TrackerSettings
    cache: CacheStore
    session: SessionStore
    notifier: ConsoleNotifier
    engine: IssueSyncEngine

    def state_slice(self, key: str) -> Any:
        """JSON-friendly view of application state for attachment dumps."""
        if key == "persistent":
            return {
                number: entry.model_dump(mode="json")
                for number, entry in self.cache.issues.items()
            }
        if key == "settings":
            return self.settings.model_dump(mode="json", exclude={"token"})
        if key == "session":
            return {
                "outstanding_issues": [
                    outstanding.model_dump(mode="json")
                    for outstanding in self.session.outstanding_issues
                ],
                "responder_open": self.session.responder_open,
            }
        return {}

    def attachment_context(self, history: list[Any]) -> AttachmentContext:
        return AttachmentContext(
            data_dir=self.settings.data_dir,
            log_name=self.settings.app_name,
            state_provider=self.state_slice,
            action_history=lambda: history,
        )


def build_context(
    settings: TrackerSettings,
    console: Console,
    issue_numbers: list[int] | None = None,
) -> AppContext:
    """Create the stores, client and engine for one CLI invocation.

    Args:
        settings: Loaded configuration
        console: Console used for notifications
        issue_numbers: Track exactly these issues instead of listing the
            issues reported by the token owner
    """
    issue_list: IssueListProvider
    if issue_numbers:
        issue_list = StaticIssueList(issue_numbers)
    else:
        issue_list = GitHubIssueLister(settings)

    cache = CacheStore(settings.cache_path)
    session = SessionStore()
    notifier = ConsoleNotifier(console)
    engine = IssueSyncEngine(
        client=TrackerClient(settings),
        issue_list=issue_list,
        cache=cache,
        session=session,
        notifier=notifier,
        settings=settings,
    )
    return AppContext(
        settings=settings,
        cache=cache,
        session=session,
        notifier=notifier,
        engine=engine,
    )
