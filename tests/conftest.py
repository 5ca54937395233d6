"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from gh_feedback.config import TrackerSettings
from gh_feedback.errors import HttpStatus
from gh_feedback.github_client.client import TrackerClient
from gh_feedback.notifications import NotificationAction
from gh_feedback.storage.cache import CacheStore
from gh_feedback.storage.session import SessionStore


class FakeApi:
    """In-memory stand-in for the GitHub REST endpoints we read."""

    def __init__(self, settings: TrackerSettings):
        self.settings = settings
        self.routes: dict[str, Any] = {}
        self.calls: list[str] = []

    def issue_payload(
        self,
        number: int,
        labels: tuple[str, ...] = (),
        state: str = "open",
        updated_at: str = "2024-01-02T12:00:00Z",
        closed_at: str | None = None,
        milestone: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return {
            "number": number,
            "title": f"Issue {number}",
            "body": f"Body of issue {number}",
            "user": {"login": "reporter", "id": 1},
            "state": state,
            "labels": [{"name": name, "color": "ffffff"} for name in labels],
            "created_at": "2024-01-01T10:00:00Z",
            "updated_at": updated_at,
            "closed_at": closed_at,
            "comments": 2,
            "milestone": milestone,
            "comments_url": f"{self.settings.issue_api_url(number)}/comments",
            "html_url": f"https://github.com/{self.settings.repository}/issues/{number}",
        }

    @staticmethod
    def comment(
        login: str, body: str, created_at: str = "2024-01-02T09:00:00Z"
    ) -> dict[str, Any]:
        return {"user": {"login": login}, "body": body, "created_at": created_at}

    def add_issue(
        self,
        number: int,
        labels: tuple[str, ...] = (),
        comments: list[dict[str, Any]] | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        payload = self.issue_payload(number, labels, **fields)
        self.routes[self.settings.issue_api_url(number)] = payload
        self.routes[payload["comments_url"]] = comments or []
        return payload

    def fail(self, number: int, error: Exception) -> None:
        self.routes[self.settings.issue_api_url(number)] = error

    def issue_fetches(self) -> list[str]:
        return [url for url in self.calls if not url.endswith("/comments")]

    async def get_json(self, url: str) -> Any:
        self.calls.append(url)
        if url not in self.routes:
            raise HttpStatus(404)
        value = self.routes[url]
        if isinstance(value, Exception):
            raise value
        return value


class RecordingNotifier:
    """Notification sink that remembers every call."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []
        self.info_actions: list[NotificationAction | None] = []

    def start_activity(self, message: str, notification_id: str) -> None:
        self.events.append(("activity", message, notification_id))

    def dismiss(self, notification_id: str) -> None:
        self.events.append(("dismiss", notification_id))

    def show_error(
        self, message: str, detail: str | None = None, notification_id: str | None = None
    ) -> None:
        self.events.append(("error", message, detail, notification_id))

    def show_info(self, message: str, action: NotificationAction | None = None) -> None:
        self.events.append(("info", message))
        self.info_actions.append(action)

    def show_success(self, message: str) -> None:
        self.events.append(("success", message))

    def show_dialog(
        self, kind: str, title: str, content: str, actions: list[NotificationAction]
    ) -> None:
        self.events.append(("dialog", kind, title, content))

    def of_kind(self, kind: str) -> list[tuple[Any, ...]]:
        return [event for event in self.events if event[0] == kind]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def settings(tmp_path: Path) -> TrackerSettings:
    """Settings writing into a temporary directory."""
    return TrackerSettings(
        cache_path=tmp_path / "cache" / "issues.json",
        data_dir=tmp_path / "data",
        token="test_token",
    )


@pytest.fixture
def api(settings: TrackerSettings) -> FakeApi:
    return FakeApi(settings)


@pytest.fixture
def client(settings: TrackerSettings, api: FakeApi) -> TrackerClient:
    """TrackerClient whose HTTP layer is served by the fake API."""
    tracker = TrackerClient(settings)
    tracker.get_json = api.get_json  # type: ignore[method-assign]
    return tracker


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def cache(settings: TrackerSettings) -> CacheStore:
    return CacheStore(settings.cache_path)


@pytest.fixture
def session() -> SessionStore:
    return SessionStore()
