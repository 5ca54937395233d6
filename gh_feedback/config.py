"""Configuration for issue tracking and feedback submission."""

import os
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field

from . import __version__

DEFAULT_REPOSITORY = "Nexus-Mods/Vortex"
DEFAULT_MAINTAINERS = ("TanninOne", "IDCs")
FEEDBACK_REQUIRED_LABELS = ("help wanted", "waiting for reply")
DUPLICATE_LABEL = "duplicate"


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class TrackerSettings(BaseModel):
    """Named configuration values with their defaults.

    Every window and budget is a field so tests can shrink them.
    """

    repository: str = Field(
        DEFAULT_REPOSITORY, description="Tracked repository as 'owner/name'"
    )
    api_url: str = Field("https://api.github.com", description="REST API root")
    web_url: str = Field("https://www.github.com", description="Web UI root")
    user_agent: str = Field("gh-feedback", description="Client identifier header")
    token: str | None = Field(None, description="GitHub token, None means anonymous")

    maintainers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MAINTAINERS),
        description="Logins whose comments count as maintainer responses",
    )
    feedback_labels: list[str] = Field(
        default_factory=lambda: list(FEEDBACK_REQUIRED_LABELS),
        description="Labels signalling the maintainers wait for the reporter",
    )

    refresh_cooldown: timedelta = Field(
        timedelta(seconds=60), description="Minimum time between two refreshes"
    )
    update_interval: timedelta = Field(
        timedelta(hours=24), description="Age after which a cache entry is stale"
    )
    hide_after: timedelta = Field(
        timedelta(days=30), description="Hide closed issues without recent updates"
    )
    max_duplicate_depth: int = Field(
        10, description="Maximum number of duplicate redirects to follow"
    )
    request_timeout: float = Field(30.0, description="HTTP timeout in seconds")

    max_attachment_size: int = Field(
        20 * 1024 * 1024, description="Combined attachment budget in bytes"
    )
    min_message_length: int = Field(
        10, description="Minimum length of a non-empty feedback message"
    )

    cache_path: Path = Field(
        Path("data/issue_cache.json"), description="Persisted issue cache"
    )
    data_dir: Path = Field(
        Path("data"), description="Directory holding application log files"
    )
    app_name: str = Field("gh-feedback", description="Reported application name")
    app_version: str = Field(__version__, description="Reported application version")

    @classmethod
    def from_env(cls) -> "TrackerSettings":
        """Build settings from GH_FEEDBACK_* environment variables."""
        values: dict[str, object] = {}
        simple = {
            "GH_FEEDBACK_REPOSITORY": "repository",
            "GH_FEEDBACK_API_URL": "api_url",
            "GH_FEEDBACK_CACHE_PATH": "cache_path",
            "GH_FEEDBACK_DATA_DIR": "data_dir",
        }
        for env_name, field in simple.items():
            value = os.getenv(env_name)
            if value:
                values[field] = value

        token = os.getenv("GITHUB_TOKEN")
        if token:
            values["token"] = token

        maintainers = os.getenv("GH_FEEDBACK_MAINTAINERS")
        if maintainers:
            values["maintainers"] = _split_list(maintainers)

        return cls.model_validate(values)

    @property
    def issues_api_url(self) -> str:
        return f"{self.api_url}/repos/{self.repository}/issues"

    def issue_api_url(self, number: int | str) -> str:
        return f"{self.issues_api_url}/{number}"

    def issue_html_url(self, number: int | str) -> str:
        return f"{self.web_url}/{self.repository}/issues/{number}"

    def milestone_html_url(self, number: int | str) -> str:
        return f"{self.web_url}/{self.repository}/milestone/{number}"
