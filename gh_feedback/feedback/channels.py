"""Channels that deliver a composed feedback report."""

import asyncio
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from github import Github
from github.GithubException import GithubException

from ..config import TrackerSettings
from ..errors import DeliveryError
from .sysinfo import format_size

logger = logging.getLogger(__name__)


class FeedbackChannel(Protocol):
    """Delivers a report; raises DeliveryError when that fails."""

    async def deliver(
        self,
        title: str,
        body: str,
        attachment_paths: list[str],
        anonymous: bool,
        issue_number: int | None = None,
    ) -> None: ...


def _attachment_listing(attachment_paths: list[str]) -> str:
    lines = []
    for path in attachment_paths:
        file = Path(path)
        size = format_size(file.stat().st_size) if file.exists() else "missing"
        lines.append(f"- `{file.name}` ({size})")
    return "\n".join(lines)


class GitHubCommentChannel:
    """Posts the report as a comment on the issue it responds to.

    The REST API cannot upload files, so attachments are listed by name only.
    """

    def __init__(self, settings: TrackerSettings, github: Github | None = None):
        self.settings = settings
        if github is None and settings.token:
            github = Github(settings.token)
        self.github = github

    def _post(self, issue_number: int, text: str) -> None:
        if self.github is None:
            raise DeliveryError("GitHub token is required", invalid_parameter=True)
        try:
            repository = self.github.get_repo(self.settings.repository)
            repository.get_issue(issue_number).create_comment(text)
        except GithubException as e:
            body = json.dumps(e.data) if e.data else None
            raise DeliveryError(f"GitHub API error {e.status}", body=body) from e

    async def deliver(
        self,
        title: str,
        body: str,
        attachment_paths: list[str],
        anonymous: bool,
        issue_number: int | None = None,
    ) -> None:
        if anonymous:
            raise DeliveryError(
                "Anonymous feedback cannot be posted as a comment",
                invalid_parameter=True,
            )
        if issue_number is None:
            raise DeliveryError("No issue to respond to", invalid_parameter=True)

        text = f"**{title}**\n\n{body}"
        if attachment_paths:
            text += "\n\nAttached files:\n" + _attachment_listing(attachment_paths)

        await asyncio.to_thread(self._post, issue_number, text)
        logger.info(f"✅ Posted response to #{issue_number}")


class OutboxChannel:
    """Writes each report into its own directory below ``outbox_dir``.

    Useful when the report is to be sent later or by other means.
    """

    def __init__(self, outbox_dir: Path | str):
        self.outbox_dir = Path(outbox_dir)

    def _report_dir(self, issue_number: int | None) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        name = f"response_{issue_number}_{stamp}" if issue_number else f"report_{stamp}"
        return self.outbox_dir / name

    async def deliver(
        self,
        title: str,
        body: str,
        attachment_paths: list[str],
        anonymous: bool,
        issue_number: int | None = None,
    ) -> None:
        report_dir = self._report_dir(issue_number)
        try:
            report_dir.mkdir(parents=True, exist_ok=False)
            copied = []
            for path in attachment_paths:
                target = report_dir / Path(path).name
                shutil.copyfile(path, target)
                copied.append(target.name)

            with open(report_dir / "report.json", "w", encoding="utf-8") as f:
                json.dump(
                    {
                        "title": title,
                        "body": body,
                        "anonymous": anonymous,
                        "issue_number": issue_number,
                        "attachments": copied,
                    },
                    f,
                    indent=2,
                    ensure_ascii=False,
                )
        except OSError as e:
            raise DeliveryError(f"Failed to write report to {report_dir}: {e}") from e

        logger.info(f"✅ Wrote report to {report_dir}")
