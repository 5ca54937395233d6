"""Sources for the list of issues reported by the current user."""

import asyncio
import logging
from typing import Protocol

from github import Github
from github.GithubException import UnknownObjectException
from github.Repository import Repository

from ..config import TrackerSettings

logger = logging.getLogger(__name__)


class IssueListProvider(Protocol):
    """Supplies the numbers of the issues the user wants to track."""

    async def list_own_issue_ids(self) -> list[int]: ...


class GitHubIssueLister:
    """Lists issues in the tracked repository created by the token owner."""

    def __init__(self, settings: TrackerSettings, github: Github | None = None):
        """Initialize the lister.

        Args:
            settings: Tracker configuration; ``settings.token`` is required
            github: Preconfigured PyGithub instance, mostly for tests
        """
        if github is None:
            if not settings.token:
                raise ValueError(
                    "GitHub token is required. Set GITHUB_TOKEN environment variable."
                )
            github = Github(settings.token)
        self.settings = settings
        self.github = github

    def get_repository(self) -> Repository:
        """Get repository object."""
        try:
            return self.github.get_repo(self.settings.repository)
        except UnknownObjectException:
            raise ValueError(f"Repository {self.settings.repository} not found")

    def _list_issue_numbers(self) -> list[int]:
        login = self.github.get_user().login
        repository = self.get_repository()
        numbers = [
            issue.number
            for issue in repository.get_issues(state="all", creator=login)
            if issue.pull_request is None
        ]
        logger.debug(f"Found {len(numbers)} issues reported by {login}")
        return numbers

    async def list_own_issue_ids(self) -> list[int]:
        # PyGithub is synchronous, keep the event loop free while it pages
        return await asyncio.to_thread(self._list_issue_numbers)


class StaticIssueList:
    """Fixed list of issue numbers, e.g. passed on the command line."""

    def __init__(self, numbers: list[int]):
        self.numbers = list(numbers)

    async def list_own_issue_ids(self) -> list[int]:
        return list(self.numbers)
