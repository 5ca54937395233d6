"""Read-only GitHub REST client using httpx."""

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError as ModelValidationError

from ..config import TrackerSettings
from ..errors import HttpStatus, MalformedBody, NetworkError, UnexpectedContentType
from .duplicates import DuplicateResolver
from .models import GitHubComment, GitHubIssue

logger = logging.getLogger(__name__)


class TrackerClient:
    """Performs GET requests against the tracker and parses the JSON replies.

    No retries happen at this layer; callers decide what to do with a failed
    request.
    """

    def __init__(self, settings: TrackerSettings):
        """Initialize tracker client.

        Args:
            settings: Tracker configuration (repository, token, timeouts)
        """
        self.settings = settings
        self.headers = {
            "User-Agent": settings.user_agent,
            "Accept": "application/vnd.github+json",
        }
        if settings.token:
            self.headers["Authorization"] = f"Bearer {settings.token}"
        self.resolver = DuplicateResolver(self, settings.max_duplicate_depth)

    async def get_json(self, url: str) -> Any:
        """Fetch a URL and return the decoded JSON body.

        Raises:
            HttpStatus: status code other than 200
            UnexpectedContentType: response is not declared as JSON
            MalformedBody: body could not be decoded
            NetworkError: transport level or other request failure
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout
            ) as client:
                response = await client.get(url, headers=self.headers)
        except httpx.DecodingError as e:
            raise MalformedBody(f"Could not decode response from {url}: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            logger.debug(f"GET {url} returned {response.status_code}")
            raise HttpStatus(response.status_code)

        content_type = response.headers.get("content-type")
        if not content_type or not content_type.startswith("application/json"):
            raise UnexpectedContentType(content_type)

        try:
            return json.loads(response.text)
        except ValueError as e:
            raise MalformedBody(f"Invalid JSON from {url}: {e}") from e

    async def get_issue(self, number: int | str) -> GitHubIssue:
        """Fetch a single issue exactly as the tracker reports it."""
        data = await self.get_json(self.settings.issue_api_url(number))
        try:
            return GitHubIssue.model_validate(data)
        except ModelValidationError as e:
            raise MalformedBody(f"Unexpected issue payload for #{number}: {e}") from e

    async def get_comments(self, issue: GitHubIssue) -> list[GitHubComment]:
        """Fetch the comments of an issue, oldest first."""
        data = await self.get_json(issue.comments_url)
        try:
            return [GitHubComment.model_validate(item) for item in data]
        except (ModelValidationError, TypeError) as e:
            raise MalformedBody(
                f"Unexpected comment payload for #{issue.number}: {e}"
            ) from e

    async def fetch_issue(self, number: int | str) -> GitHubIssue:
        """Fetch an issue, following duplicate redirects to the canonical one."""
        issue = await self.get_issue(number)
        return await self.resolver.resolve(issue)

    def is_maintainer(self, comment: GitHubComment) -> bool:
        return comment.user.login in self.settings.maintainers

    async def last_dev_comment(self, issue: GitHubIssue) -> GitHubComment | None:
        """Return the most recent comment written by a maintainer, if any."""
        comments = await self.get_comments(issue)
        relevant = [comment for comment in comments if self.is_maintainer(comment)]
        if not relevant:
            return None
        return relevant[-1]
