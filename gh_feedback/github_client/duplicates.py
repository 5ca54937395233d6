"""Follow "duplicate of #N" redirects to the canonical issue."""

import logging
import re
from typing import TYPE_CHECKING

from ..config import DUPLICATE_LABEL
from ..errors import DuplicateChainTooDeep
from .models import GitHubComment, GitHubIssue

if TYPE_CHECKING:
    from .client import TrackerClient

logger = logging.getLogger(__name__)

DUPLICATE_PATTERN = re.compile(r"\s*duplicate of #(\d+)\s*", re.IGNORECASE)


def find_redirect(comments: list[GitHubComment]) -> int | None:
    """Return the issue number named by the most recent redirect comment."""
    for comment in reversed(comments):
        match = DUPLICATE_PATTERN.search(comment.body or "")
        if match:
            return int(match.group(1))
    return None


class DuplicateResolver:
    """Resolves issues labelled as duplicates to the issue they duplicate."""

    def __init__(self, client: "TrackerClient", max_depth: int = 10):
        self.client = client
        self.max_depth = max_depth

    async def resolve(self, issue: GitHubIssue, depth: int = 0) -> GitHubIssue:
        """Return the canonical issue for ``issue``.

        A duplicate without a redirect comment is returned as-is so it stays
        visible to the reporter.

        Raises:
            DuplicateChainTooDeep: more than ``max_depth`` redirects followed
        """
        if not issue.has_label(DUPLICATE_LABEL):
            return issue

        comments = await self.client.get_comments(issue)
        target = find_redirect(comments)
        if target is None:
            logger.debug(f"Issue #{issue.number} is a duplicate without redirect")
            return issue

        if depth >= self.max_depth:
            raise DuplicateChainTooDeep(self.max_depth)

        logger.debug(f"Issue #{issue.number} is a duplicate of #{target}")
        referenced = await self.client.get_issue(target)
        return await self.resolve(referenced, depth + 1)
