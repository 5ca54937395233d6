"""Track your GitHub issues and answer maintainer feedback requests."""

__version__ = "0.1.0"
