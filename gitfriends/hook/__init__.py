"""Commit hook: describe a commit with git and send it to the webhook."""

from __future__ import annotations

from .client import DEFAULT_SERVER_URL, WebhookClient
from .errors import HookError
from .git import (
    UNKNOWN,
    collect_commit,
    collect_commit_from_github_actions,
    resolve_commit,
)
from .mock import (
    DEFAULT_MOCK_AUTHOR,
    DEFAULT_MOCK_BRANCH,
    DEFAULT_MOCK_REPOSITORY,
    MockCommitSettings,
    generate_mock_commit,
    publish_mock_commits,
)

__all__ = [
    "DEFAULT_MOCK_AUTHOR",
    "DEFAULT_MOCK_BRANCH",
    "DEFAULT_MOCK_REPOSITORY",
    "DEFAULT_SERVER_URL",
    "UNKNOWN",
    "HookError",
    "MockCommitSettings",
    "WebhookClient",
    "collect_commit",
    "collect_commit_from_github_actions",
    "generate_mock_commit",
    "publish_mock_commits",
    "resolve_commit",
]
