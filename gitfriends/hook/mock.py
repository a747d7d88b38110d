"""Mock commit generation for exercising a running deployment.

``test-commits`` publishes these straight to the broker, bypassing the
webhook, so relays can be checked without a git checkout or a token.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import time
import typing as typ
import uuid

from gitfriends.broker import PublishError
from gitfriends.commits import CommitEvent
from gitfriends.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    from gitfriends.broker import EventPublisher

__all__ = [
    "DEFAULT_MOCK_AUTHOR",
    "DEFAULT_MOCK_BRANCH",
    "DEFAULT_MOCK_REPOSITORY",
    "MockCommitSettings",
    "generate_mock_commit",
    "publish_mock_commits",
]

logger = get_logger(__name__)

DEFAULT_MOCK_REPOSITORY = "https://github.com/test/mock-repo"
DEFAULT_MOCK_AUTHOR = "Test Author"
DEFAULT_MOCK_BRANCH = "main"

MOCK_MESSAGES = (
    "Add new feature for user authentication",
    "Fix bug in payment processing",
    "Update dependencies to latest versions",
    "Refactor database connection handling",
    "Add unit tests for core functionality",
    "Improve error handling in API endpoints",
    "Update documentation with new examples",
    "Optimize database queries for performance",
    "Add logging for better debugging",
    "Fix memory leak in background tasks",
)

MOCK_FILE_SETS: tuple[tuple[str, ...], ...] = (
    ("src/main.py", "pyproject.toml"),
    ("src/auth.py", "src/__init__.py", "tests/test_auth.py"),
    ("src/api/__init__.py", "src/api/handlers.py"),
    ("src/database.py", "migrations/001_initial.sql"),
    ("README.md", "docs/api.md"),
    ("src/utils.py", "src/config.py", "src/errors.py", "src/models.py"),
    ("docker-compose.yml", "Dockerfile"),
    ("tests/test_integration.py",),
)


@dc.dataclass(frozen=True, slots=True)
class MockCommitSettings:
    """What the generated commits claim to be."""

    repository_url: str = DEFAULT_MOCK_REPOSITORY
    author: str = DEFAULT_MOCK_AUTHOR
    branch: str = DEFAULT_MOCK_BRANCH


def generate_mock_commit(settings: MockCommitSettings, iteration: int) -> CommitEvent:
    """Return a plausible commit for the 1-based ``iteration``.

    Messages and file lists cycle; the hash is random on every call.
    """
    index = max(iteration - 1, 0)
    email = f"{settings.author.lower().replace(' ', '.')}@example.com"
    return CommitEvent(
        hash=uuid.uuid4().hex,
        author_name=settings.author,
        author_email=email,
        committer_name=settings.author,
        committer_email=email,
        message=MOCK_MESSAGES[index % len(MOCK_MESSAGES)],
        timestamp=int(time.time()),
        repository_url=settings.repository_url,
        branch=settings.branch,
        files_changed=MOCK_FILE_SETS[index % len(MOCK_FILE_SETS)],
    )


async def publish_mock_commits(
    publisher: EventPublisher,
    settings: MockCommitSettings,
    *,
    count: int = 5,
    interval_s: float = 2.0,
    continuous: bool = False,
    identity: str | None = None,
) -> int:
    """Publish ``count`` mock commits and return how many the broker accepted.

    Publish failures are logged and the run continues. With ``continuous``
    the loop runs until cancelled.
    """
    sent = 0
    iteration = 0
    while continuous or iteration < count:
        iteration += 1
        event = generate_mock_commit(settings, iteration)
        log_info(
            logger,
            "Sending test commit %d: %s - %s",
            iteration,
            event.short_hash,
            event.summary,
        )
        try:
            await publisher.publish(event, identity)
        except PublishError as exc:
            log_error(logger, "Failed to publish commit: %s", exc)
        else:
            sent += 1

        if continuous or iteration < count:
            await asyncio.sleep(interval_s)

    log_info(logger, "Sent %d test commit(s)", sent)
    return sent
