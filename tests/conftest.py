"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

_ENVIRONMENT = (
    "GITFRIENDS_CONFIG",
    "GITFRIENDS_HOST",
    "GITFRIENDS_PORT",
    "GITFRIENDS_BROKER_URL",
    "GITFRIENDS_TOPIC_PREFIX",
    "GITFRIENDS_REQUIRE_AUTH",
    "GITFRIENDS_LOG_LEVEL",
    "GITFRIENDS_TOKEN",
    "GITHUB_ACTIONS",
    "GIT_COMMIT",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without git-friends or CI settings from the host."""
    for name in _ENVIRONMENT:
        monkeypatch.delenv(name, raising=False)
