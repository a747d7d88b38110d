"""Plain-text rendering of commit events for chat channels."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitfriends.commits import CommitEvent

MAX_LISTED_FILES = 3


def repository_basename(repo_url: str) -> str:
    """Return the last ``/`` segment of ``repo_url``, or ``"unknown"``."""
    return repo_url.rsplit("/", 1)[-1] or "unknown"


def file_summary(files: cabc.Sequence[str]) -> str:
    """List up to three files, or count them when there are more."""
    if len(files) > MAX_LISTED_FILES:
        return f"{len(files)} files changed"
    return ", ".join(files)


def format_line(event: CommitEvent) -> str:
    """Render ``event`` as a single chat line.

    Examples
    --------
    ``[abcdef1] repo by Jo (main): Fix parser - src/parser.py``

    """
    return (
        f"[{event.short_hash}] {repository_basename(event.repository_url)} "
        f"by {event.author_name} ({event.branch}): {event.summary} - "
        f"{file_summary(event.files_changed)}"
    )
