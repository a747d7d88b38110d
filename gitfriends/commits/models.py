"""Typed commit event shared by the webhook, the broker and the relay.

A ``CommitEvent`` travels as one UTF-8 JSON object per broker message. The
field names are flat (``author_name``, ``committer_email`` and so on) so the
same document is accepted by the webhook and published unchanged.

Usage
-----
>>> event = CommitEvent(
...     hash="abcdef1234567890",
...     author_name="Jo",
...     author_email="jo@example.com",
...     committer_name="Jo",
...     committer_email="jo@example.com",
...     message="Fix parser\\n\\nDetails",
...     timestamp=1700000000,
...     repository_url="https://github.com/user/repo",
...     branch="main",
... )
>>> event.short_hash
'abcdef1'
>>> decode_commit_event(encode_commit_event(event)) == event
True

"""

from __future__ import annotations

import msgspec

from .errors import CommitDecodeError

SHORT_HASH_LENGTH = 7


class Signature(msgspec.Struct, frozen=True):
    """Name and email of a commit author or committer."""

    name: str
    email: str


class CommitEvent(msgspec.Struct, kw_only=True, frozen=True):
    """Canonical description of one source-control commit.

    Attributes
    ----------
    hash
        Full commit hash.
    author_name, author_email
        Commit author.
    committer_name, committer_email
        Commit committer; the committer name is part of the broker topic.
    message
        Full commit message, possibly multi-line.
    timestamp
        Commit time in unix seconds.
    repository_url
        Remote URL of the repository the commit belongs to.
    branch
        Branch the commit was made on.
    files_changed
        Paths touched by the commit, in diff order.

    """

    hash: str
    author_name: str
    author_email: str
    committer_name: str
    committer_email: str
    message: str
    timestamp: int
    repository_url: str
    branch: str
    files_changed: tuple[str, ...] = ()

    @property
    def short_hash(self) -> str:
        """Return the display prefix of ``hash``, clamped to its length."""
        return self.hash[:SHORT_HASH_LENGTH]

    @property
    def author(self) -> Signature:
        """Return the author as a :class:`Signature`."""
        return Signature(self.author_name, self.author_email)

    @property
    def committer(self) -> Signature:
        """Return the committer as a :class:`Signature`."""
        return Signature(self.committer_name, self.committer_email)

    @property
    def summary(self) -> str:
        """Return the first line of the message, stripped."""
        lines = self.message.splitlines()
        return lines[0].strip() if lines else ""


_DECODER = msgspec.json.Decoder(CommitEvent)


def encode_commit_event(event: CommitEvent) -> bytes:
    """Serialize ``event`` to its UTF-8 JSON wire form."""
    return msgspec.json.encode(event)


def decode_commit_event(payload: bytes | str) -> CommitEvent:
    """Parse a wire payload into a :class:`CommitEvent`.

    Unknown keys (for example a ``short_hash`` sent by older hooks) are
    ignored.

    Raises
    ------
    CommitDecodeError
        If the payload is not valid JSON or does not match the schema.

    """
    try:
        return _DECODER.decode(payload)
    except msgspec.DecodeError as exc:
        raise CommitDecodeError.invalid_payload(exc) from exc
