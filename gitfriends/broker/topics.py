"""Topic derivation for published commit events.

Topics are ``/``-separated strings::

    {prefix}/{identity}/{repository_alias}/{committer}
    {prefix}/{repository_alias}/{committer}          # no identity

The repository alias comes from the configured alias table or, when the URL
has no entry, from :func:`sanitize_repo_url`. Distinct URLs may sanitise to
the same alias; such collisions are not detected.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_STRIPPED_PREFIXES = ("https://", "http://", "git@")
_SEPARATORS = str.maketrans({":": "_", "/": "_", ".": "_"})


def sanitize_repo_url(url: str) -> str:
    """Turn a repository URL into a single topic segment.

    Examples
    --------
    >>> sanitize_repo_url("https://github.com/user/repo")
    'github_com_user_repo'
    >>> sanitize_repo_url("git@github.com:user/repo.git")
    'github_com_user_repo'

    """
    alias = url
    for prefix in _STRIPPED_PREFIXES:
        alias = alias.replace(prefix, "")
    alias = alias.removesuffix(".git")
    return alias.translate(_SEPARATORS)


class TopicRouter:
    """Derive broker topics from repository, committer and identity."""

    def __init__(
        self,
        prefix: str,
        aliases: cabc.Mapping[str, str] | None = None,
    ) -> None:
        """Configure the topic prefix and the repository alias table."""
        self.prefix = prefix
        self._aliases = dict(aliases or {})

    def repository_alias(self, repo_url: str) -> str:
        """Return the configured alias for ``repo_url`` or its sanitised form."""
        alias = self._aliases.get(repo_url)
        return alias if alias is not None else sanitize_repo_url(repo_url)

    def derive(
        self,
        repo_url: str,
        committer: str,
        identity: str | None = None,
    ) -> str:
        """Return the topic for a commit to ``repo_url`` by ``committer``."""
        alias = self.repository_alias(repo_url)
        if identity is not None:
            return f"{self.prefix}/{identity}/{alias}/{committer}"
        return f"{self.prefix}/{alias}/{committer}"
