"""Build commit events from a local git checkout or a GitHub Actions run.

Commit data is read with the ``git`` executable using fixed argument lists,
so no git bindings are required. Missing remote or branch information is
reported as ``"unknown"`` rather than failing the hook.

Usage
-----
Collect HEAD of the current checkout::

    event = collect_commit(Path("."))

Collect inside a workflow, honouring the GitHub environment::

    event = collect_commit_from_github_actions(os.environ)

"""

from __future__ import annotations

import os
import shutil
import subprocess
import time
import typing as typ
from pathlib import Path

import msgspec

from gitfriends.commits import CommitEvent
from gitfriends.hook.errors import HookError
from gitfriends.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = [
    "UNKNOWN",
    "collect_commit",
    "collect_commit_from_github_actions",
    "resolve_commit",
]

logger = get_logger(__name__)

UNKNOWN = "unknown"
FALLBACK_MESSAGE = "GitHub Actions commit"

# NUL cannot appear in names or emails, so it separates the header fields.
_SHOW_FORMAT = "%H%x00%an%x00%ae%x00%cn%x00%ce%x00%ct%x00%B"
_SHOW_FIELDS = 7


def _git_executable() -> str:
    git_executable = shutil.which("git")
    if git_executable is None:
        raise HookError.git_unavailable()
    return git_executable


def _run_git(repo_path: Path, *args: str) -> str:
    """Run git in ``repo_path`` and return stdout."""
    command = [_git_executable(), "-C", str(repo_path), *args]
    try:
        result = subprocess.run(  # noqa: S603  # fixed argv to local git repo only
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        raise HookError.git_failed(args[0], exc.stderr or "") from exc
    return result.stdout


def _try_git(repo_path: Path, *args: str) -> str | None:
    """Run git and return stripped stdout, or ``None`` when it fails."""
    try:
        output = _run_git(repo_path, *args).strip()
    except HookError as exc:
        log_debug(logger, "Optional git query failed: %s", exc)
        return None
    return output or None


def _is_checkout(repo_path: Path) -> bool:
    return _try_git(repo_path, "rev-parse", "--git-dir") is not None


def _changed_files(repo_path: Path, commit_hash: str) -> tuple[str, ...]:
    output = _run_git(
        repo_path,
        "diff-tree",
        "--no-commit-id",
        "--name-only",
        "-r",
        "--root",
        commit_hash,
    )
    return tuple(line for line in output.splitlines() if line)


def collect_commit(repo_path: Path | str = ".", rev: str = "HEAD") -> CommitEvent:
    """Read ``rev`` from the checkout at ``repo_path``.

    Parameters
    ----------
    repo_path : Path | str, optional
        Any directory inside the working tree.
    rev : str, optional
        Revision to describe; defaults to ``HEAD``.

    Returns
    -------
    CommitEvent
        The commit with the ``origin`` URL and current branch attached.

    Raises
    ------
    HookError
        If git is missing or ``rev`` cannot be resolved.

    """
    path = Path(repo_path)
    output = _run_git(path, "show", "-s", f"--format={_SHOW_FORMAT}", rev)
    fields = output.split("\x00", _SHOW_FIELDS - 1)
    if len(fields) != _SHOW_FIELDS:
        raise HookError.git_failed("show", f"unexpected output for {rev}")

    commit_hash, author_name, author_email, committer_name, committer_email = fields[
        :5
    ]
    timestamp, message = fields[5], fields[6]

    return CommitEvent(
        hash=commit_hash,
        author_name=author_name or UNKNOWN,
        author_email=author_email or UNKNOWN,
        committer_name=committer_name or UNKNOWN,
        committer_email=committer_email or UNKNOWN,
        message=message.rstrip("\n"),
        timestamp=int(timestamp),
        repository_url=_try_git(path, "remote", "get-url", "origin") or UNKNOWN,
        branch=_try_git(path, "rev-parse", "--abbrev-ref", "HEAD") or UNKNOWN,
        files_changed=_changed_files(path, commit_hash),
    )


def _github_repository_url(env: cabc.Mapping[str, str]) -> str:
    repository = env.get("GITHUB_REPOSITORY")
    if not repository:
        return UNKNOWN
    server = env.get("GITHUB_SERVER_URL") or "https://github.com"
    return f"{server}/{repository}"


def _github_branch(env: cabc.Mapping[str, str]) -> str:
    for name in ("GITHUB_REF_NAME", "GITHUB_HEAD_REF", "GITHUB_BASE_REF"):
        value = env.get(name)
        if value:
            return value
    return UNKNOWN


def _message_from_event_payload(env: cabc.Mapping[str, str]) -> str | None:
    """Pull a commit message out of the workflow's event payload."""
    event_path = env.get("GITHUB_EVENT_PATH")
    if not event_path:
        return None
    try:
        payload = msgspec.json.decode(Path(event_path).read_bytes())
    except (OSError, msgspec.DecodeError) as exc:
        log_debug(logger, "Unreadable GitHub event payload %s: %s", event_path, exc)
        return None
    if not isinstance(payload, dict):
        return None

    candidates: list[object] = []
    head_commit = payload.get("head_commit")
    if isinstance(head_commit, dict):
        candidates.append(head_commit.get("message"))
    pull_request = payload.get("pull_request")
    if isinstance(pull_request, dict):
        candidates.append(pull_request.get("title"))
    commits = payload.get("commits")
    if isinstance(commits, list) and commits and isinstance(commits[0], dict):
        candidates.append(commits[0].get("message"))

    return next((c for c in candidates if isinstance(c, str)), None)


def _event_from_environment(
    env: cabc.Mapping[str, str],
    commit_hash: str,
    repository_url: str,
    branch: str,
) -> CommitEvent:
    actor = env.get("GITHUB_ACTOR") or UNKNOWN
    email = f"{actor}@users.noreply.github.com"
    return CommitEvent(
        hash=commit_hash,
        author_name=actor,
        author_email=email,
        committer_name=actor,
        committer_email=email,
        message=_message_from_event_payload(env) or FALLBACK_MESSAGE,
        timestamp=int(time.time()),
        repository_url=repository_url,
        branch=branch,
    )


def collect_commit_from_github_actions(
    env: cabc.Mapping[str, str] | None = None,
    repo_path: Path | str = ".",
) -> CommitEvent:
    """Describe ``GITHUB_SHA`` using the workflow environment.

    When ``repo_path`` is a checkout the commit is read from git and only the
    repository URL and branch come from the environment. Without a checkout
    the event is assembled from the environment and the event payload alone.

    Raises
    ------
    HookError
        If ``GITHUB_SHA`` is unset or git fails inside a checkout.

    """
    environ = os.environ if env is None else env
    commit_hash = environ.get("GITHUB_SHA")
    if not commit_hash:
        raise HookError.missing_env("GITHUB_SHA")

    repository_url = _github_repository_url(environ)
    branch = _github_branch(environ)

    path = Path(repo_path)
    try:
        in_checkout = _is_checkout(path)
    except HookError:
        in_checkout = False

    if not in_checkout:
        log_info(logger, "No git checkout; building commit from the environment")
        return _event_from_environment(environ, commit_hash, repository_url, branch)

    event = collect_commit(path, commit_hash)
    return msgspec.structs.replace(event, repository_url=repository_url, branch=branch)


def resolve_commit(
    repo_path: Path | str = ".",
    *,
    commit: str | None = None,
    github_actions: bool = False,
    env: cabc.Mapping[str, str] | None = None,
) -> CommitEvent:
    """Pick the commit the hook should report.

    An explicit ``commit`` wins. Otherwise GitHub Actions mode is used when
    forced or when ``GITHUB_ACTIONS`` is set, and finally ``GIT_COMMIT`` or
    ``HEAD`` of the local checkout.
    """
    environ = os.environ if env is None else env
    if commit is not None:
        return collect_commit(repo_path, commit)
    if github_actions or "GITHUB_ACTIONS" in environ:
        log_info(logger, "Running in GitHub Actions mode")
        return collect_commit_from_github_actions(environ, repo_path)
    rev = environ.get("GIT_COMMIT") or "HEAD"
    return collect_commit(repo_path, rev)
