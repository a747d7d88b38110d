"""femtologging helpers shared by the server, relay and command line tools.

Every git-friends module logs through these helpers so that messages are
formatted once, up front, and handed to femtologging as plain strings.

Example:
>>> from gitfriends.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Published commit %s to %s", "abcdef1", "git-friends/alice")

"""

from __future__ import annotations

import enum
import os
import typing as typ

from femtologging import basicConfig, get_logger

LOG_LEVEL_ENV = "GITFRIENDS_LOG_LEVEL"


class LogLevel(enum.StrEnum):
    """Log levels understood by femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return the upper-cased level and whether the input had to be replaced.

    Parameters
    ----------
    level : str | None
        Raw level name, typically read from the environment or a flag.

    Returns
    -------
    tuple[str, bool]
        ``(level, invalid)``. Unknown or empty input maps to ``INFO`` with
        ``invalid`` set.

    """
    if not level:
        return ("INFO", True)

    candidate = level.strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)

    return ("INFO", True)


def configure_logging(
    level: str | None = None,
    *,
    force: bool = False,
) -> tuple[str, bool]:
    """Install the femtologging root configuration.

    Parameters
    ----------
    level : str | None, optional
        Level name. ``None`` reads ``GITFRIENDS_LOG_LEVEL`` (default ``INFO``).
    force : bool, optional
        Replace handlers installed by an earlier call.

    Returns
    -------
    tuple[str, bool]
        The applied level and whether the requested one was invalid.

    """
    raw = level if level is not None else os.environ.get(LOG_LEVEL_ENV, "INFO")
    applied, invalid = normalize_log_level(raw)
    basicConfig(level=applied, force=force)
    return (applied, invalid)


def format_log_message(template: str, *args: object) -> str:
    """Interpolate ``args`` into ``template`` with percent formatting."""
    return template % args if args else template


class _SupportsLog(typ.Protocol):
    """Anything exposing femtologging's ``log`` signature."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: str,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    logger.log(
        level,
        format_log_message(template, *args),
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a DEBUG message."""
    _emit(logger, "DEBUG", template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message.

    Parameters
    ----------
    logger : _SupportsLog
        Destination logger.
    template : str
        Percent-style template.
    *args : object
        Values interpolated into ``template``.
    exc_info : object | None, optional
        Exception attached to the record.

    """
    _emit(logger, "INFO", template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message; same parameters as :func:`log_info`."""
    _emit(logger, "WARNING", template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message; same parameters as :func:`log_info`."""
    _emit(logger, "ERROR", template, args, exc_info)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Log ``message`` at ERROR with ``exc`` attached as exc_info."""
    logger.log("ERROR", message, exc_info=exc, stack_info=False)


__all__ = [
    "LOG_LEVEL_ENV",
    "configure_logging",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
