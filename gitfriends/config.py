"""Configuration for the git-friends server, relay and tools.

Configuration lives in a YAML 1.2 document with one mapping per section.
Every key is optional; omitted keys take the defaults below.

.. code-block:: yaml

    server:
      host: 0.0.0.0
      port: 8080
    broker:
      url: redis://localhost:6379/0
      client_name: git-friends
      topic_prefix: git-friends
    auth:
      require_auth: true
      tokens:
        - token: s3cr3t
          username: alice
    irc:
      server: irc.libera.chat
      channels: ["#git-friends"]
      topic_filters: ["git-friends/*"]
    repositories:
      aliases:
        https://github.com/user/repo: repo

Lookup order is the explicit path, ``GITFRIENDS_CONFIG``, then
``git-friends.yaml``, ``config/git-friends.yaml`` and
``/etc/git-friends.yaml``. A handful of environment variables override the
file:

- ``GITFRIENDS_HOST`` / ``GITFRIENDS_PORT``: server bind address.
- ``GITFRIENDS_BROKER_URL``: Redis URL of the broker.
- ``GITFRIENDS_TOPIC_PREFIX``: first topic segment.
- ``GITFRIENDS_REQUIRE_AUTH``: ``true``/``false``.
"""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from gitfriends.auth.tokens import TokenGrant

CONFIG_ENV = "GITFRIENDS_CONFIG"
DEFAULT_CONFIG_PATHS = (
    Path("git-friends.yaml"),
    Path("config/git-friends.yaml"),
    Path("/etc/git-friends.yaml"),
)
YAML_VERSION = (1, 2)

_MIN_PORT = 1
_MAX_PORT = 65535
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded or is invalid."""

    @classmethod
    def unreadable(cls, path: Path, exc: BaseException) -> ConfigError:
        """Return an error for a file that cannot be read or parsed."""
        return cls(f"failed to read configuration {path}: {exc}")

    @classmethod
    def invalid(cls, source: str, exc: BaseException) -> ConfigError:
        """Return an error for a document that does not match the schema."""
        return cls(f"invalid configuration in {source}: {exc}")

    @classmethod
    def invalid_env(cls, name: str, raw: str) -> ConfigError:
        """Return an error for an environment override with a bad value."""
        return cls(f"{name} has an invalid value: {raw!r}")


class ServerConfig(msgspec.Struct, frozen=True, kw_only=True):
    """HTTP listener settings."""

    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    port: int = 8080


class BrokerConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Pub/sub broker settings.

    Attributes
    ----------
    url
        Redis connection URL.
    client_name
        Base client name; each process appends its role.
    username, password
        Optional ACL credentials, overriding any in ``url``.
    topic_prefix
        First segment of every published topic.
    connect_timeout_s
        Seconds to wait for the broker at startup.

    """

    url: str = "redis://localhost:6379/0"
    client_name: str = "git-friends"
    username: str | None = None
    password: str | None = None
    topic_prefix: str = "git-friends"
    connect_timeout_s: float = 10.0


class AuthConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Webhook authentication settings."""

    require_auth: bool = True
    tokens: tuple[TokenGrant, ...] = ()


class IrcConfig(msgspec.Struct, frozen=True, kw_only=True):
    """IRC relay settings."""

    server: str = "irc.libera.chat"
    port: int = 6667
    nick: str = "git-friends"
    username: str = "git-friends"
    real_name: str = "Git Friends Bot"
    channels: tuple[str, ...] = ("#git-friends",)
    use_tls: bool = False
    topic_filters: tuple[str, ...] = ("git-friends/*",)


class RepositoriesConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Repository URL to topic alias table."""

    aliases: dict[str, str] = msgspec.field(default_factory=dict)


class RelayConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Tuning for the relay's supervisor and queue."""

    queue_size: int = 100
    reconnect_backoff_s: float = 5.0
    poll_timeout_s: float = 1.0


class GitFriendsConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Complete git-friends configuration."""

    server: ServerConfig = msgspec.field(default_factory=ServerConfig)
    broker: BrokerConfig = msgspec.field(default_factory=BrokerConfig)
    auth: AuthConfig = msgspec.field(default_factory=AuthConfig)
    irc: IrcConfig = msgspec.field(default_factory=IrcConfig)
    repositories: RepositoriesConfig = msgspec.field(
        default_factory=RepositoriesConfig
    )
    relay: RelayConfig = msgspec.field(default_factory=RelayConfig)


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml


def _resolve_path(path: Path | str | None) -> Path | None:
    """Return the configuration file to load, or ``None`` for defaults."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV, "").strip()
    if env_path:
        return Path(env_path)
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.is_file():
            return candidate
    return None


def _read_document(path: Path) -> dict[str, typ.Any]:
    try:
        loaded = _yaml().load(path.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise ConfigError.unreadable(path, exc) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError.invalid(str(path), TypeError("expected a mapping"))
    return loaded


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid_env("GITFRIENDS_PORT", raw) from exc
    if not _MIN_PORT <= port <= _MAX_PORT:
        raise ConfigError.invalid_env("GITFRIENDS_PORT", raw)
    return port


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError.invalid_env(name, raw)


def _apply_env_overrides(config: GitFriendsConfig) -> GitFriendsConfig:
    """Return ``config`` with ``GITFRIENDS_*`` overrides applied."""
    server = config.server
    broker = config.broker
    auth = config.auth

    if host := os.environ.get("GITFRIENDS_HOST", "").strip():
        server = msgspec.structs.replace(server, host=host)
    if port := os.environ.get("GITFRIENDS_PORT", "").strip():
        server = msgspec.structs.replace(server, port=_parse_port(port))
    if url := os.environ.get("GITFRIENDS_BROKER_URL", "").strip():
        broker = msgspec.structs.replace(broker, url=url)
    if prefix := os.environ.get("GITFRIENDS_TOPIC_PREFIX", "").strip():
        broker = msgspec.structs.replace(broker, topic_prefix=prefix)
    if require := os.environ.get("GITFRIENDS_REQUIRE_AUTH", "").strip():
        auth = msgspec.structs.replace(
            auth, require_auth=_parse_bool("GITFRIENDS_REQUIRE_AUTH", require)
        )

    return msgspec.structs.replace(config, server=server, broker=broker, auth=auth)


def load_config(path: Path | str | None = None) -> GitFriendsConfig:
    """Load configuration from YAML and the environment.

    Parameters
    ----------
    path
        Explicit configuration file. ``None`` searches ``GITFRIENDS_CONFIG``
        and the default locations, falling back to built-in defaults.

    Returns
    -------
    GitFriendsConfig
        Validated configuration with environment overrides applied.

    Raises
    ------
    ConfigError
        If the file cannot be parsed or fails validation, or an override has
        an invalid value.

    """
    resolved = _resolve_path(path)
    document = _read_document(resolved) if resolved is not None else {}
    source = str(resolved) if resolved is not None else "defaults"

    try:
        config = msgspec.convert(document, type=GitFriendsConfig)
    except msgspec.ValidationError as exc:
        raise ConfigError.invalid(source, exc) from exc

    return _apply_env_overrides(config)


def client_name_for(config: BrokerConfig, role: str) -> str:
    """Return the broker client name for a process ``role``."""
    return f"{config.client_name}/{role}"


__all__ = [
    "AuthConfig",
    "BrokerConfig",
    "ConfigError",
    "GitFriendsConfig",
    "IrcConfig",
    "RelayConfig",
    "RepositoriesConfig",
    "ServerConfig",
    "client_name_for",
    "load_config",
]
