"""IRC chat client used by the relay, built on the ``irc`` asyncio reactor."""

from __future__ import annotations

import asyncio
import typing as typ

import irc.client
import irc.client_aio
import irc.connection

from gitfriends.logging import get_logger, log_info, log_warning

from .errors import ChatConnectionError, DeliveryError

if typ.TYPE_CHECKING:
    from gitfriends.config import IrcConfig

logger = get_logger(__name__)

BOT_COMMAND = "!git-friends"
BOT_RESPONSE = "Git Friends IRC bot - monitoring git commits via the broker"
WELCOME_TIMEOUT_S = 30.0

# 512 bytes per IRC line, including the trailing CRLF.
_MAX_LINE_BYTES = 510


def fit_privmsg(channel: str, text: str) -> str:
    """Trim ``text`` so ``PRIVMSG {channel} :{text}`` fits one IRC line."""
    budget = _MAX_LINE_BYTES - len(f"PRIVMSG {channel} :".encode())
    encoded = text.encode("utf-8")
    if len(encoded) <= budget:
        return text
    return encoded[:budget].decode("utf-8", errors="ignore")


class IrcChatClient(irc.client_aio.AioSimpleIRCClient):
    """Join the configured channels and post relay lines to them.

    Must be constructed inside a running event loop; the ``irc`` reactor
    binds to the current loop.
    """

    def __init__(self, config: IrcConfig) -> None:
        """Prepare the reactor; :meth:`start` opens the connection."""
        super().__init__()
        self._config = config
        self._welcomed = asyncio.Event()
        self._disconnected = asyncio.Event()
        self._disconnect_reason = ""

    @property
    def channels(self) -> tuple[str, ...]:
        """Return the channels the client joins."""
        return self._config.channels

    async def start(self, welcome_timeout: float = WELCOME_TIMEOUT_S) -> None:
        """Connect, register and wait for the server welcome.

        Raises
        ------
        ChatConnectionError
            If the server is unreachable or never welcomes the client.

        """
        config = self._config
        factory = (
            irc.connection.AioFactory(ssl=True)
            if config.use_tls
            else irc.connection.AioFactory()
        )
        log_info(
            logger,
            "Connecting to IRC %s:%d as %s",
            config.server,
            config.port,
            config.nick,
        )
        try:
            await self.connection.connect(
                config.server,
                config.port,
                config.nick,
                username=config.username,
                ircname=config.real_name,
                connect_factory=factory,
            )
            async with asyncio.timeout(welcome_timeout):
                await self._welcomed.wait()
        except (irc.client.ServerConnectionError, OSError, TimeoutError) as exc:
            raise ChatConnectionError.unreachable(
                config.server, config.port, exc
            ) from exc

    async def wait_disconnected(self) -> str:
        """Block until the server connection is lost and return the reason."""
        await self._disconnected.wait()
        return self._disconnect_reason

    async def send_message(self, channel: str, line: str) -> None:
        """Send ``line`` to ``channel`` as a ``PRIVMSG``.

        Raises
        ------
        DeliveryError
            If the connection is down or the line is rejected locally.

        """
        try:
            self.connection.privmsg(channel, fit_privmsg(channel, line))
        except (
            irc.client.ServerNotConnectedError,
            irc.client.InvalidCharacters,
            irc.client.MessageTooLong,
        ) as exc:
            raise DeliveryError(channel, str(exc) or type(exc).__name__) from exc

    def close(self, reason: str = "git-friends relay shutting down") -> None:
        """Quit the server if still connected."""
        if self.connection.is_connected():
            self.connection.disconnect(reason)

    def on_welcome(
        self, connection: irc.client_aio.AioConnection, _event: irc.client.Event
    ) -> None:
        """Join every configured channel once registered."""
        log_info(logger, "Connected to IRC server %s", self._config.server)
        for channel in self._config.channels:
            connection.join(channel)
        self._welcomed.set()

    def on_join(
        self, connection: irc.client_aio.AioConnection, event: irc.client.Event
    ) -> None:
        """Log our own channel joins."""
        if event.source.nick == connection.get_nickname():
            log_info(logger, "Joined %s", event.target)

    def on_pubmsg(
        self, connection: irc.client_aio.AioConnection, event: irc.client.Event
    ) -> None:
        """Answer the bot command in a channel."""
        text = event.arguments[0] if event.arguments else ""
        if text.startswith(BOT_COMMAND):
            connection.privmsg(event.target, BOT_RESPONSE)

    def on_disconnect(
        self, _connection: irc.client_aio.AioConnection, event: irc.client.Event
    ) -> None:
        """Record loss of the IRC connection and wake any waiter."""
        reason = event.arguments[0] if event.arguments else "unknown reason"
        log_warning(logger, "Disconnected from IRC: %s", reason)
        self._disconnect_reason = reason
        self._disconnected.set()
