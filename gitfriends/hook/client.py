"""HTTP client that delivers commit events to ``POST /webhook``."""

from __future__ import annotations

import typing as typ

import httpx

from gitfriends.commits import encode_commit_event
from gitfriends.hook.errors import HookError
from gitfriends.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    from gitfriends.commits import CommitEvent

__all__ = ["DEFAULT_SERVER_URL", "WebhookClient"]

logger = get_logger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_S = 10.0


class WebhookClient:
    """Post commit events to a git-friends server.

    Parameters
    ----------
    server_url
        Base URL of the server; ``/webhook`` is appended.
    token
        Optional bearer token. Anonymous requests are only accepted when the
        server has authentication disabled.
    timeout_s
        Request timeout in seconds.
    http_client
        Optional httpx.AsyncClient for testing. If not provided, the instance
        creates and owns its own client.

    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        token: str | None = None,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client."""
        self._endpoint = f"{server_url.rstrip('/')}/webhook"
        self._token = token
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)

    @property
    def endpoint(self) -> str:
        """Return the full webhook URL."""
        return self._endpoint

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def send(self, event: CommitEvent) -> str:
        """Deliver ``event`` and return the topic reported by the server.

        Raises
        ------
        HookError
            If the server is unreachable, answers with a non-2xx status, or
            sends a reply that is not a JSON object.

        """
        try:
            response = await self._client.post(
                self._endpoint,
                content=encode_commit_event(event),
                headers=self._headers(),
            )
        except httpx.RequestError as exc:
            log_error(logger, "Failed to send commit information: %s", exc)
            raise HookError.unreachable(self._endpoint, str(exc)) from exc

        if not response.is_success:
            log_error(logger, "Server returned error: %d", response.status_code)
            raise HookError.rejected(response.status_code)

        try:
            reply = response.json()
        except ValueError as exc:
            log_error(logger, "Server reply is not JSON: %s", exc)
            raise HookError.unexpected_reply(response.status_code) from exc
        if not isinstance(reply, dict):
            raise HookError.unexpected_reply(response.status_code)

        topic = str(reply.get("topic", ""))
        log_info(
            logger, "Sent commit %s to %s (%s)", event.short_hash, self._endpoint, topic
        )
        return topic
