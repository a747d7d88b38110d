"""Unit tests for the webhook HTTP client.

Usage
-----
Run with pytest::

    pytest tests/unit/test_hook_client.py

"""

from __future__ import annotations

import httpx
import pytest

from gitfriends.commits import decode_commit_event
from gitfriends.hook import HookError, WebhookClient
from tests.helpers.commit_builders import build_commit


def _transport(
    status_code: int, requests: list[httpx.Request]
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            status_code, json={"status": "published", "topic": "git-friends/x"}
        )

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_send_posts_event_with_bearer_token() -> None:
    """The event is posted to /webhook with the bearer token."""
    requests: list[httpx.Request] = []
    http_client = httpx.AsyncClient(transport=_transport(200, requests))
    client = WebhookClient("http://server:8080/", "s3cr3t", http_client=http_client)

    topic = await client.send(build_commit())
    await http_client.aclose()

    assert topic == "git-friends/x", "expected the topic from the response"
    (request,) = requests
    assert str(request.url) == "http://server:8080/webhook", "expected endpoint"
    assert request.headers["Authorization"] == "Bearer s3cr3t"
    assert decode_commit_event(request.content) == build_commit()


@pytest.mark.asyncio
async def test_send_without_token_omits_header() -> None:
    """Anonymous clients send no Authorization header."""
    requests: list[httpx.Request] = []
    http_client = httpx.AsyncClient(transport=_transport(200, requests))

    await WebhookClient(http_client=http_client).send(build_commit())
    await http_client.aclose()

    assert "Authorization" not in requests[0].headers, "expected no credentials"


@pytest.mark.asyncio
async def test_error_status_raises() -> None:
    """Non-2xx responses raise HookError."""
    http_client = httpx.AsyncClient(transport=_transport(401, []))
    client = WebhookClient(http_client=http_client)

    with pytest.raises(HookError, match="401"):
        await client.send(build_commit())
    await http_client.aclose()


@pytest.mark.asyncio
async def test_transport_error_raises() -> None:
    """Connection failures raise HookError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = WebhookClient(http_client=http_client)

    with pytest.raises(HookError, match="could not reach"):
        await client.send(build_commit())
    await http_client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>proxy login</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
async def test_unexpected_success_body_raises(response: httpx.Response) -> None:
    """A 2xx reply that is not a JSON object raises HookError."""
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: response)
    )
    client = WebhookClient(http_client=http_client)

    with pytest.raises(HookError, match="without a JSON reply"):
        await client.send(build_commit())
    await http_client.aclose()
