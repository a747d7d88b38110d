"""API exceptions and the Falcon handlers that turn them into responses.

Usage
-----
Register the handlers on the Falcon app::

    app.add_error_handler(AuthenticationError, handle_authentication_error)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(PublishError, handle_publish_error)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gitfriends.auth import AuthenticationError
    from gitfriends.broker import PublishError

__all__ = [
    "InvalidInputError",
    "handle_authentication_error",
    "handle_invalid_input",
    "handle_publish_error",
]


class InvalidInputError(Exception):
    """Raised for request bodies that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.

    """

    def __init__(self, reason: str) -> None:
        """Initialise with a validation reason."""
        self.reason = reason
        super().__init__(reason)


async def handle_authentication_error(
    _req: Request,
    resp: Response,
    _ex: AuthenticationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map any authentication failure to the same HTTP 401 response.

    The reason stays in the server log; callers cannot tell a malformed
    header from an unknown token.
    """
    resp.status = falcon.HTTP_401
    resp.append_header("WWW-Authenticate", "Bearer")
    resp.media = {
        "title": "Authentication failed",
        "description": "A valid bearer token is required.",
    }


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    resp.media = {"title": "Invalid commit event", "description": ex.reason}


async def handle_publish_error(
    _req: Request,
    resp: Response,
    _ex: PublishError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``PublishError`` to an HTTP 500 JSON response."""
    resp.status = falcon.HTTP_500
    resp.media = {
        "title": "Publish failed",
        "description": "The commit could not be forwarded to the broker.",
    }
