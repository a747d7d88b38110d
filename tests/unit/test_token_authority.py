"""Unit tests for bearer token validation and provisioning.

Usage
-----
Run with pytest::

    pytest tests/unit/test_token_authority.py

"""

from __future__ import annotations

import pytest

from gitfriends.auth import (
    ANONYMOUS,
    AuthenticationError,
    MalformedHeaderError,
    TokenAuthority,
    TokenGrant,
    generate_token,
)


@pytest.fixture
def authority() -> TokenAuthority:
    """Return an authority with one token for alice."""
    return TokenAuthority([TokenGrant(token="test-token", username="alice")])


class TestValidate:
    """Tests for TokenAuthority.validate."""

    def test_known_token_resolves(self, authority: TokenAuthority) -> None:
        """A provisioned token maps to its identity."""
        assert authority.validate("test-token") == "alice", "expected alice"

    def test_unknown_token_is_none(self, authority: TokenAuthority) -> None:
        """Unknown tokens do not resolve."""
        assert authority.validate("nope") is None, "expected no identity"

    def test_add_then_remove(self, authority: TokenAuthority) -> None:
        """Added tokens validate until they are removed."""
        authority.add("fresh", "carol")
        assert authority.validate("fresh") == "carol", "expected carol"

        assert authority.remove("fresh") == "carol", "expected removed identity"
        assert authority.validate("fresh") is None, "expected revoked token"

    def test_remove_unknown_token(self, authority: TokenAuthority) -> None:
        """Removing an unknown token is a no-op."""
        assert authority.remove("missing") is None, "expected None"
        assert authority.validate("test-token") == "alice", "table unchanged"

    def test_tokens_may_share_identity(self) -> None:
        """Several tokens can publish as the same identity."""
        authority = TokenAuthority(
            [
                TokenGrant(token="a", username="alice"),
                TokenGrant(token="b", username="alice"),
            ]
        )
        assert authority.validate("a") == authority.validate("b") == "alice"

    @pytest.mark.parametrize("token", ["", "anything", "test-token"])
    def test_disabled_auth_is_anonymous(self, token: str) -> None:
        """With auth disabled every credential is anonymous."""
        authority = TokenAuthority(
            [TokenGrant(token="test-token", username="alice")], require_auth=False
        )
        assert authority.validate(token) == ANONYMOUS, "expected anonymous"


class TestValidateBearer:
    """Tests for TokenAuthority.validate_bearer."""

    def test_bearer_header_resolves(self, authority: TokenAuthority) -> None:
        """The token after the Bearer prefix is validated."""
        assert authority.validate_bearer("Bearer test-token") == "alice"

    def test_unknown_bearer_is_none(self, authority: TokenAuthority) -> None:
        """Well-formed headers with unknown tokens resolve to None."""
        assert authority.validate_bearer("Bearer other") is None

    @pytest.mark.parametrize(
        "header",
        ["Invalid token_without_bearer_prefix", "bearer test-token", "test-token"],
    )
    def test_malformed_header_raises(
        self, authority: TokenAuthority, header: str
    ) -> None:
        """Headers without the exact Bearer scheme are rejected."""
        with pytest.raises(MalformedHeaderError):
            authority.validate_bearer(header)

    def test_malformed_header_is_authentication_error(
        self, authority: TokenAuthority
    ) -> None:
        """Malformed headers share the AuthenticationError base."""
        with pytest.raises(AuthenticationError):
            authority.validate_bearer("Basic dXNlcjpwYXNz")

    def test_disabled_auth_ignores_header_shape(self) -> None:
        """With auth disabled even malformed headers are anonymous."""
        authority = TokenAuthority(require_auth=False)
        assert authority.validate_bearer("garbage") == ANONYMOUS


class TestProvisioning:
    """Tests for token generation and listing."""

    def test_generated_tokens_are_unique_and_urlsafe(self) -> None:
        """Generated tokens are unpadded URL-safe strings."""
        tokens = {generate_token() for _ in range(50)}
        assert len(tokens) == 50, "expected unique tokens"
        for token in tokens:
            assert "=" not in token, "expected no padding"
            assert set(token) <= set(
                "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
            ), "expected URL-safe alphabet"

    def test_generate_grant_registers_token(self, authority: TokenAuthority) -> None:
        """generate_grant adds a working token for the identity."""
        grant = authority.generate_grant("dave")
        assert grant.username == "dave", "expected grant for dave"
        assert authority.validate(grant.token) == "dave", "expected registration"

    def test_list_tokens_snapshot(self, authority: TokenAuthority) -> None:
        """list_tokens returns every grant."""
        authority.add("second", "bob")
        assert sorted(authority.list_tokens(), key=lambda g: g.token) == [
            TokenGrant(token="second", username="bob"),
            TokenGrant(token="test-token", username="alice"),
        ]
