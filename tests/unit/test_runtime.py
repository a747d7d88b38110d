"""Unit tests for the gitfriends.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus
from unittest import mock

import falcon.asgi
import falcon.testing
import pytest

from gitfriends.auth import TokenGrant
from gitfriends.config import (
    AuthConfig,
    BrokerConfig,
    GitFriendsConfig,
    ServerConfig,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def config() -> GitFriendsConfig:
    """Return a configuration with one token."""
    return GitFriendsConfig(
        auth=AuthConfig(tokens=(TokenGrant(token="t", username="alice"),))
    )


@pytest.fixture
def client(config: GitFriendsConfig) -> falcon.testing.TestClient:
    """Create a test client for the runtime app."""
    from gitfriends.runtime import create_app

    return falcon.testing.TestClient(create_app(config))


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_200(self, client: falcon.testing.TestClient) -> None:
        """GET /health returns HTTP 200."""
        result = client.simulate_get("/health")
        assert result.status_code == HTTPStatus.OK

    def test_health_content_type_is_json(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health has application/json content type."""
        result = client.simulate_get("/health")
        content_type = result.headers.get("content-type", "")
        assert content_type.startswith("application/json")


class TestCreateApp:
    """Tests for the create_app factory function."""

    def test_create_app_returns_falcon_app(self, config: GitFriendsConfig) -> None:
        """create_app returns a Falcon ASGI App instance."""
        from gitfriends.runtime import create_app

        app = create_app(config)
        assert isinstance(app, falcon.asgi.App)

    def test_webhook_requires_token(self, client: falcon.testing.TestClient) -> None:
        """The runtime app enforces authentication on /webhook."""
        result = client.simulate_post("/webhook", json={})
        assert result.status_code == HTTPStatus.UNAUTHORIZED

    def test_create_app_loads_environment_config(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Without arguments the factory reads GITFRIENDS_* settings."""
        from gitfriends.runtime import create_app

        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GITFRIENDS_REQUIRE_AUTH", "false")
        app = create_app()
        assert isinstance(app, falcon.asgi.App)

    def test_broker_password_is_not_logged(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The startup log names the broker without its credentials."""
        from gitfriends import runtime

        log_info = mock.Mock()
        monkeypatch.setattr(runtime, "log_info", log_info)

        runtime.create_app(
            GitFriendsConfig(
                broker=BrokerConfig(url="redis://:hunter2@localhost:6379/0")
            )
        )

        logged = [str(arg) for call in log_info.call_args_list for arg in call.args]
        assert "redis://localhost:6379/0" in logged, "expected the broker address"
        assert not any("hunter2" in arg for arg in logged), "password leaked"


class TestBuildDependencies:
    """Tests for build_dependencies."""

    def test_wires_webhook_collaborators(self, config: GitFriendsConfig) -> None:
        """Authority, publisher, probe and lifecycle are all provided."""
        from gitfriends.runtime import build_dependencies

        deps = build_dependencies(config)

        assert deps.authority is not None, "expected an authority"
        assert deps.authority.validate("t") == "alice", "expected configured token"
        assert deps.publisher is not None, "expected a publisher"
        assert deps.publisher.router.prefix == "git-friends", "expected prefix"
        assert deps.lifecycle is not None, "expected lifecycle middleware"
        assert deps.readiness_probe is not None, "expected a readiness probe"


def test_main_serves_factory_with_granian(monkeypatch: pytest.MonkeyPatch) -> None:
    """main hands the factory path and bind address to Granian."""
    from gitfriends import runtime

    granian_cls = mock.Mock()
    monkeypatch.setattr("granian.Granian", granian_cls)
    monkeypatch.setattr(runtime, "configure_logging", lambda: ("INFO", False))

    runtime.main(GitFriendsConfig(server=ServerConfig(host="127.0.0.1", port=9999)))

    args, kwargs = granian_cls.call_args
    assert args == ("gitfriends.runtime:create_app",), "expected factory path"
    assert kwargs["factory"] is True, "expected factory mode"
    assert kwargs["address"] == "127.0.0.1", "expected bind address"
    assert kwargs["port"] == 9999, "expected bind port"
    granian_cls.return_value.serve.assert_called_once()
