"""Command-line entry point for the git-friends server, relay and tools.

Subcommands
-----------
``serve``
    Run the webhook server with Granian.
``relay``
    Subscribe to the broker and relay commits to IRC.
``generate-token USERNAME``
    Print a fresh token as a YAML snippet for the ``auth`` section.
``hook``
    Send a commit to the server, from a git hook or a CI job.
``test-commits``
    Publish mock commits straight to the broker.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

import msgspec
from ruamel.yaml import YAML

from gitfriends.auth import TokenGrant, generate_token
from gitfriends.broker import (
    ConnectionTimeoutError,
    EventPublisher,
    TopicRouter,
    broker_address,
    create_broker_client,
)
from gitfriends.commits import encode_commit_event
from gitfriends.config import CONFIG_ENV, ConfigError, GitFriendsConfig, load_config
from gitfriends.hook import (
    DEFAULT_MOCK_AUTHOR,
    DEFAULT_MOCK_BRANCH,
    DEFAULT_MOCK_REPOSITORY,
    DEFAULT_SERVER_URL,
    HookError,
    MockCommitSettings,
    WebhookClient,
    publish_mock_commits,
    resolve_commit,
)
from gitfriends.logging import (
    LOG_LEVEL_ENV,
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from gitfriends.relay.errors import ChatConnectionError

logger = get_logger(__name__)

TOKEN_ENV = "GITFRIENDS_TOKEN"
TESTER_ROLE = "tester"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-friends",
        description="Relay git commit notifications to IRC channels.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (defaults to ${CONFIG_ENV} or git-friends.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (defaults to ${LOG_LEVEL_ENV} or INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("serve", help="Run the webhook server")
    commands.add_parser("relay", help="Relay broker events to IRC")

    token = commands.add_parser("generate-token", help="Generate an auth token")
    token.add_argument("username", help="Identity the token publishes as")

    hook = commands.add_parser("hook", help="Send a commit to the server")
    hook.add_argument("--server-url", default=DEFAULT_SERVER_URL)
    hook.add_argument(
        "--token",
        default=None,
        help=f"Bearer token (defaults to ${TOKEN_ENV})",
    )
    hook.add_argument(
        "--commit", default=None, help="Commit to send (defaults to HEAD)"
    )
    hook.add_argument("--repo", type=Path, default=Path("."), help="Git checkout")
    hook.add_argument(
        "--github-actions",
        action="store_true",
        help="Force GitHub Actions mode (auto-detected by default)",
    )
    hook.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the event instead of sending it",
    )

    tester = commands.add_parser("test-commits", help="Publish mock commits")
    tester.add_argument("--count", type=int, default=5)
    tester.add_argument("--interval", type=float, default=2.0, help="Seconds")
    tester.add_argument("--continuous", action="store_true")
    tester.add_argument(
        "--username", default=None, help="Identity to publish as (topic segment)"
    )
    tester.add_argument("--repo-url", default=DEFAULT_MOCK_REPOSITORY)
    tester.add_argument("--author", default=DEFAULT_MOCK_AUTHOR)
    tester.add_argument("--branch", default=DEFAULT_MOCK_BRANCH)
    return parser


def _setup_logging(level: str | None) -> None:
    applied, invalid = configure_logging(level)
    if invalid:
        log_warning(logger, "Invalid log level, falling back to %s", applied)


def _serve(args: argparse.Namespace) -> int:
    from gitfriends.runtime import main as serve_main

    # Granian workers rebuild the app through the factory and read these.
    if args.config is not None:
        os.environ[CONFIG_ENV] = str(args.config)
    if args.log_level is not None:
        os.environ[LOG_LEVEL_ENV] = args.log_level
    config = load_config(args.config)
    serve_main(config)
    return 0


def _relay(config: GitFriendsConfig) -> int:
    from gitfriends.relay.runtime import run_relay

    try:
        asyncio.run(run_relay(config))
    except (ChatConnectionError, ConnectionTimeoutError) as exc:
        log_error(logger, "Relay stopped: %s", exc, exc_info=exc)
        return 1
    except KeyboardInterrupt:
        log_info(logger, "Relay interrupted")
    return 0


def _generate_token(username: str) -> int:
    grant = TokenGrant(token=generate_token(), username=username)
    yaml = YAML(typ="safe")
    yaml.default_flow_style = False
    print("# Add this entry to the auth section of git-friends.yaml")
    yaml.dump({"auth": {"tokens": [msgspec.to_builtins(grant)]}}, sys.stdout)
    return 0


async def _send_commit(args: argparse.Namespace) -> int:
    event = resolve_commit(
        args.repo, commit=args.commit, github_actions=args.github_actions
    )
    log_info(
        logger,
        "Commit info: %s by %s - %s",
        event.short_hash,
        event.author_name,
        event.summary,
    )

    if args.dry_run:
        print(f"DRY RUN - Would send to {args.server_url}")
        print(msgspec.json.format(encode_commit_event(event), indent=2).decode())
        return 0

    client = WebhookClient(args.server_url, args.token or os.environ.get(TOKEN_ENV))
    try:
        await client.send(event)
    finally:
        await client.aclose()
    return 0


def _hook(args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_send_commit(args))
    except HookError as exc:
        log_error(logger, "Hook failed: %s", exc)
        return 1


async def _publish_test_commits(
    config: GitFriendsConfig, args: argparse.Namespace
) -> int:
    client = create_broker_client(config.broker, TESTER_ROLE)
    router = TopicRouter(config.broker.topic_prefix, config.repositories.aliases)
    publisher = EventPublisher(client, router)
    settings = MockCommitSettings(
        repository_url=args.repo_url, author=args.author, branch=args.branch
    )
    try:
        await publisher.wait_for_connection(config.broker.connect_timeout_s)
        log_info(
            logger, "Connected to broker %s", broker_address(config.broker.url)
        )
        await publish_mock_commits(
            publisher,
            settings,
            count=args.count,
            interval_s=args.interval,
            continuous=args.continuous,
            identity=args.username,
        )
    finally:
        await client.aclose()
    return 0


def _test_commits(config: GitFriendsConfig, args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_publish_test_commits(config, args))
    except ConnectionTimeoutError as exc:
        log_error(logger, "Broker unavailable: %s", exc)
        return 1
    except KeyboardInterrupt:
        log_info(logger, "Stopped sending test commits")
        return 0


def main(argv: list[str] | None = None) -> int:
    """Run a git-friends subcommand.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration, connection or delivery
        failures.

    """
    args = _build_parser().parse_args(argv)

    if args.command == "generate-token":
        return _generate_token(args.username)

    try:
        if args.command == "serve":
            return _serve(args)

        _setup_logging(args.log_level)
        if args.command == "hook":
            return _hook(args)

        config = load_config(args.config)
        if args.command == "relay":
            return _relay(config)
        return _test_commits(config, args)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
