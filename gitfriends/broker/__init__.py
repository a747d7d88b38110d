"""Broker topics, publishing and the subscriber-side supervisor."""

from __future__ import annotations

from .connection import (
    broker_address,
    create_broker_client,
    wait_for_connection,
)
from .errors import (
    BrokerError,
    BrokerTransportError,
    ConnectionTimeoutError,
    PublishError,
    QueueClosedError,
)
from .publisher import EventPublisher
from .queue import EventQueue
from .session import BrokerEvent, BrokerEventKind, BrokerSubscription
from .supervisor import ConnectionSupervisor, SupervisorStats
from .topics import TopicRouter, sanitize_repo_url

__all__ = [
    "BrokerError",
    "BrokerEvent",
    "BrokerEventKind",
    "BrokerSubscription",
    "BrokerTransportError",
    "ConnectionSupervisor",
    "ConnectionTimeoutError",
    "EventPublisher",
    "EventQueue",
    "PublishError",
    "QueueClosedError",
    "SupervisorStats",
    "TopicRouter",
    "broker_address",
    "create_broker_client",
    "sanitize_repo_url",
    "wait_for_connection",
]
