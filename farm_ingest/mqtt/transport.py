"""Abstract interface for the pub/sub transport.

Decouples the registry and the receiver from paho-mqtt so tests can supply a
mock transport. Wildcards (`+`, `#`) are evaluated by the broker.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

MessageHandler = Callable[[str, Any], Any]


class MessageTransport(ABC):
    """Pub/sub transport.

    Implementations:
    - MQTTClient: paho-mqtt
    """

    @abstractmethod
    def connect(self) -> bool:
        """Connect to the broker. Returns True once connected."""

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection."""

    @abstractmethod
    def subscribe(self, topic: str) -> None:
        """Subscribe to a topic or pattern. Raises on broker rejection."""

    @abstractmethod
    def unsubscribe(self, topic: str) -> None:
        """Unsubscribe from a topic or pattern. Raises on broker rejection."""

    @abstractmethod
    def set_message_handler(self, handler: MessageHandler) -> None:
        """Register the callback receiving (topic, payload)."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the broker connection is up."""
