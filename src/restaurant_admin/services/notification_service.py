"""User-facing notification channel.

Resource repositories report the outcome of every gateway operation here in
domain terms ("Failed to load menu items"). The channel is fire-and-forget:
nothing in the data pipeline reads it back for control flow.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    """Severity of a notification."""

    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """Transient message shown to staff."""

    level: NotificationLevel
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Notifier(ABC):
    """Destination for transient success/failure notifications."""

    @abstractmethod
    def notify(self, level: NotificationLevel, message: str) -> None:
        """Publish a notification."""

    def success(self, message: str) -> None:
        self.notify(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self.notify(NotificationLevel.ERROR, message)


class NotificationFeed(Notifier):
    """In-memory feed holding the most recent notifications.

    Older notifications are dropped once ``max_size`` is reached.
    """

    def __init__(self, max_size: int = 50) -> None:
        """Initialize the feed.

        Args:
            max_size: Maximum number of notifications retained

        Raises:
            ValueError: If max_size is not positive
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self._notifications: deque[Notification] = deque(maxlen=max_size)

    def notify(self, level: NotificationLevel, message: str) -> None:
        self._notifications.append(Notification(level=level, message=message))
        logger.info(f"Notification ({level.value}): {message}")

    def peek(self) -> list[Notification]:
        """Return pending notifications, oldest first, without removing them."""
        return list(self._notifications)

    def drain(self) -> list[Notification]:
        """Return pending notifications, oldest first, and clear the feed."""
        notifications = list(self._notifications)
        self._notifications.clear()
        return notifications

    def __len__(self) -> int:
        return len(self._notifications)
