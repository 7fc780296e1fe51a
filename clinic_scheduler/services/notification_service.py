"""
User Notification Service
Collects the transient messages (toasts) shown to the user after an action
Every remote failure reaches the user through exactly one Notifier call
"""

import logging
from collections import deque
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

Level = Literal["success", "info", "error"]


class Notification(BaseModel):
    level: Level
    message: str
    created_at: datetime = Field(default_factory=datetime.now)


class Notifier:
    """Bounded queue of user-facing messages, newest last"""

    def __init__(self, max_items: int = 50):
        self._items: deque[Notification] = deque(maxlen=max_items)

    def _push(self, level: Level, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self._items.append(notification)
        return notification

    def success(self, message: str) -> Notification:
        logger.info(f"✅ {message}")
        return self._push("success", message)

    def info(self, message: str) -> Notification:
        logger.info(f"ℹ️ {message}")
        return self._push("info", message)

    def error(self, message: str) -> Notification:
        logger.warning(f"⚠️ Shown to user: {message}")
        return self._push("error", message)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def latest(self, level: Optional[Level] = None) -> Optional[Notification]:
        for notification in reversed(self._items):
            if level is None or notification.level == level:
                return notification
        return None

    def drain(self) -> list[Notification]:
        """Hand the pending messages to the UI and forget them"""
        items = list(self._items)
        self._items.clear()
        return items
