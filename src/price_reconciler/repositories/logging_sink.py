"""Logging implementation of NotificationSink."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class LoggingNotificationSink:
    """Write observability events to the package logger.

    This class satisfies the NotificationSink protocol through structural
    typing. It keeps the most recent payload per event for inspection.
    """

    def __init__(self, level: int = logging.DEBUG) -> None:
        self._level = level
        self._last: dict[str, dict[str, Any]] = {}

    def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Log one event and remember it."""
        self._last[event] = payload
        logger.log(self._level, "%s: %s", event, payload)

    def last(self, event: str) -> dict[str, Any] | None:
        """Return the most recent payload for an event, if any."""
        return self._last.get(event)
