"""
User-visible notifications and the best-effort telemetry channel.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional, Set

from ..models.core import Session
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import utc_now
from .collaborators import TelemetryCollaborator

logger = get_logger(__name__)


@dataclass
class Notification:
    level: str
    message: str
    created_at: datetime = field(default_factory=utc_now)


class Notifier:
    """Collects toast-style notifications for the current surface to display."""

    def __init__(self, max_history: int = 50):
        self._history: Deque[Notification] = deque(maxlen=max_history)
        self._listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def success(self, message: str) -> Notification:
        return self._push('success', message)

    def error(self, message: str) -> Notification:
        return self._push('error', message)

    def info(self, message: str) -> Notification:
        return self._push('info', message)

    def _push(self, level: str, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self._history.append(notification)
        logger.debug(f'Notification [{level}]: {message}')
        for listener in list(self._listeners):
            listener(notification)
        return notification

    @property
    def history(self) -> List[Notification]:
        return list(self._history)

    def drain(self) -> List[Notification]:
        """Return and forget everything not yet shown."""
        pending = list(self._history)
        self._history.clear()
        return pending


class TelemetryDispatcher:
    """Fire-and-forget event channel.

    ``emit`` invokes the collaborator immediately and schedules the returned
    coroutine on the running loop. Errors, both synchronous and from the
    scheduled task, are logged and dropped; they never reach the caller.
    """

    def __init__(self, collaborator: Optional[TelemetryCollaborator]):
        self.collaborator = collaborator
        self._tasks: Set[asyncio.Task] = set()

    def emit(self, session: Optional[Session], name: str, attributes: Dict[str, Any]) -> None:
        if self.collaborator is None:
            return

        try:
            pending = self.collaborator.track(session, name, dict(attributes))
        except Exception as e:
            logger.debug(f'Telemetry event {name} dropped: {e}')
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f'No running event loop, telemetry event {name} dropped')
            if asyncio.iscoroutine(pending):
                pending.close()
            return

        task = loop.create_task(self._deliver(name, pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _deliver(name: str, pending) -> None:
        try:
            await pending
            logger.debug(f'Telemetry event {name} delivered')
        except Exception as e:
            logger.debug(f'Telemetry event {name} failed: {e}')

    async def flush(self) -> None:
        """Wait for in-flight events. Used on shutdown and in tests."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
