"""Fan-out of updated daily logs to subscribers."""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from food_log.domain.logs import DailyLog


@dataclass
class LogPublisher:
    """Delivers the newest aggregate for a (user, day) key to listeners.

    Each listener holds at most one pending log; a newer publish replaces an
    unread older one.
    """

    _listeners: dict[tuple[str, str], set[asyncio.Queue[DailyLog]]] = field(
        default_factory=dict
    )

    def publish(self, user_id: str, log: DailyLog) -> None:
        for queue in self._listeners.get((user_id, log.id), set()):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(log)

    @contextmanager
    def listen(self, user_id: str, log_id: str) -> Iterator[asyncio.Queue[DailyLog]]:
        key = (user_id, log_id)
        queue: asyncio.Queue[DailyLog] = asyncio.Queue(maxsize=1)
        self._listeners.setdefault(key, set()).add(queue)
        try:
            yield queue
        finally:
            listeners = self._listeners.get(key)
            if listeners is not None:
                listeners.discard(queue)
                if not listeners:
                    del self._listeners[key]

    def listener_count(self, user_id: str, log_id: str) -> int:
        return len(self._listeners.get((user_id, log_id), ()))
