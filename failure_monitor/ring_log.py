"""
Bounded, thread-safe diagnostic log shared by every request handler.

One RingLog is created per process in the application lifespan and handed to
the sinks and routes that report outcomes. Entries are never mutated; once the
capacity is reached the oldest entry is dropped for each new one.
"""

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


def utc_isoformat(moment: datetime | None = None) -> str:
    """Render a UTC timestamp as `2024-01-31T12:00:00.000Z`."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class RingLog:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def record(self, message: str) -> LogEntry:
        with self._lock:
            # Stamped under the lock so entry order and timestamp order agree.
            entry = LogEntry(timestamp=utc_isoformat(), message=message)
            self._entries.append(entry)
        logger.info(message, extra={"ring_log_timestamp": entry.timestamp})
        return entry

    def recent(self, n: int) -> list[LogEntry]:
        """Return the last `n` entries, oldest first."""
        if n <= 0:
            return []
        with self._lock:
            entries = list(self._entries)
        return entries[-n:]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
