"""
============================================================================
TRICKLE MONITOR - STATUS LOG
============================================================================
Fixed-capacity ring buffer of status-change events. It is the only state
the monitor keeps, and it is lost on restart.

The monitoring engine is the only writer; the HTTP front door reads it.
Readers take a snapshot under the lock and format it after releasing it,
so a slow reader never holds up an append.
============================================================================
"""

import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from config.constants import Defaults, ReachabilityStatus


@dataclass(frozen=True)
class StatusChange:
    """A transition of the target's reachability, stamped in epoch seconds."""
    up: bool
    time: int

    @property
    def status(self) -> ReachabilityStatus:
        return ReachabilityStatus.from_bool(self.up)

    def render(self) -> str:
        """``"<epoch-seconds>: UP"`` or ``"<epoch-seconds>: DOWN"``."""
        return f"{self.time}: {self.status.value}"


class StatusLog:
    """
    Thread-safe circular buffer of ``StatusChange`` entries.

    ``push`` is O(1); once ``count`` reaches ``capacity`` each push
    overwrites the oldest entry. Iteration always yields entries oldest
    first, whatever the position of the write cursor.

    The log does not deduplicate. Collapsing repeated outcomes is the
    writer's job.
    """

    def __init__(self, capacity: int = Defaults.LOG_CAPACITY):
        if capacity < 1:
            raise ValueError("StatusLog capacity must be at least 1")
        self._capacity = capacity
        self._buf: List[Optional[StatusChange]] = [None] * capacity
        self._head = 0
        self._count = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, entry: StatusChange) -> None:
        """Append ``entry``, evicting the oldest one when full."""
        with self._lock:
            self._buf[self._head] = entry
            self._head = (self._head + 1) % self._capacity
            if self._count < self._capacity:
                self._count += 1

    def snapshot(self) -> Tuple[StatusChange, ...]:
        """Copy of the valid entries in chronological order."""
        with self._lock:
            start = self._head - self._count
            return tuple(
                self._buf[(start + i) % self._capacity]
                for i in range(self._count)
            )

    def iterate(self) -> Tuple[StatusChange, ...]:
        """
        Chronological view of the log, oldest first.

        The returned sequence is a snapshot: it can be traversed any number
        of times and is unaffected by pushes that happen afterwards.
        """
        return self.snapshot()

    def latest(self) -> Optional[StatusChange]:
        """Most recently pushed entry, if any."""
        with self._lock:
            if not self._count:
                return None
            return self._buf[(self._head - 1) % self._capacity]

    def render(self) -> str:
        """Newline separated lines, oldest first, no trailing newline."""
        return "\n".join(entry.render() for entry in self.snapshot())

    def __iter__(self) -> Iterator[StatusChange]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return self._count

    def __repr__(self) -> str:
        return f"StatusLog(capacity={self._capacity}, count={len(self)})"
