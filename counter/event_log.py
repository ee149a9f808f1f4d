"""Newest-first log of request arrivals.

Pure data structure: no clock, no locking.  The window store decides when
to evict and serializes access.  Deque-based: O(1) insert at the front,
O(k) eviction of the k expired entries at the back.
"""

from collections import deque
from operator import attrgetter
from typing import Iterable, Iterator

from counter.record import Record


class EventLog:
    __slots__ = ("_buf",)

    def __init__(self):
        # _buf[0] is the newest arrival, _buf[-1] the oldest.
        self._buf: deque[Record] = deque()

    def push_front(self, record: Record) -> None:
        self._buf.appendleft(record)

    def evict_older_than(self, cutoff_ns: int) -> int:
        """Drop expired entries from the oldest end.  Returns how many went.

        Stops at the first entry that is still inside the window; everything
        in front of it is newer, so there is nothing left to check.
        """
        evicted = 0
        while self._buf and self._buf[-1].is_older_than(cutoff_ns):
            self._buf.pop()
            evicted += 1
        return evicted

    def oldest_first(self) -> Iterator[Record]:
        return reversed(self._buf)

    def reset_from(self, records: Iterable[Record]) -> None:
        """Replace the contents, restoring newest-first order whatever the input order.

        Ties keep their input order when read back through oldest_first(), so
        a dump/load cycle reproduces the same file.
        """
        buf = deque()
        for record in sorted(records, key=attrgetter("occurred_at")):
            buf.appendleft(record)
        self._buf = buf

    def __len__(self) -> int:
        return len(self._buf)
