"""Window store: the sliding-window request counter.

Request handler threads call record() and count().  record() only enqueues;
a single background worker drains the queue into the event log, so the log
has exactly one writer.  Readers take the same lock, evict whatever has
fallen out of the window, and read.

Persistence is best-effort: load() at construction, dump() at shutdown.
Neither ever breaks counting.
"""

import queue
import sys
import threading
import time
from pathlib import Path

from counter.event_log import EventLog
from counter.persistence import read_records, write_records
from counter.record import Record

_NANOS_PER_SECOND = 1_000_000_000


class WindowStore:

    def __init__(self, window_seconds: int, persistence_path: str | Path = ""):
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.window_seconds = window_seconds
        self.persistence_path = str(persistence_path) if persistence_path else ""
        self._window_ns = window_seconds * _NANOS_PER_SECOND

        self._log = EventLog()
        self._lock = threading.Lock()
        self._inbox: queue.Queue[Record] = queue.Queue()  # unbounded, no backpressure

        self.load()

        self._worker = threading.Thread(
            target=self._process_input, name="window-store-ingest", daemon=True,
        )
        self._worker.start()

    # ------------------------------------------------------------------
    # Live counting path
    # ------------------------------------------------------------------

    def record(self, origin: str) -> None:
        """Submit one arrival.  Fire-and-forget: returns as soon as it's queued."""
        self._inbox.put(Record(occurred_at=time.time_ns(), origin=origin))

    def count(self) -> int:
        """Number of arrivals inside the trailing window right now.

        Eventually consistent with record(): an arrival still waiting in the
        queue is not counted until the worker has drained it.
        """
        with self._lock:
            self._evict()
            return len(self._log)

    def snapshot(self) -> list[Record]:
        """Current window contents, oldest first."""
        with self._lock:
            self._evict()
            return list(self._log.oldest_first())

    def restore(self, records: list[Record]) -> int:
        """Replace the log with *records*, minus anything already outside the window.

        Returns how many records survived the horizon filter.
        """
        with self._lock:
            cutoff = time.time_ns() - self._window_ns
            self._log.reset_from(r for r in records if not r.is_older_than(cutoff))
            return len(self._log)

    def wait_drained(self) -> None:
        """Block until every arrival submitted so far is in the log."""
        self._inbox.join()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Restore from the snapshot file.  Never raises; the store stays as-is on failure."""
        if not self.persistence_path:
            return
        try:
            records = read_records(self.persistence_path)
        except FileNotFoundError:
            print(f"No snapshot at {self.persistence_path}, starting empty")
            return
        except OSError as e:
            print(f"Cannot read file {self.persistence_path}: {e}", file=sys.stderr)
            return
        except ValueError as e:
            print(f"Cannot parse snapshot {self.persistence_path}: {e}", file=sys.stderr)
            return

        kept = self.restore(records)
        print(f"Restored {kept} of {len(records)} requests "
              f"from {self.persistence_path}")

    def dump(self) -> None:
        """Write the current window to the snapshot file.

        Raises PersistenceError if the snapshot can't be written; the caller
        decides how loudly to complain.
        """
        if not self.persistence_path:
            return
        write_records(self.persistence_path, self.snapshot())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _process_input(self):
        while True:
            record = self._inbox.get()
            with self._lock:
                self._log.push_front(record)
            self._inbox.task_done()

    def _evict(self) -> int:
        # Caller holds self._lock.
        return self._log.evict_older_than(time.time_ns() - self._window_ns)
