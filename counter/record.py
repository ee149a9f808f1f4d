"""A single request arrival, as stored in the event log."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Record:
    occurred_at: int  # wall clock, ns since the Unix epoch
    origin: str       # remote address, diagnostics only

    def is_older_than(self, cutoff_ns: int) -> bool:
        return self.occurred_at < cutoff_ns
