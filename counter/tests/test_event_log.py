"""Tests for EventLog: ordering, eviction boundaries, reset."""

from counter.event_log import EventLog
from counter.record import Record


def _log(*timestamps):
    """Build a log by pushing timestamps in order (last one ends up newest)."""
    log = EventLog()
    for ts in timestamps:
        log.push_front(Record(ts, f"10.0.0.1:{ts}"))
    return log


class TestPushFront:
    def test_empty_log_has_length_zero(self):
        assert len(EventLog()) == 0

    def test_push_increments_length(self):
        log = _log(1, 2, 3)
        assert len(log) == 3

    def test_oldest_first_reverses_insertion_order(self):
        log = _log(10, 20, 30)
        assert [r.occurred_at for r in log.oldest_first()] == [10, 20, 30]

    def test_identical_arrivals_are_kept(self):
        """No duplicate suppression: two equal records are two requests."""
        log = EventLog()
        r = Record(100, "10.0.0.1:5000")
        log.push_front(r)
        log.push_front(r)
        assert len(log) == 2


class TestEviction:
    def test_evicts_entries_strictly_older_than_cutoff(self):
        log = _log(10, 20, 30, 40)
        assert log.evict_older_than(25) == 2
        assert [r.occurred_at for r in log.oldest_first()] == [30, 40]

    def test_entry_exactly_at_cutoff_is_kept(self):
        """cutoff uses strict <, so occurred_at == cutoff stays."""
        log = _log(25, 30)
        assert log.evict_older_than(25) == 0
        assert len(log) == 2

    def test_evict_everything(self):
        log = _log(1, 2, 3)
        assert log.evict_older_than(100) == 3
        assert len(log) == 0
        assert list(log.oldest_first()) == []

    def test_evict_on_empty_log(self):
        assert EventLog().evict_older_than(100) == 0

    def test_eviction_is_idempotent(self):
        log = _log(10, 20, 30)
        log.evict_older_than(15)
        assert log.evict_older_than(15) == 0
        assert len(log) == 2

    def test_stops_at_first_fresh_entry(self):
        """Only the back is inspected: a stale entry behind a fresh one is not scanned for.

        Can't happen through push_front with a monotonic clock, but pins down
        that eviction walks from the oldest end and stops early.
        """
        log = EventLog()
        log.push_front(Record(50, "a"))
        log.push_front(Record(5, "b"))  # out of order, at the front
        assert log.evict_older_than(10) == 0
        assert len(log) == 2

    def test_len_does_not_evict(self):
        log = _log(1, 2, 3)
        assert len(log) == 3
        assert len(log) == 3


class TestResetFrom:
    def test_replaces_existing_contents(self):
        log = _log(1, 2, 3)
        log.reset_from([Record(100, "x")])
        assert [r.origin for r in log.oldest_first()] == ["x"]

    def test_accepts_oldest_first_input(self):
        log = EventLog()
        log.reset_from([Record(10, "a"), Record(20, "b"), Record(30, "c")])
        assert [r.origin for r in log.oldest_first()] == ["a", "b", "c"]

    def test_reorders_unsorted_input(self):
        log = EventLog()
        log.reset_from([Record(30, "c"), Record(10, "a"), Record(20, "b")])
        assert [r.origin for r in log.oldest_first()] == ["a", "b", "c"]
        # Newest-first invariant holds, so eviction works from the right end.
        assert log.evict_older_than(15) == 1
        assert [r.origin for r in log.oldest_first()] == ["b", "c"]

    def test_equal_timestamps_keep_input_order(self):
        log = EventLog()
        log.reset_from([Record(10, "first"), Record(10, "second"), Record(20, "third")])
        assert [r.origin for r in log.oldest_first()] == ["first", "second", "third"]

    def test_reset_from_own_output_is_unchanged(self):
        """Reloading a snapshot must write back the same snapshot, ties included."""
        log = EventLog()
        log.reset_from([Record(5, "a"), Record(5, "b"), Record(5, "c"), Record(7, "d")])
        first = list(log.oldest_first())
        log.reset_from(first)
        assert list(log.oldest_first()) == first

    def test_equal_timestamps_then_push_front(self):
        log = EventLog()
        log.reset_from([Record(10, "first"), Record(10, "second")])
        log.push_front(Record(11, "new"))
        assert [r.origin for r in log.oldest_first()] == ["first", "second", "new"]

    def test_accepts_generator(self):
        log = EventLog()
        log.reset_from(Record(ts, "g") for ts in (1, 2, 3))
        assert len(log) == 3

    def test_reset_to_empty(self):
        log = _log(1, 2)
        log.reset_from([])
        assert len(log) == 0

