import contextlib
import logging
import threading
from datetime import date

import pytest
from django.db import IntegrityError

from labflow.identifiers.exceptions import IdentifierExhausted, UniquenessConflict
from labflow.identifiers.generator import (
    IdentifierGenerator,
    allocate,
    format_identifier,
    next_sequence,
    parse_suffix,
)
from labflow.identifiers.periods import PeriodRule

MARCH_15 = date(2024, 3, 15)
GREGORIAN_MONTH = PeriodRule("gregorian", "month")


class MemoryStore:
    """
    Thread-safe stand-in for a table with a unique identifier column.
    """

    def __init__(self, initial=()):
        self._ids = set(initial)
        self._lock = threading.Lock()

    def identifiers_with_prefix(self, prefix):
        with self._lock:
            return [i for i in self._ids if i.startswith(prefix)]

    def exists(self, identifier):
        with self._lock:
            return identifier in self._ids

    def insert(self, identifier):
        with self._lock:
            if identifier in self._ids:
                raise IntegrityError(f"duplicate identifier {identifier}")
            self._ids.add(identifier)
            return identifier

    def __len__(self):
        return len(self._ids)


class RacingStore(MemoryStore):
    """
    Another writer takes every proposal before we can see it as free,
    ``steals`` times.
    """

    def __init__(self, steals, initial=()):
        super().__init__(initial)
        self.steals = steals

    def exists(self, identifier):
        with self._lock:
            if identifier not in self._ids and self.steals > 0:
                self.steals -= 1
                self._ids.add(identifier)
            return identifier in self._ids


def make_generator(store, rule=GREGORIAN_MONTH, **kwargs):
    return IdentifierGenerator(store, rule=rule, today=lambda: MARCH_15, **kwargs)


def add(generator, when=None):
    return allocate(generator, generator.source.insert, when=when, savepoint=contextlib.nullcontext)


# ---------------------------------------------------------------------------
# suffix parsing
# ---------------------------------------------------------------------------
def test_parse_suffix_reads_text_after_prefix():
    assert parse_suffix("24030004", "2403") == 4
    assert parse_suffix("240310000", "2403") == 10000


def test_parse_suffix_ignores_foreign_and_garbage_values():
    assert parse_suffix("24020004", "2403") is None
    assert parse_suffix("2403ABCD", "2403") is None
    assert parse_suffix("2403", "2403") is None
    assert parse_suffix(None, "2403") is None


def test_next_sequence_is_max_plus_one_ignoring_unparsable():
    ids = ["24030001", "24030003", "2403XXXX", "24030002"]
    assert next_sequence(ids, "2403") == 4


def test_next_sequence_empty_bucket_starts_at_one():
    assert next_sequence([], "2403") == 1
    assert next_sequence(["2403oops"], "2403") == 1


def test_format_identifier_zero_pads():
    assert format_identifier("6703", 7) == "67030007"


# ---------------------------------------------------------------------------
# propose / allocate
# ---------------------------------------------------------------------------
def test_scenario_fourth_visit_of_march_2024():
    store = MemoryStore(["24030001", "24030002", "24030003"])
    assert make_generator(store).propose(MARCH_15) == "24030004"


def test_sequential_generation_is_monotonic_from_one():
    store = MemoryStore()
    gen = make_generator(store)

    ids = [add(gen) for _ in range(5)]

    assert ids == ["24030001", "24030002", "24030003", "24030004", "24030005"]


def test_buckets_are_independent():
    store = MemoryStore(["24030009"])
    gen = make_generator(store)

    assert gen.propose(date(2024, 4, 1)) == "24040001"
    assert gen.propose(MARCH_15) == "24030010"


def test_buddhist_rule_uses_buddhist_prefix():
    store = MemoryStore(["67030041"])
    gen = make_generator(store, rule=PeriodRule("buddhist", "month"))
    assert gen.propose() == "67030042"


def test_propose_does_not_write():
    store = MemoryStore()
    gen = make_generator(store)
    assert gen.propose() == gen.propose() == "24030001"
    assert len(store) == 0


def test_propose_retries_when_candidate_taken_concurrently():
    store = RacingStore(steals=3)
    gen = make_generator(store)

    # three proposals were taken by the "other writer"; the fourth is free
    assert gen.propose() == "24030004"


def test_propose_raises_after_retry_budget():
    store = RacingStore(steals=100)
    gen = make_generator(store, max_attempts=10)

    with pytest.raises(IdentifierExhausted):
        gen.propose()


def test_overflow_past_9999_is_soft(caplog):
    store = MemoryStore([format_identifier("2403", n) for n in range(9990, 10000)])
    gen = make_generator(store)

    with caplog.at_level(logging.WARNING, logger="labflow.identifiers.generator"):
        first = add(gen)
        second = add(gen)

    assert first == "240310000"
    assert second == "240310001"
    assert any("wider than 4 digits" in r.getMessage() for r in caplog.records)


def test_allocate_uses_request_that_is_still_next():
    store = MemoryStore(["24030001"])
    gen = make_generator(store)

    got = allocate(gen, store.insert, requested="24030002", savepoint=contextlib.nullcontext)

    assert got == "24030002"


@pytest.mark.parametrize("ahead", ["24030007", "24039999", "240310000"])
def test_allocate_refuses_request_that_jumps_ahead(ahead):
    store = MemoryStore(["24030001"])
    gen = make_generator(store)

    got = allocate(gen, store.insert, requested=ahead, savepoint=contextlib.nullcontext)

    assert got == "24030002"
    assert not store.exists(ahead)


def test_allocate_refuses_request_filling_a_gap():
    store = MemoryStore(["24030001", "24030003"])
    gen = make_generator(store)

    got = allocate(gen, store.insert, requested="24030002", savepoint=contextlib.nullcontext)

    assert got == "24030004"


# ---------------------------------------------------------------------------
# high-water ledger
# ---------------------------------------------------------------------------
class MemoryLedger:
    def __init__(self):
        self.marks = {}

    def high_water(self, prefix):
        return self.marks.get(prefix, 0)

    def record(self, prefix, value):
        self.marks[prefix] = max(value, self.marks.get(prefix, 0))


def test_ledger_keeps_deleted_numbers_retired():
    store = MemoryStore()
    ledger = MemoryLedger()
    gen = make_generator(store, ledger=ledger)

    first, second = add(gen), add(gen)
    store._ids.discard(second)

    assert (first, second) == ("24030001", "24030002")
    assert ledger.marks == {"2403": 2}
    assert gen.propose() == "24030003"
    assert add(gen) == "24030003"


def test_ledger_defers_to_higher_live_rows():
    store = MemoryStore(["24030005"])
    ledger = MemoryLedger()
    ledger.record("2403", 2)
    gen = make_generator(store, ledger=ledger)

    assert gen.propose() == "24030006"


def test_ledger_is_not_written_when_insert_fails():
    store = MemoryStore()
    ledger = MemoryLedger()
    gen = make_generator(store, ledger=ledger)

    def insert(candidate):
        raise IntegrityError("UNIQUE constraint failed: patients_patient.id_card")

    with pytest.raises(UniquenessConflict):
        allocate(gen, insert, savepoint=contextlib.nullcontext)

    assert ledger.marks == {}


def test_allocate_replaces_taken_request():
    store = MemoryStore(["24030001"])
    gen = make_generator(store)

    got = allocate(gen, store.insert, requested="24030001", savepoint=contextlib.nullcontext)

    assert got == "24030002"


def test_allocate_replaces_malformed_request():
    store = MemoryStore()
    gen = make_generator(store)

    # wrong bucket, short suffix, not numeric
    for bad in ("23120001", "2403001", "2403abcd"):
        assert allocate(gen, store.insert, requested=bad, savepoint=contextlib.nullcontext).startswith("2403")

    assert sorted(store._ids) == ["24030001", "24030002", "24030003"]


def test_allocate_regenerates_after_losing_insert_race():
    store = MemoryStore()
    gen = make_generator(store)
    calls = []

    def insert(candidate):
        calls.append(candidate)
        if len(calls) == 1:
            # a concurrent writer commits the same number first
            store.insert(candidate)
        return store.insert(candidate)

    got = allocate(gen, insert, savepoint=contextlib.nullcontext)

    assert calls == ["24030001", "24030002"]
    assert got == "24030002"


def test_allocate_other_unique_violation_is_conflict():
    store = MemoryStore()
    gen = make_generator(store)

    def insert(candidate):
        raise IntegrityError("UNIQUE constraint failed: patients_patient.id_card")

    with pytest.raises(UniquenessConflict):
        allocate(gen, insert, savepoint=contextlib.nullcontext)


def test_allocate_exhausts_budget():
    store = MemoryStore()
    gen = make_generator(store, max_attempts=3)

    def insert(candidate):
        store.insert(candidate)  # always lose the race
        return store.insert(candidate)

    with pytest.raises(IdentifierExhausted):
        allocate(gen, insert, savepoint=contextlib.nullcontext)


@pytest.mark.parametrize("workers", [2, 5, 10])
def test_concurrent_allocation_yields_distinct_identifiers(workers):
    store = MemoryStore()
    gen = make_generator(store)
    barrier = threading.Barrier(workers)
    results, errors = [], []

    def worker():
        barrier.wait()
        try:
            results.append(add(gen))
        except Exception as exc:  # collected for the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(results) == workers
    assert len(set(results)) == workers
    assert all(r.startswith("2403") for r in results)
