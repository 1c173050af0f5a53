# labflow/identifiers/generator.py
"""
Period-scoped sequential identifiers (patient LN, visit number).

An identifier is ``prefix + zero-padded sequence`` where the prefix is the
period bucket derived from a date (see ``periods.PeriodRule``).  Numbering
restarts at 1 in every bucket.

Two layers:

- ``IdentifierGenerator.propose`` reads the store and proposes the next free
  candidate.  It never writes, so its answer can be stale by the time the
  caller inserts.
- ``allocate`` is the commit-time arbiter: it runs the caller's insert inside
  a savepoint and regenerates when the unique constraint rejects the value.

The store's unique constraint guards against duplicates among live rows.  An
optional ``SequenceLedger`` keeps the per-bucket high-water mark so a number
freed by a deletion is never handed out again.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Protocol, TypeVar

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from labflow.identifiers.exceptions import IdentifierExhausted, UniquenessConflict
from labflow.identifiers.models import IdentifierSequence
from labflow.identifiers.periods import PeriodRule, configured_rule

logger = logging.getLogger(__name__)

SUFFIX_WIDTH = 4
DEFAULT_MAX_ATTEMPTS = 10

T = TypeVar("T")


class IdentifierSource(Protocol):
    """
    Read access to the identifiers already committed for one entity type.
    """

    def identifiers_with_prefix(self, prefix: str) -> Iterable[str]:
        ...

    def exists(self, identifier: str) -> bool:
        ...


class ModelFieldSource:
    """
    IdentifierSource over a Django model field (prefix match via ``startswith``).
    """

    def __init__(self, model, field: str):
        self.model = model
        self.field = field

    def identifiers_with_prefix(self, prefix: str) -> Iterable[str]:
        return (
            self.model.objects.filter(**{f"{self.field}__startswith": prefix})
            .values_list(self.field, flat=True)
        )

    def exists(self, identifier: str) -> bool:
        return self.model.objects.filter(**{self.field: identifier}).exists()

    def __repr__(self) -> str:
        return f"ModelFieldSource({self.model.__name__}.{self.field})"


class SequenceLedger(Protocol):
    """
    Highest sequence ever issued per bucket, surviving deletions.
    """

    def high_water(self, prefix: str) -> int:
        ...

    def record(self, prefix: str, value: int) -> None:
        ...


class ModelSequenceLedger:
    """
    SequenceLedger over IdentifierSequence rows, one per (name, prefix).

    ``record`` locks the bucket row, so concurrent allocations in one bucket
    are serialized until the surrounding transaction commits.
    """

    def __init__(self, name: str):
        self.name = name

    def high_water(self, prefix: str) -> int:
        value = (
            IdentifierSequence.objects.filter(name=self.name, prefix=prefix)
            .values_list("last_value", flat=True)
            .first()
        )
        return value or 0

    def record(self, prefix: str, value: int) -> None:
        seq, _ = IdentifierSequence.objects.select_for_update().get_or_create(name=self.name, prefix=prefix)
        if value > seq.last_value:
            seq.last_value = value
            seq.save(update_fields=["last_value", "updated_at"])

    def __repr__(self) -> str:
        return f"ModelSequenceLedger({self.name})"


def parse_suffix(identifier: str | None, prefix: str) -> int | None:
    """
    Numeric sequence after ``prefix``, or None when the value is not ours.

    Reads everything after the prefix (not a fixed 4 characters), so values
    past the soft limit (e.g. ``"670310000"``) still parse as 10000.
    """
    if not identifier or not identifier.startswith(prefix):
        return None
    tail = identifier[len(prefix):]
    if not tail or not (tail.isascii() and tail.isdigit()):
        return None
    return int(tail)


def next_sequence(identifiers: Iterable[str], prefix: str) -> int:
    highest = 0
    for identifier in identifiers:
        n = parse_suffix(identifier, prefix)
        if n is not None and n > highest:
            highest = n
    return highest + 1


def format_identifier(prefix: str, sequence: int, width: int = SUFFIX_WIDTH) -> str:
    return f"{prefix}{sequence:0{width}d}"


class IdentifierGenerator:
    def __init__(
        self,
        source: IdentifierSource,
        *,
        rule: PeriodRule | None = None,
        width: int = SUFFIX_WIDTH,
        max_attempts: int | None = None,
        label: str = "identifier",
        today: Callable[[], date] | None = None,
        ledger: SequenceLedger | None = None,
    ):
        self.source = source
        self.ledger = ledger
        self.rule = rule or configured_rule()
        self.width = width
        self.max_attempts = max_attempts or getattr(
            settings, "LABFLOW_IDENTIFIER_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS
        )
        self.label = label
        self.today = today or timezone.localdate

    def prefix_for(self, when: date | None = None) -> str:
        return self.rule.prefix_for(when or self.today())

    def is_well_formed(self, identifier: str | None, when: date | None = None) -> bool:
        """
        True if ``identifier`` belongs to the bucket of ``when`` with a full-width suffix.
        """
        prefix = self.prefix_for(when)
        n = parse_suffix(identifier, prefix)
        return n is not None and n > 0 and len(identifier) - len(prefix) >= self.width

    def accepts(self, identifier: str | None, when: date | None = None) -> bool:
        """
        True if ``identifier`` is exactly the next number of its bucket.

        Anything else (a gap left by a deleted row, a jump ahead) is refused
        so a client cannot reuse numbers or skip into the overflow range.
        """
        if not self.is_well_formed(identifier, when):
            return False
        prefix = self.prefix_for(when)
        return parse_suffix(identifier, prefix) == self.next_for(prefix)

    def next_for(self, prefix: str) -> int:
        sequence = next_sequence(self.source.identifiers_with_prefix(prefix), prefix)
        if self.ledger is not None:
            sequence = max(sequence, self.ledger.high_water(prefix) + 1)
        return sequence

    def record(self, identifier: str, when: date | None = None) -> None:
        if self.ledger is None:
            return
        prefix = self.prefix_for(when)
        n = parse_suffix(identifier, prefix)
        if n is not None:
            self.ledger.record(prefix, n)

    def propose(self, when: date | None = None) -> str:
        prefix = self.prefix_for(when)

        for attempt in range(1, self.max_attempts + 1):
            sequence = self.next_for(prefix)
            candidate = format_identifier(prefix, sequence, self.width)

            if not self.source.exists(candidate):
                if sequence >= 10 ** self.width:
                    logger.warning(
                        "%s bucket %s passed %s entries; %s is wider than %s digits",
                        self.label, prefix, 10 ** self.width - 1, candidate, self.width,
                    )
                return candidate

            logger.info(
                "%s candidate %s was taken concurrently (attempt %s/%s)",
                self.label, candidate, attempt, self.max_attempts,
            )

        logger.error("%s generation exhausted %s attempts for bucket %s", self.label, self.max_attempts, prefix)
        raise IdentifierExhausted()


def allocate(
    generator: IdentifierGenerator,
    insert: Callable[[str], T],
    *,
    requested: str | None = None,
    when: date | None = None,
    savepoint: Callable = transaction.atomic,
) -> T:
    """
    Insert a row carrying a fresh identifier and return ``insert``'s result.

    ``requested`` (a client-side preview) is used only if it is still the
    next number of its bucket.  When the unique constraint rejects the
    identifier a new one is generated, up to ``generator.max_attempts``
    inserts.  A violation on any other unique field raises
    ``UniquenessConflict``.
    """
    candidate = requested or None
    if candidate is not None and not generator.accepts(candidate, when):
        logger.info("Ignoring stale or out-of-sequence %s proposal %r", generator.label, candidate)
        candidate = None

    for attempt in range(1, generator.max_attempts + 1):
        if candidate is None or generator.source.exists(candidate):
            candidate = generator.propose(when)

        try:
            with savepoint():
                row = insert(candidate)
                generator.record(candidate, when)
                return row
        except IntegrityError as exc:
            if not generator.source.exists(candidate):
                raise UniquenessConflict() from exc
            logger.info(
                "%s %s lost an insert race (attempt %s/%s); regenerating",
                generator.label, candidate, attempt, generator.max_attempts,
            )
            candidate = None

    logger.error("%s allocation exhausted %s insert attempts", generator.label, generator.max_attempts)
    raise IdentifierExhausted()
