# labflow/identifiers/periods.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from django.conf import settings

BUDDHIST_ERA_OFFSET = 543

ERA_BUDDHIST = "buddhist"
ERA_GREGORIAN = "gregorian"
ERAS = (ERA_BUDDHIST, ERA_GREGORIAN)

GRANULARITY_MONTH = "month"
GRANULARITY_DAY = "day"
GRANULARITIES = (GRANULARITY_MONTH, GRANULARITY_DAY)


@dataclass(frozen=True)
class PeriodRule:
    """
    Turns a date into the period bucket prefix that scopes a sequence.

        PeriodRule("buddhist", "month").prefix_for(date(2024, 3, 15)) == "6703"
        PeriodRule("gregorian", "day").prefix_for(date(2024, 3, 15)) == "240315"
    """
    era: str = ERA_BUDDHIST
    granularity: str = GRANULARITY_MONTH

    def __post_init__(self):
        if self.era not in ERAS:
            raise ValueError(f"Unknown era {self.era!r}; expected one of {ERAS}")
        if self.granularity not in GRANULARITIES:
            raise ValueError(f"Unknown granularity {self.granularity!r}; expected one of {GRANULARITIES}")

    def year_for(self, when: date) -> int:
        if self.era == ERA_BUDDHIST:
            return when.year + BUDDHIST_ERA_OFFSET
        return when.year

    def prefix_for(self, when: date | datetime) -> str:
        if isinstance(when, datetime):
            when = when.date()
        prefix = f"{self.year_for(when) % 100:02d}{when.month:02d}"
        if self.granularity == GRANULARITY_DAY:
            prefix += f"{when.day:02d}"
        return prefix


def configured_rule() -> PeriodRule:
    """
    The project-wide period policy (LABFLOW_IDENTIFIER_PERIOD).
    """
    cfg = getattr(settings, "LABFLOW_IDENTIFIER_PERIOD", None) or {}
    return PeriodRule(
        era=cfg.get("era", ERA_BUDDHIST),
        granularity=cfg.get("granularity", GRANULARITY_MONTH),
    )
