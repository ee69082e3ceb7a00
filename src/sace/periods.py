"""
Calculation periods.

The external engine records every variable value under a period key:
a month ("2025-10"), a year ("2025"), a rolling year
("month:2024-10:12") or eternity ("ETERNITY").

Periods are derived from a single reference date so that one compilation
always resolves the same period type to the same string.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from sace.constants import ETERNITY_PERIOD
from sace.errors import UnknownPeriodError


class PeriodType(Enum):
    """Period granularity declared by a mapping."""

    ETERNITY = "ETERNITY"
    YEAR = "YEAR"
    YEAR_ROLLING = "YEAR_ROLLING"
    MONTH = "MONTH"


def parse_period_type(value: str) -> PeriodType:
    try:
        return PeriodType(value)
    except ValueError:
        raise UnknownPeriodError(f"Unknown period type: {value!r}")


@dataclass(frozen=True)
class DatePeriods:
    """
    Period strings computed once from a reference date.

    Properties:
        MONTH: Current month, "YYYY-MM"
        MONTH_NEXT: Following month, "YYYY-MM"
        YEAR: Current year, "YYYY"
        YEAR_ROLLING: Twelve months ending with the current one, in the
            engine's "month:YYYY-MM:12" notation starting one year back
    """

    MONTH: str
    MONTH_NEXT: str
    YEAR: str
    YEAR_ROLLING: str

    @classmethod
    def from_date(cls, reference: Optional[date] = None) -> DatePeriods:
        today = reference or date.today()
        next_year, next_month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
        return cls(
            MONTH=f"{today.year:04d}-{today.month:02d}",
            MONTH_NEXT=f"{next_year:04d}-{next_month:02d}",
            YEAR=f"{today.year:04d}",
            YEAR_ROLLING=f"month:{today.year - 1:04d}-{today.month:02d}:12",
        )

    def resolve(self, period_type: PeriodType) -> str:
        """
        Return the period string for a period type.

        Raises:
            UnknownPeriodError: If period_type is not a PeriodType
        """
        if period_type is PeriodType.MONTH:
            return self.MONTH
        if period_type is PeriodType.YEAR:
            return self.YEAR
        if period_type is PeriodType.YEAR_ROLLING:
            return self.YEAR_ROLLING
        if period_type is PeriodType.ETERNITY:
            return ETERNITY_PERIOD
        raise UnknownPeriodError(f"Unknown period type: {period_type!r}")
