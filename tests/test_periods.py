"""
Tests for calculation periods.
"""

from datetime import date

import pytest

from sace.errors import UnknownPeriodError
from sace.periods import DatePeriods, PeriodType, parse_period_type


class TestDatePeriods:
    """Test period strings computed from a reference date."""

    def test_from_date(self):
        periods = DatePeriods.from_date(date(2025, 10, 15))
        assert periods.MONTH == "2025-10"
        assert periods.MONTH_NEXT == "2025-11"
        assert periods.YEAR == "2025"
        assert periods.YEAR_ROLLING == "month:2024-10:12"

    def test_december_rollover(self):
        periods = DatePeriods.from_date(date(2025, 12, 31))
        assert periods.MONTH == "2025-12"
        assert periods.MONTH_NEXT == "2026-01"

    def test_january(self):
        periods = DatePeriods.from_date(date(2026, 1, 1))
        assert periods.MONTH == "2026-01"
        assert periods.YEAR_ROLLING == "month:2025-01:12"

    def test_resolve(self):
        periods = DatePeriods.from_date(date(2025, 10, 15))
        assert periods.resolve(PeriodType.MONTH) == "2025-10"
        assert periods.resolve(PeriodType.YEAR) == "2025"
        assert periods.resolve(PeriodType.YEAR_ROLLING) == "month:2024-10:12"
        assert periods.resolve(PeriodType.ETERNITY) == "ETERNITY"

    def test_resolve_unknown(self):
        with pytest.raises(UnknownPeriodError):
            DatePeriods.from_date(date(2025, 10, 15)).resolve("WEEK")

    def test_defaults_to_today(self):
        today = date.today()
        assert DatePeriods.from_date().YEAR == f"{today.year:04d}"

    def test_immutable(self):
        periods = DatePeriods.from_date(date(2025, 10, 15))
        with pytest.raises(AttributeError):
            periods.MONTH = "2025-11"


class TestParsePeriodType:
    def test_known(self):
        assert parse_period_type("YEAR_ROLLING") is PeriodType.YEAR_ROLLING

    def test_unknown(self):
        with pytest.raises(UnknownPeriodError, match="WEEK"):
            parse_period_type("WEEK")
