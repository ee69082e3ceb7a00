"""
Birth-date standardization.

Two people of the same age should produce the same calculation request,
so that identical requests can be cached upstream. Every individual's
birth date is replaced by 1 January of the year matching their age.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def age_on(birth_date: date, today: date) -> int:
    """Completed years between birth_date and today."""
    before_birthday = (today.month, today.day) < (birth_date.month, birth_date.day)
    return today.year - birth_date.year - (1 if before_birthday else 0)


def standardize_birth_date(request: Dict[str, Any], today: Optional[date] = None) -> None:
    """
    Rewrite every individual's date_naissance in place.

    Values that are not ISO dates (or probes) are left untouched.

    Example:
        today = 2025-10-15, date_naissance = 2000-12-01 (age 24)
        -> date_naissance = 2001-01-01
    """
    today = today or date.today()
    for individu_id, individu in request.get("individus", {}).items():
        by_period = individu.get("date_naissance")
        if not isinstance(by_period, dict):
            continue
        for period, value in by_period.items():
            if not isinstance(value, str):
                continue
            try:
                birth_date = date.fromisoformat(value)
            except ValueError:
                logger.warning("Birth date of '%s' is not an ISO date: %r", individu_id, value)
                continue
            by_period[period] = f"{today.year - age_on(birth_date, today):04d}-01-01"
