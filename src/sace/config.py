"""
Builder options.

Options can be given in code (BuilderOptions(...)) or read from a YAML file:

    allow_undefined_values: true
    throw_on_error: false
    reference_date: 2025-10-15
    standardize_birth_date: true
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Mapping, Optional

import yaml

from sace.errors import OptionsError


@dataclass(frozen=True)
class BuilderOptions:
    """
    Properties:
        allow_undefined_values: Skip None answers silently (else UNDEFINED_VALUE)
        throw_on_error: Raise RequestBuildException on the first error
        log_warnings: Log every collected error when a strict pass fails
        reference_date: Date periods are computed from (default: today)
        strict_conditions: Visibility conditions raise instead of hiding
        standardize_birth_date: Round birth dates to 1 January of the same age
        fallback_to_legacy: Let compile_request() fall back to the
            permissive construction when the strict pass fails
    """

    allow_undefined_values: bool = True
    throw_on_error: bool = False
    log_warnings: bool = True
    reference_date: Optional[date] = None
    strict_conditions: bool = False
    standardize_birth_date: bool = False
    fallback_to_legacy: bool = True


def options_from_dict(d: Optional[Mapping[str, Any]]) -> BuilderOptions:
    """
    Raises:
        OptionsError: Unknown keys or a reference_date that is not a date
    """
    if not d:
        return BuilderOptions()
    known = {f.name for f in fields(BuilderOptions)}
    unknown = set(d) - known
    if unknown:
        raise OptionsError(f"Unknown builder options: {sorted(unknown)}")

    values = dict(d)
    reference = values.get("reference_date")
    if isinstance(reference, str):
        try:
            values["reference_date"] = date.fromisoformat(reference)
        except ValueError:
            raise OptionsError(f"reference_date is not an ISO date: {reference!r}")
    elif reference is not None and not isinstance(reference, date):
        raise OptionsError(f"reference_date is not a date: {reference!r}")
    return BuilderOptions(**values)


def load_options(path: str) -> BuilderOptions:
    """
    Raises:
        FileNotFoundError: If path doesn't exist
        OptionsError: If the file is not a valid options mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            d = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise OptionsError(f"Invalid options file {path}: {e}")
    if d is not None and not isinstance(d, dict):
        raise OptionsError(f"Options file {path} must contain a mapping")
    return options_from_dict(d)
