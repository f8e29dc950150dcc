"""
Configuration Loader (``entitlement_config.loader``).

Responsibility
--------------
Loads individual YAML fragment files and parses their entries into the
frozen domain types of ``entitlement_kernel.domain``.  This is loading
tooling only; callers obtain a snapshot through
``entitlement_config.load_snapshot()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Consumed by
``entitlement_config.assembler``.  Depends on the kernel domain types,
never on the engines.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* Day counts are parsed into ``Decimal``.
* Enum fields accept the canonical value and the legacy aliases listed
  in the ``*_ALIASES`` tables, case-insensitively.
* ``compute_checksum`` produces a deterministic SHA-256 hash.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown enum value or bad date  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from entitlement_kernel.domain.model import (
    AccrualPeriod,
    AccrualRule,
    Allocation,
    CarryOverRule,
    Category,
    CategoryClass,
    DayPortion,
    DurationMode,
    ExpiryType,
    HolidayCalendar,
    HolidayEntry,
    Person,
    Policy,
    Trip,
    TripStatus,
    WeekendRule,
)
from entitlement_kernel.domain.snapshot import working_day_set
from entitlement_kernel.domain.values import to_days

E = TypeVar("E", bound=Enum)

WEEKEND_RULE_ALIASES: dict[str, WeekendRule] = {
    "none": WeekendRule.FORFEIT,
    "movetomonday": WeekendRule.MOVE_TO_MONDAY,
    "monday": WeekendRule.MOVE_TO_MONDAY,
    "accruetolieu": WeekendRule.ACCRUE_TO_LIEU,
    "lieu": WeekendRule.ACCRUE_TO_LIEU,
}

# Legacy duration modes: ``single_*`` is a one-day half-day request.
DURATION_MODE_ALIASES: dict[str, DurationMode] = {
    "all_full": DurationMode.FULL,
    "all_am": DurationMode.AM,
    "all_pm": DurationMode.PM,
    "single_am": DurationMode.AM,
    "single_pm": DurationMode.PM,
}

WEEKDAY_NAMES: dict[str, int] = {
    "mon": 0, "monday": 0,
    "tue": 1, "tuesday": 1,
    "wed": 2, "wednesday": 2,
    "thu": 3, "thursday": 3,
    "fri": 4, "friday": 4,
    "sat": 5, "saturday": 5,
    "sun": 6, "sunday": 6,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Preconditions:
        - ``path`` must point to an existing, readable YAML file.
    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_date(value: Any) -> date:
    """
    Parse a date from YAML (string or date object).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_enum(enum_type: type[E], value: Any, aliases: dict[str, E] | None = None) -> E:
    """Parse an enum member by value, then by alias, ignoring case."""
    if isinstance(value, enum_type):
        return value
    key = str(value).strip().lower()
    try:
        return enum_type(key)
    except ValueError:
        pass
    if aliases and key in aliases:
        return aliases[key]
    raise ValueError(f"Invalid {enum_type.__name__}: {value!r}")


def parse_working_days(values: Any) -> frozenset[int]:
    """Working days from weekday names ("mon", "Tuesday") or indices (0 = Monday)."""
    days: list[int] = []
    for value in values:
        if isinstance(value, bool):
            raise ValueError(f"Invalid working day: {value!r}")
        if isinstance(value, int):
            days.append(value)
            continue
        name = str(value).strip().lower()
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Invalid working day: {value!r}")
        days.append(WEEKDAY_NAMES[name])
    return working_day_set(days)


def parse_accrual(data: dict[str, Any] | None) -> AccrualRule:
    if not data:
        return AccrualRule()
    return AccrualRule(
        period=parse_enum(AccrualPeriod, data.get("period", "yearly")),
        amount=to_days(data.get("amount", 0)),
    )


def parse_carry_over(data: dict[str, Any] | None) -> CarryOverRule:
    """
    Parse a ``CarryOverRule``.

    ``expiry_value`` stays an int for ``months`` and becomes an ``"MM-DD"``
    string for ``fixed_date``.
    """
    if not data:
        return CarryOverRule()
    expiry_type = parse_enum(ExpiryType, data.get("expiry_type", "none"))
    expiry_value = data.get("expiry_value")
    if expiry_value is not None:
        if expiry_type == ExpiryType.MONTHS:
            expiry_value = int(expiry_value)
        elif expiry_type == ExpiryType.FIXED_DATE:
            expiry_value = str(expiry_value)
    return CarryOverRule(
        enabled=bool(data.get("enabled", False)),
        max_days=to_days(data.get("max_days", 0)),
        expiry_type=expiry_type,
        expiry_value=expiry_value,
        target_category_id=data.get("target_category_id") or data.get("target"),
    )


def parse_category(data: dict[str, Any]) -> Category:
    """
    Parse a ``Category`` from a dict.

    Raises:
        KeyError: if ``id`` or ``name`` is missing.
    """
    return Category(
        category_id=str(data["id"]),
        name=data["name"],
        category_class=parse_enum(CategoryClass, data.get("class", "custom")),
        is_unlimited=bool(data.get("unlimited", False)),
        default_accrual=parse_accrual(data.get("default_accrual")),
        default_carry_over=parse_carry_over(data.get("default_carry_over")),
    )


def parse_policy(data: dict[str, Any]) -> Policy:
    """
    Parse a ``Policy`` from a dict.

    Raises:
        KeyError: if ``category`` or ``year`` is missing.
    """
    unlimited = data.get("unlimited")
    return Policy(
        category_id=str(data["category"]),
        year=int(data["year"]),
        accrual=parse_accrual(data.get("accrual")),
        carry_over=parse_carry_over(data.get("carry_over")),
        is_active=bool(data.get("active", True)),
        is_unlimited=None if unlimited is None else bool(unlimited),
    )


def parse_person(data: dict[str, Any]) -> Person:
    """
    Parse a ``Person`` with its policies.

    Raises:
        KeyError: if ``id`` is missing.
        DuplicatePolicyError: if two policies share a (category, year).
    """
    return Person(
        person_id=str(data["id"]),
        name=data.get("name", ""),
        weekend_rule=parse_enum(
            WeekendRule, data.get("weekend_rule", "forfeit"), WEEKEND_RULE_ALIASES,
        ),
        policies=tuple(parse_policy(p) for p in data.get("policies", [])),
        holiday_config_ids=tuple(str(c) for c in data.get("holiday_config_ids", [])),
        active_years=tuple(int(y) for y in data.get("active_years", [])),
    )


def parse_holiday(data: dict[str, Any]) -> HolidayEntry:
    weekend = data.get("weekend")
    return HolidayEntry(
        date=parse_date(data["date"]),
        name=data.get("name", ""),
        is_included=bool(data.get("included", True)),
        is_weekend=None if weekend is None else bool(weekend),
        is_custom_addition=bool(data.get("custom", False)),
    )


def parse_calendar(data: dict[str, Any]) -> HolidayCalendar:
    """
    Parse a ``HolidayCalendar``.

    Raises:
        KeyError: if ``id`` or ``year`` is missing.
    """
    return HolidayCalendar(
        calendar_id=str(data["id"]),
        year=int(data["year"]),
        region=str(data.get("region", "")),
        holidays=tuple(parse_holiday(h) for h in data.get("holidays", [])),
    )


def parse_allocation(data: dict[str, Any]) -> Allocation:
    target_year = data.get("target_year")
    return Allocation(
        category_id=str(data["category"]),
        days=to_days(data["days"]),
        target_year=None if target_year is None else int(target_year),
    )


def parse_duration(data: Any) -> tuple[DurationMode, DayPortion, DayPortion]:
    """
    Parse a trip duration.

    Accepts a mode string (``full``, ``am``, ``pm`` or a legacy
    ``all_*`` / ``single_*`` mode) or a mapping
    ``{mode: custom, start: pm, end: am}``.
    """
    if data is None:
        return DurationMode.FULL, DayPortion.FULL, DayPortion.FULL
    if isinstance(data, dict):
        mode = parse_enum(DurationMode, data.get("mode", "full"), DURATION_MODE_ALIASES)
        return (
            mode,
            parse_enum(DayPortion, data.get("start", "full")),
            parse_enum(DayPortion, data.get("end", "full")),
        )
    mode = parse_enum(DurationMode, data, DURATION_MODE_ALIASES)
    return mode, DayPortion.FULL, DayPortion.FULL


def parse_trip(data: dict[str, Any]) -> Trip:
    """
    Parse a ``Trip``.

    Raises:
        KeyError: if ``id``, ``start`` or ``end`` is missing.
        ValueError: on bad dates or an unknown status.
    """
    duration_mode, start_portion, end_portion = parse_duration(data.get("duration"))
    category = data.get("category")
    return Trip(
        trip_id=str(data["id"]),
        name=data.get("name", ""),
        start_date=parse_date(data["start"]),
        end_date=parse_date(data["end"]),
        status=parse_enum(TripStatus, data.get("status", "upcoming")),
        participants=tuple(str(p) for p in data.get("participants", [])),
        category_id=None if category is None else str(category),
        allocations=tuple(parse_allocation(a) for a in data.get("allocations", [])),
        duration_mode=duration_mode,
        start_portion=start_portion,
        end_portion=end_portion,
        excluded_dates=frozenset(parse_date(d) for d in data.get("excluded_dates", [])),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Returns a hex-encoded SHA-256 hash string.
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
