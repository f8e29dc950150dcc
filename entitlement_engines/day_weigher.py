"""
Module: entitlement_engines.day_weigher
Responsibility:
    Scan a trip's date range day by day and weigh each chargeable day,
    producing the fractional number of days the trip consumes in a target
    year and across its whole span.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import entitlement_kernel.domain and sibling engine modules.

Invariants enforced:
    - A day is chargeable only if its weekday is a working day, it is not
      a resolved holiday, and it is not explicitly excluded.
    - ``am`` / ``pm`` modes weigh every chargeable day 0.5.
    - ``custom`` mode weighs the start day 0.5 when the start portion is
      ``pm`` and the end day 0.5 when the end portion is ``am``; a one-day
      trip is 0.5 if either holds.
    - An end date before the start date yields zero days.
    - Decimal-only arithmetic.

Usage:
    weight = weigh_trip(
        start_date=date(2024, 1, 8),
        end_date=date(2024, 1, 12),
        target_year=2024,
        non_working=frozenset({date(2024, 1, 10)}),
        working_days=MONDAY_TO_FRIDAY,
        duration_mode=DurationMode.AM,
    )
    weight.in_year  # Decimal("2.0")
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from entitlement_kernel.domain.model import DayPortion, DurationMode
from entitlement_kernel.domain.values import FULL_DAY, HALF_DAY, ZERO_DAYS
from entitlement_kernel.logging_config import get_logger

logger = get_logger("engines.day_weigher")


@dataclass(frozen=True)
class ChargeDay:
    """
    One calendar date of a trip and what it costs.

    Guarantees:
        - ``weight`` is ZERO_DAYS whenever ``is_chargeable`` is False.
    """

    date: date
    weight: Decimal
    is_weekend: bool
    is_holiday: bool
    is_excluded: bool
    holiday_name: str | None = None

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def is_chargeable(self) -> bool:
        return not (self.is_weekend or self.is_holiday or self.is_excluded)


@dataclass(frozen=True)
class TripWeight:
    """Weighted days of one trip: in the target year and over its whole span."""

    target_year: int
    in_year: Decimal
    total: Decimal

    @property
    def is_empty(self) -> bool:
        return self.total == ZERO_DAYS

    def proportional_share(self, days: Decimal) -> Decimal:
        """Part of ``days`` belonging to the target year; zero when the trip has no chargeable days."""
        if self.total == ZERO_DAYS:
            return ZERO_DAYS
        return days * self.in_year / self.total


def day_weight(
    day: date,
    start_date: date,
    end_date: date,
    duration_mode: DurationMode,
    start_portion: DayPortion,
    end_portion: DayPortion,
) -> Decimal:
    """Weight of a chargeable ``day`` under the trip's duration settings."""
    if duration_mode in (DurationMode.AM, DurationMode.PM):
        return HALF_DAY
    if duration_mode != DurationMode.CUSTOM:
        return FULL_DAY
    half_start = day == start_date and start_portion == DayPortion.PM
    half_end = day == end_date and end_portion == DayPortion.AM
    if half_start or half_end:
        return HALF_DAY
    return FULL_DAY


def iter_trip_days(
    start_date: date,
    end_date: date,
    non_working: Mapping[date, str] | frozenset[date],
    working_days: frozenset[int],
    excluded_dates: frozenset[date] = frozenset(),
    duration_mode: DurationMode = DurationMode.FULL,
    start_portion: DayPortion = DayPortion.FULL,
    end_portion: DayPortion = DayPortion.FULL,
) -> Iterator[ChargeDay]:
    """Yield a ChargeDay for every date from start to end inclusive."""
    day = start_date
    one_day = timedelta(days=1)
    while day <= end_date:
        is_weekend = day.weekday() not in working_days
        is_holiday = day in non_working
        is_excluded = day in excluded_dates
        if is_weekend or is_holiday or is_excluded:
            weight = ZERO_DAYS
        else:
            weight = day_weight(
                day, start_date, end_date,
                duration_mode, start_portion, end_portion,
            )
        holiday_name = None
        if is_holiday and isinstance(non_working, Mapping):
            holiday_name = non_working[day]
        yield ChargeDay(
            date=day,
            weight=weight,
            is_weekend=is_weekend,
            is_holiday=is_holiday,
            is_excluded=is_excluded,
            holiday_name=holiday_name,
        )
        day += one_day


def daily_breakdown(
    start_date: date,
    end_date: date,
    non_working: Mapping[date, str] | frozenset[date],
    working_days: frozenset[int],
    excluded_dates: frozenset[date] = frozenset(),
    duration_mode: DurationMode = DurationMode.FULL,
    start_portion: DayPortion = DayPortion.FULL,
    end_portion: DayPortion = DayPortion.FULL,
) -> tuple[ChargeDay, ...]:
    """Per-day view of a trip; empty when the end precedes the start."""
    return tuple(iter_trip_days(
        start_date, end_date, non_working, working_days,
        excluded_dates, duration_mode, start_portion, end_portion,
    ))


def weigh_trip(
    start_date: date,
    end_date: date,
    target_year: int,
    non_working: Mapping[date, str] | frozenset[date],
    working_days: frozenset[int],
    excluded_dates: frozenset[date] = frozenset(),
    duration_mode: DurationMode = DurationMode.FULL,
    start_portion: DayPortion = DayPortion.FULL,
    end_portion: DayPortion = DayPortion.FULL,
) -> TripWeight:
    """
    Weighted chargeable days of a date range.

    Args:
        start_date: First day of the trip.
        end_date: Last day of the trip (inclusive).
        target_year: Year whose days are summed into ``in_year``.
        non_working: Resolved holiday dates (a set or a date -> name map).
        working_days: Weekday indices that are working days.
        excluded_dates: Dates the requester explicitly left out.
        duration_mode: Full, half-day or custom weighting.
        start_portion: Start day portion for custom mode.
        end_portion: End day portion for custom mode.

    Returns:
        TripWeight with ``in_year`` and ``total``; both zero for an
        inverted range.
    """
    if end_date < start_date:
        logger.debug("invalid_date_range", extra={
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        })
        return TripWeight(target_year=target_year, in_year=ZERO_DAYS, total=ZERO_DAYS)

    in_year = ZERO_DAYS
    total = ZERO_DAYS
    for charge_day in iter_trip_days(
        start_date, end_date, non_working, working_days,
        excluded_dates, duration_mode, start_portion, end_portion,
    ):
        total += charge_day.weight
        if charge_day.year == target_year:
            in_year += charge_day.weight

    return TripWeight(target_year=target_year, in_year=in_year, total=total)


def weigh_by_year(
    start_date: date,
    end_date: date,
    non_working: Mapping[date, str] | frozenset[date],
    working_days: frozenset[int],
    excluded_dates: frozenset[date] = frozenset(),
    duration_mode: DurationMode = DurationMode.FULL,
    start_portion: DayPortion = DayPortion.FULL,
    end_portion: DayPortion = DayPortion.FULL,
) -> dict[int, Decimal]:
    """Weighted days per calendar year touched by the range, in year order."""
    per_year: dict[int, Decimal] = defaultdict(lambda: ZERO_DAYS)
    for charge_day in iter_trip_days(
        start_date, end_date, non_working, working_days,
        excluded_dates, duration_mode, start_portion, end_portion,
    ):
        per_year[charge_day.year] += charge_day.weight
    return dict(sorted(per_year.items()))
