"""
Module: entitlement_engines.usage
Responsibility:
    Sum the days a person has consumed from one category in one year,
    across single-category trips and split-allocation trips.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import entitlement_kernel.domain and sibling engine modules.

Invariants enforced:
    - Cancelled trips and trips the person does not take part in
      contribute nothing.
    - A split trip charges a category through at most one allocation:
      the one pinned to the year, else the year-agnostic one.
    - A pinned allocation contributes its ``days`` unchanged; a
      year-agnostic one contributes ``days * in_year / total``, and zero
      when the trip has no chargeable days.
    - Decimal-only arithmetic.

Failure modes:
    - None raised.  Inverted date ranges weigh zero and are reported as
      ``invalid_date_range`` notices by ``UsageAccumulator``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from decimal import Decimal

from entitlement_kernel.domain.model import Allocation, Person, Trip
from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.domain.values import ZERO_DAYS
from entitlement_kernel.logging_config import get_logger
from entitlement_engines.day_weigher import TripWeight, weigh_trip
from entitlement_engines.holiday_calendar import PersonCalendar
from entitlement_engines.notices import NoticeCode, NoticeLog

logger = get_logger("engines.usage")

TripWeigher = Callable[[Trip, int], TripWeight]


def matching_allocation(
    allocations: Iterable[Allocation],
    category_id: str,
    year: int,
) -> Allocation | None:
    """The allocation charging ``category_id`` in ``year``.

    Prefers one pinned to ``year``; falls back to one without a target year.
    """
    fallback = None
    for allocation in allocations:
        if allocation.category_id != category_id:
            continue
        if allocation.target_year == year:
            return allocation
        if allocation.target_year is None and fallback is None:
            fallback = allocation
    return fallback


def trip_usage(
    trip: Trip,
    category_id: str,
    year: int,
    weigh: TripWeigher,
) -> Decimal:
    """
    Days ``trip`` consumes from ``category_id`` in ``year``.

    Args:
        trip: The trip (participation and status are the caller's filter).
        category_id: Category being charged.
        year: Year being charged.
        weigh: Callable returning the trip's TripWeight for a year.
    """
    if trip.is_split:
        allocation = matching_allocation(trip.allocations, category_id, year)
        if allocation is None:
            return ZERO_DAYS
        if allocation.target_year is not None:
            return allocation.days
        return weigh(trip, year).proportional_share(allocation.days)

    if trip.category_id != category_id:
        return ZERO_DAYS
    return weigh(trip, year).in_year


def accumulate_usage(
    trips: Iterable[Trip],
    person_id: str,
    category_id: str,
    year: int,
    weigh: TripWeigher,
) -> Decimal:
    """Total days consumed by ``person_id`` from ``category_id`` in ``year``."""
    total = ZERO_DAYS
    for trip in trips:
        if trip.is_cancelled or not trip.involves(person_id):
            continue
        total += trip_usage(trip, category_id, year, weigh)
    return total


class UsageAccumulator:
    """
    Usage queries for one person within one computation pass.

    Contract:
        Memoizes by (category_id, year) and trip weights by (trip_id, year).
        Lives exactly as long as the pass that created it; never shared
        across snapshots.
    """

    def __init__(
        self,
        snapshot: EntitlementSnapshot,
        person: Person,
        calendar: PersonCalendar,
        notices: NoticeLog,
    ):
        self._snapshot = snapshot
        self._person = person
        self._calendar = calendar
        self._notices = notices
        self._trips = snapshot.trips_for(person.person_id)
        self._usage_memo: dict[tuple[str, int], Decimal] = {}
        self._weight_memo: dict[tuple[str, int], TripWeight] = {}

    def weigh(self, trip: Trip, year: int) -> TripWeight:
        key = (trip.trip_id, year)
        cached = self._weight_memo.get(key)
        if cached is not None:
            return cached
        if not trip.has_valid_range:
            self._notices.add(
                NoticeCode.INVALID_DATE_RANGE,
                f"Trip {trip.trip_id} ends before it starts",
                subject_id=trip.trip_id,
            )
        weight = weigh_trip(
            start_date=trip.start_date,
            end_date=trip.end_date,
            target_year=year,
            non_working=self._calendar.non_working_between(trip.start_date, trip.end_date),
            working_days=self._snapshot.working_days,
            excluded_dates=trip.excluded_dates,
            duration_mode=trip.duration_mode,
            start_portion=trip.start_portion,
            end_portion=trip.end_portion,
        )
        self._weight_memo[key] = weight
        return weight

    def usage(self, category_id: str, year: int) -> Decimal:
        key = (category_id, year)
        cached = self._usage_memo.get(key)
        if cached is not None:
            return cached
        used = accumulate_usage(
            self._trips, self._person.person_id, category_id, year, self.weigh,
        )
        self._usage_memo[key] = used
        logger.debug("usage_accumulated", extra={
            "category_id": category_id,
            "usage_year": year,
            "used": str(used),
        })
        return used
