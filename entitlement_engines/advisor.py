"""
Module: entitlement_engines.advisor
Responsibility:
    Help a requester book leave: weigh a prospective request against the
    person's balance, point at carried-over days about to lapse, and
    propose a two-way split when one category cannot cover a request.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Reads balances through ``entitlement_engines.ledger.ComputationPass``.

Invariants enforced:
    - An unbounded balance is never exceeded.
    - A suggested split never allocates negative days, and its two
      allocations add up to the requested days.
    - A prospective request being edited can be left out of the balance
      with ``exclude_trip_id`` so it is not charged twice.

Failure modes:
    - Unknown person: empty assessment (zero balance), no suggestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from entitlement_kernel.domain.model import Allocation, DayPortion, DurationMode, Person
from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.domain.values import ZERO_DAYS, Allowance
from entitlement_kernel.logging_config import get_logger
from entitlement_engines.carry_over import expiry_date
from entitlement_engines.day_weigher import ChargeDay, daily_breakdown
from entitlement_engines.ledger import ComputationPass, query_log_context
from entitlement_engines.tracer import traced_engine

logger = get_logger("engines.advisor")


@dataclass(frozen=True)
class RequestAssessment:
    """
    Cost of a prospective request against the balance of its start year.

    Guarantees:
        - ``total_days == sum(days_by_year.values())``.
        - ``exceeds_balance`` is False whenever ``balance`` is unbounded.
    """

    person_id: str
    category_id: str
    start_date: date
    end_date: date
    days_by_year: dict[int, Decimal]
    total_days: Decimal
    balance: Allowance
    exceeds_balance: bool
    days: tuple[ChargeDay, ...] = field(default=(), repr=False)

    @property
    def spans_years(self) -> bool:
        return len(self.days_by_year) > 1


@dataclass(frozen=True)
class ExpiringCarryOver:
    """A category whose carried-over days lapse on or after a trip's start."""

    category_id: str
    category_name: str
    expires_on: date
    balance: Allowance


@dataclass(frozen=True)
class SplitSuggestion:
    primary: Allocation
    secondary: Allocation

    @property
    def allocations(self) -> tuple[Allocation, Allocation]:
        return (self.primary, self.secondary)


def _without_trip(snapshot: EntitlementSnapshot, trip_id: str | None) -> EntitlementSnapshot:
    if trip_id is None:
        return snapshot
    return replace(snapshot, trips=tuple(t for t in snapshot.trips if t.trip_id != trip_id))


def _categories_of(person: Person, year: int) -> tuple[str, ...]:
    return tuple(p.category_id for p in person.policies_for_year(year) if p.is_active)


def _balance(computation: ComputationPass, category_id: str) -> Allowance:
    total = computation.breakdown(category_id).total
    return total.remaining(computation.usage.usage(category_id, computation.year))


@traced_engine(
    "advisor.assess", "1.0",
    fingerprint_fields=("snapshot", "person_id", "category_id", "start_date", "end_date"),
)
def assess_request(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    category_id: str,
    start_date: date,
    end_date: date,
    duration_mode: DurationMode = DurationMode.FULL,
    start_portion: DayPortion = DayPortion.FULL,
    end_portion: DayPortion = DayPortion.FULL,
    excluded_dates: frozenset[date] = frozenset(),
    exclude_trip_id: str | None = None,
    request_id: str | None = None,
) -> RequestAssessment:
    """
    Weigh a prospective request and compare it with the remaining balance.

    Args:
        snapshot: Immutable input state.
        person_id: Requester.
        category_id: Category the request would be charged to.
        start_date: First day requested.
        end_date: Last day requested (inclusive).
        duration_mode: Full, half-day or custom weighting.
        start_portion: Start day portion for custom mode.
        end_portion: End day portion for custom mode.
        excluded_dates: Dates left out of the request.
        exclude_trip_id: Existing trip being edited; left out of the balance.
        request_id: Caller correlation id, carried on every log record.

    Returns:
        RequestAssessment for the year of ``start_date``.
    """
    year = start_date.year
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        if person is None:
            return RequestAssessment(
                person_id=person_id,
                category_id=category_id,
                start_date=start_date,
                end_date=end_date,
                days_by_year={},
                total_days=ZERO_DAYS,
                balance=Allowance.zero(),
                exceeds_balance=False,
            )

        computation = ComputationPass(_without_trip(snapshot, exclude_trip_id), person, year)
        charge_days = daily_breakdown(
            start_date,
            end_date,
            computation.calendar.non_working_between(start_date, end_date),
            snapshot.working_days,
            excluded_dates=excluded_dates,
            duration_mode=duration_mode,
            start_portion=start_portion,
            end_portion=end_portion,
        )
        days_by_year: dict[int, Decimal] = {}
        for charge_day in charge_days:
            days_by_year[charge_day.year] = days_by_year.get(charge_day.year, ZERO_DAYS) + charge_day.weight
        total_days = sum(days_by_year.values(), ZERO_DAYS)

        balance = _balance(computation, category_id)
        exceeds = balance.is_finite and total_days > balance.finite_days()
        logger.info("request_assessed", extra={
            "category_id": category_id,
            "total_days": str(total_days),
            "balance": str(balance),
            "exceeds_balance": exceeds,
        })
        return RequestAssessment(
            person_id=person_id,
            category_id=category_id,
            start_date=start_date,
            end_date=end_date,
            days_by_year=days_by_year,
            total_days=total_days,
            balance=balance,
            exceeds_balance=exceeds,
            days=charge_days,
        )


@traced_engine(
    "advisor.expiring", "1.0",
    fingerprint_fields=("snapshot", "person_id", "start_date", "requested_category_id"),
)
def suggest_expiring_carry_over(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    start_date: date,
    requested_category_id: str | None = None,
    request_id: str | None = None,
) -> ExpiringCarryOver | None:
    """
    First other category whose carried-over days are still valid on
    ``start_date`` and would otherwise lapse.

    Categories are tried in the person's policy order for the start year;
    for each, previous-year carry-over sources are tried in policy order.
    """
    year = start_date.year
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        if person is None:
            return None
        computation = ComputationPass(snapshot, person, year)
        for category_id in _categories_of(person, year):
            if category_id == requested_category_id:
                continue
            for source in person.policies_for_year(year - 1):
                rule = source.carry_over
                if not rule.enabled or not rule.feeds(source.category_id, category_id):
                    continue
                balance = _balance(computation, category_id)
                if balance.is_finite and balance.finite_days() <= ZERO_DAYS:
                    break
                expires_on = expiry_date(rule, year)
                if expires_on is None or start_date > expires_on:
                    continue
                category = snapshot.category(category_id)
                return ExpiringCarryOver(
                    category_id=category_id,
                    category_name=category.name if category is not None else category_id,
                    expires_on=expires_on,
                    balance=balance,
                )
        return None


@traced_engine(
    "advisor.split", "1.0",
    fingerprint_fields=("snapshot", "person_id", "category_id", "requested_days", "year"),
)
def suggest_split(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    category_id: str,
    requested_days: Decimal,
    year: int,
    secondary_category_id: str | None = None,
    request_id: str | None = None,
) -> SplitSuggestion:
    """
    Divide ``requested_days`` between ``category_id`` and a second category.

    The primary category takes what its balance covers; the secondary
    (explicit, else the person's first other category that year, else the
    primary itself) takes the rest.  Both allocations are pinned to ``year``.
    """
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        available: Allowance = Allowance.zero()
        if person is not None:
            available = _balance(ComputationPass(snapshot, person, year), category_id)

        if available.is_unbounded:
            primary_days = requested_days
        else:
            primary_days = max(ZERO_DAYS, min(requested_days, available.finite_days()))
        secondary_days = max(ZERO_DAYS, requested_days - primary_days)

        if secondary_category_id is None:
            others = () if person is None else tuple(
                c for c in _categories_of(person, year) if c != category_id
            )
            secondary_category_id = others[0] if others else category_id

        return SplitSuggestion(
            primary=Allocation(category_id=category_id, days=primary_days, target_year=year),
            secondary=Allocation(category_id=secondary_category_id, days=secondary_days, target_year=year),
        )
