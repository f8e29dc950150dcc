"""
Model -- Frozen domain types for people, categories, policies and trips.

Responsibility:
    Defines the immutable records an entitlement computation reads:
    Category, Policy (with accrual and carry-over rules), Person,
    HolidayEntry / HolidayCalendar and Trip / Allocation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Depends only on ``entitlement_kernel.domain.values`` and exceptions.

Invariants enforced:
    - At most one Policy per (category, year) on a Person
      (``DuplicatePolicyError``).
    - All day counts are Decimal.
    - Collections are stored as tuples / frozensets so records stay hashable
      and cannot be mutated during a computation pass.

Failure modes:
    - DuplicatePolicyError on a Person holding two policies for one
      (category, year).
    - ValueError on negative accrual amounts or carry-over caps.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from entitlement_kernel.domain.values import ZERO_DAYS, to_days
from entitlement_kernel.exceptions import DuplicatePolicyError


class WeekendRule(str, Enum):
    """How a public holiday falling on a weekend is treated for a person."""

    FORFEIT = "forfeit"
    MOVE_TO_MONDAY = "move_to_monday"
    ACCRUE_TO_LIEU = "accrue_to_lieu"


class CategoryClass(str, Enum):
    """Semantic class of a leave category."""

    ANNUAL = "annual"
    LIEU = "lieu"
    SENIORITY = "seniority"
    SICK = "sick"
    CUSTOM = "custom"


class AccrualPeriod(str, Enum):
    LUMP_SUM = "lump_sum"
    YEARLY = "yearly"
    MONTHLY = "monthly"


class ExpiryType(str, Enum):
    """When carried-over days lapse in the receiving year."""

    NONE = "none"
    MONTHS = "months"  # expiry_value = months after January 1
    FIXED_DATE = "fixed_date"  # expiry_value = "MM-DD"


class TripStatus(str, Enum):
    PLANNING = "planning"
    UPCOMING = "upcoming"
    PAST = "past"
    CANCELLED = "cancelled"


class DurationMode(str, Enum):
    """How much of each chargeable day a trip consumes."""

    FULL = "full"
    AM = "am"  # every day is a morning half day
    PM = "pm"  # every day is an afternoon half day
    CUSTOM = "custom"  # start/end portions decide the edges


class DayPortion(str, Enum):
    FULL = "full"
    AM = "am"
    PM = "pm"


# ---------------------------------------------------------------------------
# Categories and policies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccrualRule:
    """Yearly entitlement amount and the cadence it is granted on."""

    period: AccrualPeriod = AccrualPeriod.YEARLY
    amount: Decimal = ZERO_DAYS

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_days(self.amount))
        if self.amount < ZERO_DAYS:
            raise ValueError(f"Accrual amount cannot be negative: {self.amount}")


@dataclass(frozen=True)
class CarryOverRule:
    """
    Rule moving unused days into the following year.

    Contract:
        ``target_category_id`` of None means the days carry into the same
        category.  ``expiry_value`` is a month count for
        ``ExpiryType.MONTHS`` and an ``"MM-DD"`` string for
        ``ExpiryType.FIXED_DATE``.
    """

    enabled: bool = False
    max_days: Decimal = ZERO_DAYS
    expiry_type: ExpiryType = ExpiryType.NONE
    expiry_value: int | str | None = None
    target_category_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_days", to_days(self.max_days))
        if self.max_days < ZERO_DAYS:
            raise ValueError(f"Carry-over cap cannot be negative: {self.max_days}")

    def feeds(self, own_category_id: str, category_id: str) -> bool:
        """True if days carried from ``own_category_id`` land in ``category_id``."""
        target = self.target_category_id or own_category_id
        return target == category_id


@dataclass(frozen=True)
class Category:
    """
    A leave-type definition shared across the workspace.

    Contract:
        ``default_accrual`` and ``default_carry_over`` only seed new
        policies; they never take part in allowance resolution.
    """

    category_id: str
    name: str
    category_class: CategoryClass = CategoryClass.CUSTOM
    is_unlimited: bool = False
    default_accrual: AccrualRule = field(default_factory=AccrualRule)
    default_carry_over: CarryOverRule = field(default_factory=CarryOverRule)

    def default_policy(self, year: int) -> Policy:
        """A fresh active policy for ``year`` built from this category's defaults."""
        return Policy(
            category_id=self.category_id,
            year=year,
            accrual=self.default_accrual,
            carry_over=self.default_carry_over,
            is_unlimited=self.is_unlimited,
        )


@dataclass(frozen=True)
class Policy:
    """
    A person's configuration of one category for one year.

    ``is_unlimited`` of None inherits the Category's flag.
    """

    category_id: str
    year: int
    accrual: AccrualRule = field(default_factory=AccrualRule)
    carry_over: CarryOverRule = field(default_factory=CarryOverRule)
    is_active: bool = True
    is_unlimited: bool | None = None

    def for_year(self, year: int) -> Policy:
        return replace(self, year=year)


@dataclass(frozen=True)
class Person:
    """
    Someone holding entitlements.

    Contract:
        ``policies`` holds at most one Policy per (category, year).
        ``holiday_config_ids`` is ordered; calendar lookups follow it.
    """

    person_id: str
    name: str = ""
    weekend_rule: WeekendRule = WeekendRule.FORFEIT
    policies: tuple[Policy, ...] = ()
    holiday_config_ids: tuple[str, ...] = ()
    active_years: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "policies", tuple(self.policies))
        object.__setattr__(self, "holiday_config_ids", tuple(self.holiday_config_ids))
        object.__setattr__(self, "active_years", tuple(self.active_years))
        seen: set[tuple[str, int]] = set()
        for policy in self.policies:
            key = (policy.category_id, policy.year)
            if key in seen:
                raise DuplicatePolicyError(self.person_id, *key)
            seen.add(key)

    def policy_for(self, category_id: str, year: int) -> Policy | None:
        for policy in self.policies:
            if policy.category_id == category_id and policy.year == year:
                return policy
        return None

    def policies_for_year(self, year: int) -> tuple[Policy, ...]:
        return tuple(p for p in self.policies if p.year == year)


# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HolidayEntry:
    """One public (or custom) holiday.  ``is_weekend`` None derives from the date."""

    date: date
    name: str
    is_included: bool = True
    is_weekend: bool | None = None
    is_custom_addition: bool = False

    @property
    def falls_on_weekend(self) -> bool:
        if self.is_weekend is not None:
            return self.is_weekend
        return self.date.weekday() >= 5


@dataclass(frozen=True)
class HolidayCalendar:
    """Holidays of one region for one year, ordered by date."""

    calendar_id: str
    year: int
    region: str = ""
    holidays: tuple[HolidayEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "holidays", tuple(sorted(self.holidays, key=lambda h: h.date))
        )


# ---------------------------------------------------------------------------
# Trips
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Allocation:
    """Explicit share of a split trip charged to one category.

    ``target_year`` pins ``days`` to that year; without it the days are
    spread across the trip's years in proportion to its chargeable days.
    """

    category_id: str
    days: Decimal
    target_year: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "days", to_days(self.days))


@dataclass(frozen=True)
class Trip:
    """
    A leave request or trip over ``[start_date, end_date]``.

    Contract:
        A trip with ``allocations`` is a split trip and its ``category_id``
        is ignored for usage.  Cancelled trips never consume allowance.
    """

    trip_id: str
    start_date: date
    end_date: date
    participants: tuple[str, ...] = ()
    status: TripStatus = TripStatus.UPCOMING
    name: str = ""
    category_id: str | None = None
    allocations: tuple[Allocation, ...] = ()
    duration_mode: DurationMode = DurationMode.FULL
    start_portion: DayPortion = DayPortion.FULL
    end_portion: DayPortion = DayPortion.FULL
    excluded_dates: frozenset[date] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "participants", tuple(self.participants))
        object.__setattr__(self, "allocations", tuple(self.allocations))
        object.__setattr__(self, "excluded_dates", frozenset(self.excluded_dates))

    @property
    def is_split(self) -> bool:
        return len(self.allocations) > 0

    @property
    def is_cancelled(self) -> bool:
        return self.status == TripStatus.CANCELLED

    @property
    def has_valid_range(self) -> bool:
        return self.end_date >= self.start_date

    def involves(self, person_id: str) -> bool:
        return person_id in self.participants
