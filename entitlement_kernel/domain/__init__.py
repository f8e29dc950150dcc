"""
entitlement_kernel.domain -- pure domain types and transforms.

Zero I/O.  Every record is a frozen dataclass so a snapshot cannot change
while a computation pass reads it.
"""

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
from entitlement_kernel.domain.snapshot import (
    MONDAY_TO_FRIDAY,
    EntitlementSnapshot,
    working_day_set,
)
from entitlement_kernel.domain.values import (
    FULL_DAY,
    HALF_DAY,
    UNBOUNDED,
    ZERO_DAYS,
    Allowance,
    to_days,
)

__all__ = [
    "AccrualPeriod",
    "AccrualRule",
    "Allocation",
    "Allowance",
    "CarryOverRule",
    "Category",
    "CategoryClass",
    "DayPortion",
    "DurationMode",
    "EntitlementSnapshot",
    "ExpiryType",
    "FULL_DAY",
    "HALF_DAY",
    "HolidayCalendar",
    "HolidayEntry",
    "MONDAY_TO_FRIDAY",
    "Person",
    "Policy",
    "Trip",
    "TripStatus",
    "UNBOUNDED",
    "WeekendRule",
    "ZERO_DAYS",
    "to_days",
    "working_day_set",
]
