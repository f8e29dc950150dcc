"""
Module: entitlement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    entitlement engines.  This is the canonical import surface for callers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import entitlement_kernel (and sibling engine modules).
    MUST NOT import entitlement_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The year and dates of interest are always explicit parameters.
    - Decimal-only arithmetic: day counts use ``Decimal``; floats are
      never used for days.
    - Determinism: the same snapshot and arguments always produce the
      same result.

Failure modes:
    - Snapshot gaps never raise; they surface as LedgerNotice records.
    - UnboundedArithmeticError only on programming errors.

Audit relevance:
    Every public entry point is traced via ``@traced_engine`` (see
    ``entitlement_engines.tracer``), emitting ENTITLEMENT_ENGINE_TRACE
    log records with engine name, version, input fingerprint and duration.

Usage:
    from entitlement_engines import build_ledger, balance
    from entitlement_engines.day_weigher import weigh_trip
    from entitlement_engines.advisor import suggest_split
"""

from entitlement_kernel.logging_config import get_logger

logger = get_logger("engines")

from entitlement_engines.advisor import (
    ExpiringCarryOver,
    RequestAssessment,
    SplitSuggestion,
    assess_request,
    suggest_expiring_carry_over,
    suggest_split,
)
from entitlement_engines.allowance import (
    MAX_CARRY_OVER_DEPTH,
    AllowanceBreakdown,
    AllowanceResolver,
    CarryOverContribution,
)
from entitlement_engines.carry_over import (
    expiry_date,
    expiry_label,
    source_policies,
)
from entitlement_engines.day_weigher import (
    ChargeDay,
    TripWeight,
    daily_breakdown,
    weigh_by_year,
    weigh_trip,
)
from entitlement_engines.holiday_calendar import (
    PersonCalendar,
    calendars_for,
    count_weekend_holidays,
    observed_monday,
    resolve_holiday_labels,
    resolve_non_working_dates,
)
from entitlement_engines.ledger import (
    ComputationPass,
    EntitlementLedger,
    LedgerBreakdown,
    LedgerLine,
    allowance,
    balance,
    build_ledger,
    usage,
    visible_years,
)
from entitlement_engines.notices import LedgerNotice, NoticeCode
from entitlement_engines.usage import (
    UsageAccumulator,
    accumulate_usage,
    trip_usage,
)

__all__ = [
    # Advisor
    "ExpiringCarryOver",
    "RequestAssessment",
    "SplitSuggestion",
    "assess_request",
    "suggest_expiring_carry_over",
    "suggest_split",
    # Allowance
    "MAX_CARRY_OVER_DEPTH",
    "AllowanceBreakdown",
    "AllowanceResolver",
    "CarryOverContribution",
    # Carry-over
    "expiry_date",
    "expiry_label",
    "source_policies",
    # Day weigher
    "ChargeDay",
    "TripWeight",
    "daily_breakdown",
    "weigh_by_year",
    "weigh_trip",
    # Calendar
    "PersonCalendar",
    "calendars_for",
    "count_weekend_holidays",
    "observed_monday",
    "resolve_holiday_labels",
    "resolve_non_working_dates",
    # Ledger
    "ComputationPass",
    "EntitlementLedger",
    "LedgerBreakdown",
    "LedgerLine",
    "allowance",
    "balance",
    "build_ledger",
    "usage",
    "visible_years",
    # Notices
    "LedgerNotice",
    "NoticeCode",
    # Usage
    "UsageAccumulator",
    "accumulate_usage",
    "trip_usage",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 8,
    "modules": [
        "holiday_calendar", "day_weigher", "usage", "allowance",
        "carry_over", "ledger", "advisor", "notices",
    ],
})
