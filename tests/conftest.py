"""
Pytest fixtures for the entitlement engine test suite.

Provides:
- Structured logging configuration and log capture
- Builders for snapshots, people, categories, calendars and trips

Builders are plain functions so property tests can call them inside
hypothesis examples; import them with ``from tests.conftest import ...``.
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from entitlement_kernel.domain import (
    AccrualRule,
    Allocation,
    CarryOverRule,
    Category,
    CategoryClass,
    DurationMode,
    ExpiryType,
    EntitlementSnapshot,
    HolidayCalendar,
    HolidayEntry,
    Person,
    Policy,
    Trip,
    TripStatus,
    WeekendRule,
)
from entitlement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

PERSON_ID = "alice"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture entitlement_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            build_ledger(snapshot, person_id="alice", year=2024)
            logs = captured_logs()
            assert any(r["message"] == "ledger_built" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("entitlement_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Builders
# =============================================================================


def make_category(
    category_id: str = "annual",
    name: str | None = None,
    category_class: CategoryClass = CategoryClass.ANNUAL,
    is_unlimited: bool = False,
) -> Category:
    return Category(
        category_id=category_id,
        name=name or category_id.title(),
        category_class=category_class,
        is_unlimited=is_unlimited,
    )


def make_policy(
    category_id: str = "annual",
    year: int = 2024,
    amount: Decimal | int | str = 20,
    carry_over: CarryOverRule | None = None,
    is_active: bool = True,
    is_unlimited: bool | None = None,
) -> Policy:
    return Policy(
        category_id=category_id,
        year=year,
        accrual=AccrualRule(amount=Decimal(str(amount))),
        carry_over=carry_over or CarryOverRule(),
        is_active=is_active,
        is_unlimited=is_unlimited,
    )


def carry(
    max_days: Decimal | int | str = 5,
    target: str | None = None,
    expiry_type: ExpiryType = ExpiryType.NONE,
    expiry_value: int | str | None = None,
) -> CarryOverRule:
    return CarryOverRule(
        enabled=True,
        max_days=Decimal(str(max_days)),
        expiry_type=expiry_type,
        expiry_value=expiry_value,
        target_category_id=target,
    )


def make_person(
    policies: tuple[Policy, ...] = (),
    person_id: str = PERSON_ID,
    weekend_rule: WeekendRule = WeekendRule.FORFEIT,
    holiday_config_ids: tuple[str, ...] = (),
    active_years: tuple[int, ...] = (),
) -> Person:
    return Person(
        person_id=person_id,
        name=person_id.title(),
        weekend_rule=weekend_rule,
        policies=policies,
        holiday_config_ids=holiday_config_ids,
        active_years=active_years,
    )


def make_calendar(
    calendar_id: str,
    year: int,
    holidays: dict[date, str] | None = None,
    region: str = "GB",
) -> HolidayCalendar:
    return HolidayCalendar(
        calendar_id=calendar_id,
        year=year,
        region=region,
        holidays=tuple(
            HolidayEntry(date=d, name=n) for d, n in (holidays or {}).items()
        ),
    )


def make_trip(
    start: date,
    end: date,
    category_id: str | None = "annual",
    trip_id: str | None = None,
    participants: tuple[str, ...] = (PERSON_ID,),
    status: TripStatus = TripStatus.UPCOMING,
    allocations: tuple[Allocation, ...] = (),
    duration_mode: DurationMode = DurationMode.FULL,
    **kwargs,
) -> Trip:
    return Trip(
        trip_id=trip_id or f"trip-{start.isoformat()}-{end.isoformat()}",
        start_date=start,
        end_date=end,
        participants=participants,
        status=status,
        category_id=category_id,
        allocations=allocations,
        duration_mode=duration_mode,
        **kwargs,
    )


def make_snapshot(
    persons: tuple[Person, ...] = (),
    categories: tuple[Category, ...] | None = None,
    trips: tuple[Trip, ...] = (),
    calendars: tuple[HolidayCalendar, ...] = (),
    **kwargs,
) -> EntitlementSnapshot:
    if categories is None:
        categories = (make_category(),)
    return EntitlementSnapshot(
        persons=persons,
        categories=categories,
        trips=trips,
        calendars=calendars,
        **kwargs,
    )


@pytest.fixture
def annual_category() -> Category:
    return make_category()


@pytest.fixture
def lieu_category() -> Category:
    return make_category("lieu", "Time in Lieu", CategoryClass.LIEU)
