"""
Module: entitlement_engines.ledger
Responsibility:
    Produce the per-category entitlement ledger of a person for a year,
    and answer ad hoc allowance / usage / balance queries, each in a fresh
    computation pass over an immutable snapshot.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Public entry point of the engine package; composes the calendar
    resolver, day weigher, usage accumulator and allowance resolver.

Invariants enforced:
    - One LedgerLine per active policy of the year, in policy order.
    - ``total_allowance`` sums finite allowances only; unbounded lines
      contribute zero.
    - ``remaining`` is ``max(0, allowance - used)`` or UNBOUNDED.
    - Every public call builds its own ComputationPass; nothing is cached
      between calls, so the same snapshot always yields the same ledger.

Failure modes:
    - Never raises for snapshot gaps.  A missing person yields an empty
      ledger with a ``configuration_gap`` notice; a missing category
      yields a line named "Unknown" with zero contribution.

Audit relevance:
    Every public entry point emits ENTITLEMENT_ENGINE_TRACE with the
    snapshot fingerprint folded into the input fingerprint.

Usage:
    from entitlement_engines.ledger import build_ledger

    ledger = build_ledger(snapshot, person_id="alice", year=2024)
    for line in ledger.lines:
        print(line.category_name, line.used, line.remaining)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from entitlement_kernel.domain.model import CategoryClass, Person
from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.domain.values import ZERO_DAYS, Allowance
from entitlement_kernel.logging_config import LogContext, get_logger
from entitlement_engines.allowance import AllowanceBreakdown, AllowanceResolver
from entitlement_engines.carry_over import expiry_date, expiry_label, same_category_source
from entitlement_engines.holiday_calendar import PersonCalendar
from entitlement_engines.notices import LedgerNotice, NoticeCode, NoticeLog
from entitlement_engines.tracer import traced_engine
from entitlement_engines.usage import UsageAccumulator

logger = get_logger("engines.ledger")

UNKNOWN_CATEGORY_NAME = "Unknown"


# =============================================================================
# Result types
# =============================================================================


@dataclass(frozen=True)
class LedgerBreakdown:
    """Where a line's allowance comes from and when carried days lapse."""

    base: Decimal
    carry_over: Decimal
    lieu: Decimal
    expiry_label: str = ""
    expires_on: date | None = None


@dataclass(frozen=True)
class LedgerLine:
    """One category of the ledger."""

    category_id: str
    category_name: str
    category_class: CategoryClass | None
    used: Decimal
    allowance: Allowance
    breakdown: LedgerBreakdown

    @property
    def remaining(self) -> Allowance:
        return self.allowance.remaining(self.used)

    @property
    def is_unbounded(self) -> bool:
        return self.allowance.is_unbounded


@dataclass(frozen=True)
class EntitlementLedger:
    """
    Entitlements of one person for one year.

    Contract:
        Derived entirely from the snapshot whose fingerprint is recorded in
        ``snapshot_fingerprint``.

    Guarantees:
        - ``total_allowance`` never includes an unbounded line.
        - ``notices`` are deduplicated and in the order they arose.
    """

    person_id: str
    year: int
    lines: tuple[LedgerLine, ...]
    notices: tuple[LedgerNotice, ...] = ()
    snapshot_fingerprint: str = ""

    @property
    def total_allowance(self) -> Decimal:
        return sum((line.allowance.finite_or_zero() for line in self.lines), ZERO_DAYS)

    @property
    def total_used(self) -> Decimal:
        return sum((line.used for line in self.lines), ZERO_DAYS)

    def line_for(self, category_id: str) -> LedgerLine | None:
        for line in self.lines:
            if line.category_id == category_id:
                return line
        return None


# =============================================================================
# Computation pass
# =============================================================================


class ComputationPass:
    """
    Memo state of one top-level query for one person and root year.

    Contract:
        Created by the public functions of this module and discarded when
        they return.  Never cached, never shared.
    """

    def __init__(self, snapshot: EntitlementSnapshot, person: Person, year: int):
        self.snapshot = snapshot
        self.person = person
        self.year = year
        self.notices = NoticeLog()
        self.calendar = PersonCalendar(snapshot, person)
        for calendar_id in self.calendar.missing_calendar_ids:
            self.notices.add(
                NoticeCode.CONFIGURATION_GAP,
                f"Holiday calendar {calendar_id} is not defined",
                subject_id=calendar_id,
            )
        self.usage = UsageAccumulator(snapshot, person, self.calendar, self.notices)
        self.resolver = AllowanceResolver(
            snapshot, person, year, self.calendar, self.usage, self.notices,
        )

    def breakdown(self, category_id: str) -> AllowanceBreakdown:
        return self.resolver.resolve(category_id, self.year)

    def line(self, category_id: str) -> LedgerLine:
        category = self.snapshot.category(category_id)
        resolved = self.breakdown(category_id)
        policy = self.person.policy_for(category_id, self.year)
        rule = None
        if policy is not None and policy.carry_over.enabled:
            source = same_category_source(self.person, category_id, self.year)
            rule = source.carry_over if source is not None else None
        return LedgerLine(
            category_id=category_id,
            category_name=category.name if category is not None else UNKNOWN_CATEGORY_NAME,
            category_class=category.category_class if category is not None else None,
            used=self.usage.usage(category_id, self.year),
            allowance=resolved.total,
            breakdown=LedgerBreakdown(
                base=resolved.base,
                carry_over=resolved.carry_over,
                lieu=resolved.lieu,
                expiry_label=expiry_label(rule),
                expires_on=expiry_date(rule, self.year),
            ),
        )

    def ledger(self) -> EntitlementLedger:
        lines = tuple(
            self.line(policy.category_id)
            for policy in self.person.policies_for_year(self.year)
            if policy.is_active
        )
        return EntitlementLedger(
            person_id=self.person.person_id,
            year=self.year,
            lines=lines,
            notices=self.notices.as_tuple(),
            snapshot_fingerprint=self.snapshot.fingerprint,
        )


def query_log_context(
    snapshot: EntitlementSnapshot,
    person_id: str,
    year: int,
    request_id: str | None = None,
):
    """Bind the query's identity onto every log record emitted inside it."""
    return LogContext.bind(
        request_id=request_id,
        person_id=person_id,
        snapshot_id=snapshot.fingerprint,
        year=year,
    )


def _missing_person_ledger(
    snapshot: EntitlementSnapshot,
    person_id: str,
    year: int,
) -> EntitlementLedger:
    notices = NoticeLog()
    notices.add(
        NoticeCode.CONFIGURATION_GAP,
        f"Person {person_id} is not defined",
        subject_id=person_id,
        year=year,
    )
    return EntitlementLedger(
        person_id=person_id,
        year=year,
        lines=(),
        notices=notices.as_tuple(),
        snapshot_fingerprint=snapshot.fingerprint,
    )


# =============================================================================
# Public entry points
# =============================================================================


@traced_engine("ledger", "1.0", fingerprint_fields=("snapshot", "person_id", "year"))
def build_ledger(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    year: int,
    request_id: str | None = None,
) -> EntitlementLedger:
    """
    Build the entitlement ledger of ``person_id`` for ``year``.

    Args:
        snapshot: Immutable input state.
        person_id: Person whose ledger is built.
        year: Fiscal year.
        request_id: Caller correlation id, carried on every log record.

    Returns:
        EntitlementLedger with one line per active policy of the year.
    """
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        if person is None:
            return _missing_person_ledger(snapshot, person_id, year)

        computation = ComputationPass(snapshot, person, year)
        ledger = computation.ledger()
        logger.info("ledger_built", extra={
            "line_count": len(ledger.lines),
            "total_allowance": str(ledger.total_allowance),
            "total_used": str(ledger.total_used),
            "notice_count": len(ledger.notices),
            "carry_over_depth": computation.resolver.deepest_depth,
        })
        return ledger


@traced_engine("allowance", "1.0", fingerprint_fields=("snapshot", "person_id", "category_id", "year"))
def allowance(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    category_id: str,
    year: int,
    request_id: str | None = None,
) -> Allowance:
    """Total allowance of one (person, category, year); zero for an unknown person."""
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        if person is None:
            return Allowance.zero()
        return ComputationPass(snapshot, person, year).breakdown(category_id).total


@traced_engine("usage", "1.0", fingerprint_fields=("snapshot", "person_id", "category_id", "year"))
def usage(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    category_id: str,
    year: int,
    request_id: str | None = None,
) -> Decimal:
    """Days consumed from one category in one year; zero for an unknown person."""
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        if person is None:
            return ZERO_DAYS
        return ComputationPass(snapshot, person, year).usage.usage(category_id, year)


@traced_engine("balance", "1.0", fingerprint_fields=("snapshot", "person_id", "category_id", "year"))
def balance(
    snapshot: EntitlementSnapshot,
    *,
    person_id: str,
    category_id: str,
    year: int,
    request_id: str | None = None,
) -> Allowance:
    """Remaining allowance, floored at zero; UNBOUNDED for unlimited categories."""
    with query_log_context(snapshot, person_id, year, request_id):
        person = snapshot.person(person_id)
        if person is None:
            return Allowance.zero()
        computation = ComputationPass(snapshot, person, year)
        total = computation.breakdown(category_id).total
        return total.remaining(computation.usage.usage(category_id, year))


def visible_years(
    snapshot: EntitlementSnapshot,
    person_id: str,
    selected_year: int,
) -> tuple[int, ...]:
    """Years worth showing for a person, ascending.

    Union of the person's active years, the years of their policies, the
    years of the calendars they reference, and ``selected_year``.
    """
    years = {selected_year}
    person = snapshot.person(person_id)
    if person is not None:
        years.update(person.active_years)
        years.update(p.year for p in person.policies)
        for calendar_id in person.holiday_config_ids:
            calendar = snapshot.calendar(calendar_id)
            if calendar is not None:
                years.add(calendar.year)
    return tuple(sorted(years))
