"""
Module: entitlement_engines.allowance
Responsibility:
    Resolve the total allowance of a person for one (category, year):
    base accrual, lieu accrual from weekend holidays, and carry-over of
    unused days from the previous year's feeding policies, recursively.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Driven by ``entitlement_engines.ledger``; one resolver per computation
    pass.

Invariants enforced:
    - An unlimited policy (or category, when the policy does not
      override) resolves to UNBOUNDED and nothing else is computed.
    - Carry-over from a source is ``min(max(0, total - used), max_days)``.
    - Unbounded sources contribute no carry-over.
    - Recursion never resolves more than MAX_CARRY_OVER_DEPTH levels below
      the root; deeper requests are zero and leave a notice.
    - Results are memoized by (category_id, year).  The resolver is bound
      to one root year, so depth is always ``root_year - year`` and the key
      identifies one result.

Failure modes:
    - Missing category: zero base, a ``configuration_gap`` notice.
    - Missing policy: zero base and no carry-over.
    - Depth overrun: zero, a ``carry_over_depth_exceeded`` notice.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from entitlement_kernel.domain.model import CategoryClass, Person, WeekendRule
from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.domain.values import UNBOUNDED, ZERO_DAYS, Allowance
from entitlement_kernel.logging_config import get_logger
from entitlement_engines.carry_over import source_policies
from entitlement_engines.holiday_calendar import PersonCalendar
from entitlement_engines.notices import NoticeCode, NoticeLog
from entitlement_engines.usage import UsageAccumulator

logger = get_logger("engines.allowance")

MAX_CARRY_OVER_DEPTH = 5


@dataclass(frozen=True)
class CarryOverContribution:
    """Days one previous-year policy passed into the resolved category."""

    source_category_id: str
    source_year: int
    unused: Decimal
    contributed: Decimal


@dataclass(frozen=True)
class AllowanceBreakdown:
    """
    Components of one resolved allowance.

    Guarantees:
        - For a finite total, ``total == base + lieu + carry_over``.
        - For an unbounded total, the components are zero.
    """

    category_id: str
    year: int
    base: Decimal
    lieu: Decimal
    carry_over: Decimal
    total: Allowance
    sources: tuple[CarryOverContribution, ...] = ()

    @classmethod
    def empty(cls, category_id: str, year: int) -> AllowanceBreakdown:
        return cls(
            category_id=category_id,
            year=year,
            base=ZERO_DAYS,
            lieu=ZERO_DAYS,
            carry_over=ZERO_DAYS,
            total=Allowance.zero(),
        )

    @property
    def is_unbounded(self) -> bool:
        return self.total.is_unbounded


class AllowanceResolver:
    """
    Recursive allowance resolution for one person and one root year.

    Contract:
        ``resolve(category_id, year)`` is meant for ``year <= root_year``.
        The memo lives and dies with the resolver.
    """

    def __init__(
        self,
        snapshot: EntitlementSnapshot,
        person: Person,
        root_year: int,
        calendar: PersonCalendar,
        usage: UsageAccumulator,
        notices: NoticeLog,
    ):
        self._snapshot = snapshot
        self._person = person
        self.root_year = root_year
        self._calendar = calendar
        self._usage = usage
        self._notices = notices
        self._memo: dict[tuple[str, int], AllowanceBreakdown] = {}
        self.deepest_depth = 0

    def resolve(self, category_id: str, year: int, depth: int = 0) -> AllowanceBreakdown:
        if depth > MAX_CARRY_OVER_DEPTH:
            self._notices.add(
                NoticeCode.CARRY_OVER_DEPTH_EXCEEDED,
                f"Carry-over chain deeper than {MAX_CARRY_OVER_DEPTH} years "
                f"ignored below {category_id}/{year}",
                subject_id=category_id,
                year=year,
            )
            return AllowanceBreakdown.empty(category_id, year)

        key = (category_id, year)
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        self.deepest_depth = max(self.deepest_depth, depth)
        result = self._compute(category_id, year, depth)
        self._memo[key] = result
        logger.debug("allowance_resolved", extra={
            "category_id": category_id,
            "allowance_year": year,
            "depth": depth,
            "total": str(result.total),
        })
        return result

    def _compute(self, category_id: str, year: int, depth: int) -> AllowanceBreakdown:
        category = self._snapshot.category(category_id)
        policy = self._person.policy_for(category_id, year)
        if category is None:
            self._notices.add(
                NoticeCode.CONFIGURATION_GAP,
                f"Category {category_id} is not defined",
                subject_id=category_id,
                year=year,
            )

        if policy is not None and policy.is_unlimited is not None:
            is_unlimited = policy.is_unlimited
        else:
            is_unlimited = category is not None and category.is_unlimited
        if is_unlimited:
            return AllowanceBreakdown(
                category_id=category_id,
                year=year,
                base=ZERO_DAYS,
                lieu=ZERO_DAYS,
                carry_over=ZERO_DAYS,
                total=UNBOUNDED,
            )

        base = ZERO_DAYS
        if policy is not None and category is not None:
            base = policy.accrual.amount

        lieu = ZERO_DAYS
        if (
            category is not None
            and category.category_class == CategoryClass.LIEU
            and self._person.weekend_rule == WeekendRule.ACCRUE_TO_LIEU
        ):
            lieu = Decimal(self._calendar.weekend_holiday_count(year))

        carry_over = ZERO_DAYS
        sources: list[CarryOverContribution] = []
        if policy is not None and policy.carry_over.enabled:
            for source in source_policies(self._person, category_id, year):
                previous = self.resolve(source.category_id, year - 1, depth + 1)
                if previous.is_unbounded:
                    continue
                used = self._usage.usage(source.category_id, year - 1)
                unused = previous.total.remaining(used)
                contributed = unused.capped(source.carry_over.max_days).finite_days()
                carry_over += contributed
                sources.append(CarryOverContribution(
                    source_category_id=source.category_id,
                    source_year=year - 1,
                    unused=unused.finite_days(),
                    contributed=contributed,
                ))

        return AllowanceBreakdown(
            category_id=category_id,
            year=year,
            base=base,
            lieu=lieu,
            carry_over=carry_over,
            total=Allowance.finite(base + lieu) + carry_over,
            sources=tuple(sources),
        )
