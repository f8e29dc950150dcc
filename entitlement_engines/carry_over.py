"""
Module: entitlement_engines.carry_over
Responsibility:
    Answer carry-over questions that do not need a running total: which
    previous-year policies feed a category, and when the carried days
    lapse in the receiving year.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A source policy must have carry-over enabled and target the category,
      either explicitly or implicitly through its own category.
    - ``months`` expiry is January 1 of the receiving year plus N months;
      zero months means the carried days never lapse;
      ``fixed_date`` expiry is the "MM-DD" date in the receiving year.

Failure modes:
    - Malformed expiry values produce no date (None), never an exception.
"""

from __future__ import annotations

from datetime import date

from entitlement_kernel.domain.model import CarryOverRule, ExpiryType, Person, Policy


def source_policies(person: Person, category_id: str, year: int) -> tuple[Policy, ...]:
    """Previous-year policies of ``person`` whose carry-over lands in ``category_id``."""
    return tuple(
        policy for policy in person.policies_for_year(year - 1)
        if policy.carry_over.enabled
        and policy.carry_over.feeds(policy.category_id, category_id)
    )


def expiry_label(rule: CarryOverRule | None) -> str:
    """Human label for when carried days lapse; empty when they never do."""
    if rule is None or not rule.enabled:
        return ""
    if rule.expiry_type == ExpiryType.MONTHS and rule.expiry_value:
        return f"Expires after {rule.expiry_value} months"
    if rule.expiry_type == ExpiryType.FIXED_DATE and rule.expiry_value:
        return f"Expires on {rule.expiry_value}"
    return ""


def _add_months(start: date, months: int) -> date:
    index = start.month - 1 + months
    return date(start.year + index // 12, index % 12 + 1, start.day)


def expiry_date(rule: CarryOverRule | None, year: int) -> date | None:
    """
    Date in ``year`` on which days carried in under ``rule`` expire.

    Args:
        rule: Carry-over rule of the source (previous-year) policy.
        year: Receiving year.

    Returns:
        The expiry date, or None when the rule never expires, its
        ``expiry_value`` cannot be read, or it is zero months.
    """
    if rule is None or not rule.enabled:
        return None
    if rule.expiry_type == ExpiryType.MONTHS:
        try:
            months = int(rule.expiry_value)
        except (TypeError, ValueError):
            return None
        if months <= 0:
            return None
        return _add_months(date(year, 1, 1), months)
    if rule.expiry_type == ExpiryType.FIXED_DATE:
        try:
            month, day = (int(part) for part in str(rule.expiry_value).split("-"))
            return date(year, month, day)
        except (TypeError, ValueError):
            return None
    return None


def same_category_source(person: Person, category_id: str, year: int) -> Policy | None:
    """The previous-year policy of the same category, when it carries over."""
    previous = person.policy_for(category_id, year - 1)
    if previous is None or not previous.carry_over.enabled:
        return None
    return previous
