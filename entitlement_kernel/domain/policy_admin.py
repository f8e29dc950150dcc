"""
Policy administration -- pure snapshot transforms for admin actions.

Responsibility:
    The edits an administrator makes to entitlement configuration, each
    expressed as a function from old records to new records: deleting a
    category (with its cascade), rolling policies into a new year, and
    switching a person's weekend rule.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Persisting the
    returned snapshot is the caller's concern; engines are simply re-run
    against it.

Invariants enforced:
    - Deleting a category leaves no Policy, Allocation or trip category
      reference pointing at it.
    - Every returned Person still satisfies the one-policy-per
      (category, year) rule.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from entitlement_kernel.domain.model import (
    Category,
    CategoryClass,
    Person,
    Policy,
    Trip,
    WeekendRule,
)
from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.logging_config import get_logger

logger = get_logger("domain.policy_admin")


def remove_category(
    snapshot: EntitlementSnapshot,
    category_id: str,
) -> EntitlementSnapshot:
    """
    Delete a category and cascade the deletion.

    Removes the Category, every Policy for it on every Person, and every
    Allocation charging it.  Trips whose single ``category_id`` is the
    deleted category keep their dates but lose the category.

    Returns:
        A new snapshot; the input is unchanged.
    """
    persons = tuple(
        replace(p, policies=tuple(
            pol for pol in p.policies if pol.category_id != category_id
        ))
        for p in snapshot.persons
    )
    trips = tuple(_strip_category(t, category_id) for t in snapshot.trips)
    categories = tuple(
        c for c in snapshot.categories if c.category_id != category_id
    )

    removed_policies = sum(len(p.policies) for p in snapshot.persons) - sum(
        len(p.policies) for p in persons
    )
    logger.info("category_removed", extra={
        "category_id": category_id,
        "policies_removed": removed_policies,
        "trips_touched": sum(
            1 for old, new in zip(snapshot.trips, trips) if old is not new
        ),
    })

    return replace(snapshot, persons=persons, trips=trips, categories=categories)


def _strip_category(trip: Trip, category_id: str) -> Trip:
    if trip.is_split:
        kept = tuple(a for a in trip.allocations if a.category_id != category_id)
        if len(kept) != len(trip.allocations):
            return replace(trip, allocations=kept)
        return trip
    if trip.category_id == category_id:
        return replace(trip, category_id=None)
    return trip


def replace_person(snapshot: EntitlementSnapshot, person: Person) -> EntitlementSnapshot:
    """Swap in an edited person (matched by id); other records are untouched."""
    persons = tuple(
        person if p.person_id == person.person_id else p
        for p in snapshot.persons
    )
    return replace(snapshot, persons=persons)


def replicate_policies(person: Person, target_year: int) -> Person:
    """
    Copy the previous year's policies into ``target_year``.

    Existing ``target_year`` policies are replaced.  If the previous year
    has no policies the person is returned unchanged.  ``target_year`` is
    added to ``active_years``.
    """
    previous = person.policies_for_year(target_year - 1)
    years = person.active_years
    if target_year not in years:
        years = tuple(sorted((*years, target_year)))
    if not previous:
        return replace(person, active_years=years)

    kept = tuple(p for p in person.policies if p.year != target_year)
    copied = tuple(p.for_year(target_year) for p in previous)
    logger.debug("policies_replicated", extra={
        "person_id": person.person_id,
        "target_year": target_year,
        "policy_count": len(copied),
    })
    return replace(person, policies=kept + copied, active_years=years)


def ensure_lieu_policy(
    person: Person,
    categories: Sequence[Category],
    year: int,
) -> Person:
    """
    Give the person a lieu policy for ``year`` if they lack one.

    Uses the first lieu-class category.  The new policy is seeded with
    that category's defaults but never carries over.  No lieu category
    means no change.
    """
    lieu = next(
        (c for c in categories if c.category_class == CategoryClass.LIEU),
        None,
    )
    if lieu is None or person.policy_for(lieu.category_id, year) is not None:
        return person

    policy: Policy = replace(
        lieu.default_policy(year),
        carry_over=replace(lieu.default_carry_over, enabled=False),
    )
    return replace(person, policies=(*person.policies, policy))


def change_weekend_rule(
    person: Person,
    rule: WeekendRule,
    categories: Sequence[Category],
    year: int,
) -> Person:
    """Set the person's weekend rule; accruing to lieu also ensures a lieu policy."""
    updated = replace(person, weekend_rule=rule)
    if rule == WeekendRule.ACCRUE_TO_LIEU:
        updated = ensure_lieu_policy(updated, categories, year)
    return updated
