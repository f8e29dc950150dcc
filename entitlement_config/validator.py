"""
Configuration Validator (``entitlement_config.validator``).

Responsibility
--------------
Checks an assembled ``EntitlementSnapshot`` for referential integrity
before it is handed to the engines.

Architecture position
---------------------
**Config layer** -- load-time validation.  Called by
``entitlement_config.load_snapshot()`` after assembly.  Reads the kernel
domain types only.

Invariants enforced
-------------------
* Referential integrity -- policies, trips, allocations and carry-over
  targets name categories that exist.
* Id uniqueness -- persons, categories and calendars have unique ids.
* Allocation sanity -- split allocations are never negative.

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``)  -> the snapshot
  MUST NOT be used.
* Validation warnings (``ConfigValidationResult.warnings``)  -> the
  snapshot is usable; the engines degrade gracefully and report notices.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.domain.values import ZERO_DAYS


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block loading but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_snapshot(snapshot: EntitlementSnapshot) -> ConfigValidationResult:
    """
    Validate an assembled snapshot.

    Postconditions:
        - Returns a ``ConfigValidationResult`` with errors and warnings.
        - A snapshot with errors MUST NOT be used for computation.
    """
    result = ConfigValidationResult()

    _validate_unique_ids(snapshot, result)
    _validate_policy_categories(snapshot, result)
    _validate_carry_over_targets(snapshot, result)
    _validate_carry_over_loops(snapshot, result)
    _validate_calendar_references(snapshot, result)
    _validate_holiday_years(snapshot, result)
    _validate_trips(snapshot, result)

    return result


def _validate_unique_ids(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    """Check that persons, categories and calendars have unique ids."""
    for kind, ids in (
        ("person", [p.person_id for p in snapshot.persons]),
        ("category", [c.category_id for c in snapshot.categories]),
        ("calendar", [c.calendar_id for c in snapshot.calendars]),
    ):
        for item_id, count in sorted(Counter(ids).items()):
            if count > 1:
                result.add_error(f"Duplicate {kind} id '{item_id}' appears {count} times")


def _validate_policy_categories(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    for person in snapshot.persons:
        for policy in person.policies:
            if snapshot.category(policy.category_id) is None:
                result.add_error(
                    f"Person '{person.person_id}' has a {policy.year} policy for "
                    f"unknown category '{policy.category_id}'"
                )


def _validate_carry_over_targets(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    for category in snapshot.categories:
        target = category.default_carry_over.target_category_id
        if target is not None and snapshot.category(target) is None:
            result.add_error(
                f"Category '{category.category_id}' carries over into "
                f"unknown category '{target}'"
            )
    for person in snapshot.persons:
        for policy in person.policies:
            target = policy.carry_over.target_category_id
            if target is not None and snapshot.category(target) is None:
                result.add_error(
                    f"Person '{person.person_id}' policy {policy.category_id}/{policy.year} "
                    f"carries over into unknown category '{target}'"
                )


def _validate_carry_over_loops(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    """Warn when explicit carry-over targets form a cycle between categories.

    Each hop moves one year back, so a loop is not fatal, but it is almost
    always a configuration mistake.
    """
    for person in snapshot.persons:
        edges: dict[str, set[str]] = {}
        for policy in person.policies:
            rule = policy.carry_over
            if rule.enabled and rule.target_category_id not in (None, policy.category_id):
                edges.setdefault(policy.category_id, set()).add(rule.target_category_id)

        reported: set[frozenset[str]] = set()
        for start in sorted(edges):
            cycle = _find_cycle(start, edges)
            if cycle is None or frozenset(cycle) in reported:
                continue
            reported.add(frozenset(cycle))
            result.add_warning(
                f"Person '{person.person_id}' has a carry-over loop: "
                + " -> ".join(cycle + [cycle[0]])
            )


def _find_cycle(start: str, edges: dict[str, set[str]]) -> list[str] | None:
    path: list[str] = []
    on_path: set[str] = set()
    visited: set[str] = set()

    def visit(node: str) -> list[str] | None:
        path.append(node)
        on_path.add(node)
        for nxt in sorted(edges.get(node, ())):
            if nxt == start:
                return list(path)
            if nxt not in on_path and nxt not in visited:
                found = visit(nxt)
                if found is not None:
                    return found
        visited.add(node)
        on_path.discard(node)
        path.pop()
        return None

    return visit(start)


def _validate_calendar_references(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    for person in snapshot.persons:
        for calendar_id in person.holiday_config_ids:
            if snapshot.calendar(calendar_id) is None:
                result.add_warning(
                    f"Person '{person.person_id}' references unknown "
                    f"holiday calendar '{calendar_id}'"
                )


def _validate_holiday_years(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    """Holidays dated outside their calendar's year are ignored by the engines."""
    for calendar in snapshot.calendars:
        for holiday in calendar.holidays:
            if holiday.date.year != calendar.year:
                result.add_warning(
                    f"Calendar '{calendar.calendar_id}' ({calendar.year}) has holiday "
                    f"'{holiday.name}' dated {holiday.date.isoformat()}; it is ignored"
                )


def _validate_trips(snapshot: EntitlementSnapshot, result: ConfigValidationResult) -> None:
    for trip in snapshot.trips:
        if not trip.has_valid_range:
            result.add_warning(
                f"Trip '{trip.trip_id}' ends ({trip.end_date.isoformat()}) before "
                f"it starts ({trip.start_date.isoformat()}); it counts as zero days"
            )
        if trip.category_id is not None and snapshot.category(trip.category_id) is None:
            result.add_error(
                f"Trip '{trip.trip_id}' is charged to unknown category '{trip.category_id}'"
            )
        for allocation in trip.allocations:
            if snapshot.category(allocation.category_id) is None:
                result.add_error(
                    f"Trip '{trip.trip_id}' allocates to unknown category "
                    f"'{allocation.category_id}'"
                )
            if allocation.days < ZERO_DAYS:
                result.add_error(
                    f"Trip '{trip.trip_id}' allocates negative days "
                    f"({allocation.days}) to '{allocation.category_id}'"
                )
        for participant in trip.participants:
            if snapshot.person(participant) is None:
                result.add_warning(
                    f"Trip '{trip.trip_id}' participant '{participant}' is not a known person"
                )
