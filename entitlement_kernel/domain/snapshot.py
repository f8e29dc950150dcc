"""EntitlementSnapshot -- Frozen input of one entitlement computation pass."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any

from entitlement_kernel.domain.model import (
    Category,
    HolidayCalendar,
    Person,
    Trip,
)
from entitlement_kernel.exceptions import InvalidWorkingDaysError

# date.weekday() indices: Monday=0 .. Sunday=6
MONDAY_TO_FRIDAY: frozenset[int] = frozenset({0, 1, 2, 3, 4})


def working_day_set(days: Iterable[int]) -> frozenset[int]:
    """Validate and freeze a set of working weekday indices."""
    result = frozenset(days)
    invalid = tuple(sorted(d for d in result if not 0 <= d <= 6))
    if invalid:
        raise InvalidWorkingDaysError(invalid)
    return result


@dataclass(frozen=True)
class EntitlementSnapshot:
    """
    Immutable view of everything an entitlement computation reads.

    Contract:
        Built once by the caller (or ``entitlement_config.load_snapshot``)
        and treated as read-only for the lifetime of a computation pass.
        Any change to persons, categories, trips or calendars produces a
        new snapshot; engines never reuse results across snapshots.

    Guarantees:
        - Lookups by id are O(1) via read-only index mappings.
        - ``fingerprint`` is deterministic for identical content and is
          computed at most once per snapshot.
    """

    persons: tuple[Person, ...] = ()
    categories: tuple[Category, ...] = ()
    trips: tuple[Trip, ...] = ()
    calendars: tuple[HolidayCalendar, ...] = ()
    working_days: frozenset[int] = MONDAY_TO_FRIDAY
    workspace: str = ""

    _persons_by_id: Mapping[str, Person] = field(init=False, repr=False, compare=False)
    _categories_by_id: Mapping[str, Category] = field(init=False, repr=False, compare=False)
    _calendars_by_id: Mapping[str, HolidayCalendar] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "persons", tuple(self.persons))
        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(self, "trips", tuple(self.trips))
        object.__setattr__(self, "calendars", tuple(self.calendars))
        object.__setattr__(self, "working_days", working_day_set(self.working_days))
        object.__setattr__(self, "_persons_by_id", MappingProxyType(
            {p.person_id: p for p in self.persons}
        ))
        object.__setattr__(self, "_categories_by_id", MappingProxyType(
            {c.category_id: c for c in self.categories}
        ))
        object.__setattr__(self, "_calendars_by_id", MappingProxyType(
            {c.calendar_id: c for c in self.calendars}
        ))

    def person(self, person_id: str) -> Person | None:
        return self._persons_by_id.get(person_id)

    def category(self, category_id: str) -> Category | None:
        return self._categories_by_id.get(category_id)

    def calendar(self, calendar_id: str) -> HolidayCalendar | None:
        return self._calendars_by_id.get(calendar_id)

    def calendars_for(self, person: Person, year: int) -> tuple[HolidayCalendar, ...]:
        """Calendars the person references for ``year``, in reference order."""
        found = []
        for calendar_id in person.holiday_config_ids:
            calendar = self._calendars_by_id.get(calendar_id)
            if calendar is not None and calendar.year == year:
                found.append(calendar)
        return tuple(found)

    def trips_for(self, person_id: str) -> tuple[Trip, ...]:
        return tuple(t for t in self.trips if t.involves(person_id))

    @cached_property
    def fingerprint(self) -> str:
        """16-char SHA-256 prefix over the snapshot content, computed once."""
        payload: dict[str, Any] = {
            "persons": [asdict(p) for p in self.persons],
            "categories": [asdict(c) for c in self.categories],
            "trips": [asdict(t) for t in self.trips],
            "calendars": [asdict(c) for c in self.calendars],
            "working_days": sorted(self.working_days),
        }
        canonical = json.dumps(payload, sort_keys=True, default=_canonical)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _canonical(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    return str(value)
