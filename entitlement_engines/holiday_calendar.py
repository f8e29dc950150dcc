"""
Module: entitlement_engines.holiday_calendar
Responsibility:
    Resolve a person's public holidays into the set of dates that are not
    chargeable, applying the person's weekend-observance rule, and count
    weekend holidays for lieu accrual.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import entitlement_kernel.domain and sibling engine modules.

Invariants enforced:
    - Only holidays with ``is_included`` take effect.
    - ``move_to_monday`` adds the following Monday for a Saturday (+2) or
      Sunday (+1) holiday; a weekday holiday is never shifted.
    - ``accrue_to_lieu`` and ``forfeit`` add no extra dates.

Usage:
    from entitlement_engines.holiday_calendar import resolve_non_working_dates

    dates = resolve_non_working_dates(
        year=2024,
        holidays=calendar.holidays,
        weekend_rule=WeekendRule.MOVE_TO_MONDAY,
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import date, timedelta

from entitlement_kernel.domain.model import HolidayCalendar, HolidayEntry, Person, WeekendRule
from entitlement_kernel.domain.snapshot import EntitlementSnapshot
from entitlement_kernel.logging_config import get_logger

logger = get_logger("engines.holiday_calendar")

# Days from a weekend date to the following Monday.
_DAYS_TO_MONDAY = {5: 2, 6: 1}


def observed_monday(day: date) -> date | None:
    """The Monday a weekend holiday is observed on; None for weekdays."""
    shift = _DAYS_TO_MONDAY.get(day.weekday())
    if shift is None:
        return None
    return day + timedelta(days=shift)


def _effective_entries(
    year: int,
    holidays: Iterable[HolidayEntry],
    weekend_rule: WeekendRule,
) -> Iterator[tuple[date, str]]:
    for holiday in holidays:
        if not holiday.is_included or holiday.date.year != year:
            continue
        yield holiday.date, holiday.name
        if weekend_rule == WeekendRule.MOVE_TO_MONDAY:
            monday = observed_monday(holiday.date)
            if monday is not None:
                yield monday, f"{holiday.name} (Observed)"


def resolve_non_working_dates(
    year: int,
    holidays: Iterable[HolidayEntry],
    weekend_rule: WeekendRule,
) -> frozenset[date]:
    """
    Non-chargeable holiday dates of ``year``.

    Args:
        year: Calendar year being resolved.
        holidays: Entries of that year's calendar(s); entries dated in
            another year are ignored.
        weekend_rule: The person's weekend-observance rule.

    Returns:
        Frozen set of dates.  Observed Mondays may spill into January of
        the next year when a holiday falls on December 30 or 31.
    """
    return frozenset(d for d, _ in _effective_entries(year, holidays, weekend_rule))


def resolve_holiday_labels(
    year: int,
    holidays: Iterable[HolidayEntry],
    weekend_rule: WeekendRule,
) -> dict[date, str]:
    """Same dates as ``resolve_non_working_dates`` with display names.

    An actual holiday keeps its own name when an observed Monday lands on it.
    """
    labels: dict[date, str] = {}
    for day, name in _effective_entries(year, holidays, weekend_rule):
        if day not in labels or not name.endswith("(Observed)"):
            labels[day] = name
    return labels


def count_weekend_holidays(holidays: Iterable[HolidayEntry], year: int) -> int:
    """Included holidays of ``year`` falling on a weekend, counted once per date."""
    return len({
        h.date for h in holidays
        if h.is_included and h.date.year == year and h.falls_on_weekend
    })


def merged_holidays(calendars: Sequence[HolidayCalendar]) -> tuple[HolidayEntry, ...]:
    """Flatten several calendars into one entry sequence, in calendar order."""
    return tuple(h for calendar in calendars for h in calendar.holidays)


class PersonCalendar:
    """
    Resolved holidays of one person, cached by year for one computation pass.

    Contract:
        Created per pass and discarded with it.  Calendars referenced by
        the person but absent from the snapshot are treated as empty and
        listed in ``missing_calendar_ids``.
    """

    def __init__(self, snapshot: EntitlementSnapshot, person: Person):
        self._snapshot = snapshot
        self._person = person
        self._labels: dict[int, dict[date, str]] = {}
        self.missing_calendar_ids: tuple[str, ...] = tuple(
            cid for cid in person.holiday_config_ids
            if snapshot.calendar(cid) is None
        )

    @property
    def weekend_rule(self) -> WeekendRule:
        return self._person.weekend_rule

    def holidays_for_year(self, year: int) -> tuple[HolidayEntry, ...]:
        return merged_holidays(calendars_for(self._snapshot, self._person, year))

    def labels_for_year(self, year: int) -> dict[date, str]:
        labels = self._labels.get(year)
        if labels is None:
            labels = resolve_holiday_labels(
                year, self.holidays_for_year(year), self._person.weekend_rule,
            )
            self._labels[year] = labels
        return labels

    def non_working_between(self, start_date: date, end_date: date) -> dict[date, str]:
        """Holiday dates touching ``[start_date, end_date]``.

        Starts one year early so a late-December weekend holiday observed
        on a January Monday is included.
        """
        merged: dict[date, str] = {}
        for year in range(start_date.year - 1, end_date.year + 1):
            for day, name in self.labels_for_year(year).items():
                if day not in merged or not name.endswith("(Observed)"):
                    merged[day] = name
        return merged

    def weekend_holiday_count(self, year: int) -> int:
        return count_weekend_holidays(self.holidays_for_year(year), year)


def calendars_for(
    snapshot: EntitlementSnapshot,
    person: Person,
    year: int,
) -> tuple[HolidayCalendar, ...]:
    """Calendars applicable to ``person`` in ``year``, in the person's reference order."""
    return snapshot.calendars_for(person, year)
