"""
Values -- Immutable day-count value objects.

Responsibility:
    Provides the day-count primitives shared by every engine: Decimal day
    constants, ``to_days`` coercion, and the ``Allowance`` tagged variant
    that distinguishes a finite entitlement from an unbounded one.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the domain model and every engine module.

Invariants enforced:
    - Day counts are always ``Decimal``, never ``float``.
    - The unbounded allowance never takes part in arithmetic; every
      operation on it raises ``UnboundedArithmeticError``.

Failure modes:
    - ValueError when a value cannot be converted to a Decimal day count.
    - UnboundedArithmeticError on arithmetic involving ``UNBOUNDED``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from entitlement_kernel.exceptions import UnboundedArithmeticError

ZERO_DAYS = Decimal("0")
FULL_DAY = Decimal("1")
HALF_DAY = Decimal("0.5")


def to_days(value: Any) -> Decimal:
    """
    Coerce a numeric value into a Decimal day count.

    Floats are converted through ``str`` so 0.5 stays exactly 0.5.

    Raises:
        ValueError: If the value is not a number.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid day count: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid day count: {value!r}") from e


@dataclass(frozen=True, slots=True)
class Allowance:
    """
    Total entitlement for one (person, category, year).

    Contract:
        Either finite (``days`` holds a Decimal) or unbounded (``days`` is
        None).  Construct through ``Allowance.finite`` / ``Allowance.unbounded``
        or use the ``UNBOUNDED`` constant.

    Guarantees:
        - Immutable and hashable.
        - Finite arithmetic returns new finite allowances.
        - Arithmetic touching the unbounded variant raises instead of
          silently propagating an infinite value.

    Non-goals:
        - Does NOT clamp negative values; carry-over math clamps explicitly.
    """

    days: Decimal | None

    def __post_init__(self) -> None:
        if self.days is not None and not isinstance(self.days, Decimal):
            object.__setattr__(self, "days", to_days(self.days))

    @classmethod
    def finite(cls, days: Decimal | int | str) -> Allowance:
        """Create a finite allowance."""
        return cls(days=to_days(days))

    @classmethod
    def unbounded(cls) -> Allowance:
        """Create the unbounded allowance."""
        return cls(days=None)

    @classmethod
    def zero(cls) -> Allowance:
        return cls(days=ZERO_DAYS)

    @property
    def is_unbounded(self) -> bool:
        return self.days is None

    @property
    def is_finite(self) -> bool:
        return self.days is not None

    def finite_days(self) -> Decimal:
        """Return the finite day count; raises when unbounded."""
        if self.days is None:
            raise UnboundedArithmeticError("finite_days")
        return self.days

    def finite_or_zero(self) -> Decimal:
        """Day count for aggregate totals; unbounded contributes zero."""
        return ZERO_DAYS if self.days is None else self.days

    def capped(self, max_days: Decimal) -> Allowance:
        """Finite allowance limited to ``max_days``; raises when unbounded."""
        return Allowance(days=min(self.finite_days(), max_days))

    def remaining(self, used: Decimal) -> Allowance:
        """What is left after ``used`` days; unbounded stays unbounded."""
        if self.days is None:
            return self
        return Allowance(days=max(ZERO_DAYS, self.days - used))

    def __add__(self, other: Allowance | Decimal | int) -> Allowance:
        if isinstance(other, Allowance):
            if other.days is None:
                raise UnboundedArithmeticError("+")
            other_days = other.days
        elif isinstance(other, (Decimal, int)):
            other_days = to_days(other)
        else:
            return NotImplemented
        if self.days is None:
            raise UnboundedArithmeticError("+")
        return Allowance(days=self.days + other_days)

    def __radd__(self, other: Decimal | int) -> Allowance:
        return self.__add__(other)

    def __str__(self) -> str:
        return "unbounded" if self.days is None else str(self.days)

    def __repr__(self) -> str:
        if self.days is None:
            return "Allowance.unbounded()"
        return f"Allowance.finite({self.days!r})"


UNBOUNDED = Allowance.unbounded()
