"""
Typed Exception Hierarchy for the Entitlement Kernel.

===============================================================================
WHAT RAISES AND WHAT DOES NOT
===============================================================================

The entitlement engines never raise for data problems in a snapshot. A
missing Category, a carry-over chain that loops, or a trip that ends before
it starts all degrade to a zero contribution and are reported as a
``LedgerNotice`` (see ``entitlement_engines.ledger``).

Exceptions are reserved for two situations:
  1. Building invalid domain objects (duplicate policies, bad working days).
     These surface while loading or editing configuration, before any
     computation pass runs.
  2. Programming errors, such as doing arithmetic on the unbounded
     allowance instead of short-circuiting on it first.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    EntitlementKernelError (base)
    |
    +-- ConfigurationError
    |   +-- DuplicatePolicyError
    |   +-- InvalidWorkingDaysError
    |   +-- AssemblyError (entitlement_config.assembler)
    |
    +-- AllowanceError
        +-- UnboundedArithmeticError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | DUPLICATE_POLICY            | Two policies for one (category, year)
                | INVALID_WORKING_DAYS        | Weekday index outside 0..6
                | ASSEMBLY_FAILED             | YAML fragment directory unusable
----------------|-----------------------------|-----------------------------------------
Allowance       | UNBOUNDED_ARITHMETIC        | +, -, min on the unbounded allowance

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        person = Person(person_id="p1", name="Ada", policies=policies)
    except DuplicatePolicyError as e:
        report(e.code, category=e.category_id, year=e.year)
"""


class EntitlementKernelError(Exception):
    """
    Base exception for all entitlement kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ENTITLEMENT_KERNEL_ERROR"


# Configuration exceptions


class ConfigurationError(EntitlementKernelError):
    """Base exception for invalid configuration data."""

    code: str = "CONFIGURATION_ERROR"


class DuplicatePolicyError(ConfigurationError):
    """A person holds more than one policy for the same (category, year)."""

    code: str = "DUPLICATE_POLICY"

    def __init__(self, person_id: str, category_id: str, year: int):
        self.person_id = person_id
        self.category_id = category_id
        self.year = year
        super().__init__(
            f"Person {person_id} has more than one policy for "
            f"category {category_id} in {year}"
        )


class InvalidWorkingDaysError(ConfigurationError):
    """Working day set contains an index that is not a weekday."""

    code: str = "INVALID_WORKING_DAYS"

    def __init__(self, invalid: tuple[int, ...]):
        self.invalid = invalid
        super().__init__(
            f"Working days must be weekday indices 0 (Monday) to 6 (Sunday), "
            f"got {list(invalid)}"
        )


# Allowance exceptions


class AllowanceError(EntitlementKernelError):
    """Base exception for allowance value errors."""

    code: str = "ALLOWANCE_ERROR"


class UnboundedArithmeticError(AllowanceError):
    """Arithmetic was attempted on the unbounded allowance."""

    code: str = "UNBOUNDED_ARITHMETIC"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot apply '{operation}' to an unbounded allowance; "
            f"check is_unbounded first"
        )
