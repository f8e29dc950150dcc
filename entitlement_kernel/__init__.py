"""
Entitlement Kernel

Domain core for the leave entitlement engine:
- Immutable input snapshot (persons, categories, policies, trips, calendars)
- Tagged Allowance value (finite or unbounded)
- Pure administrative snapshot transforms
- Typed exceptions and structured logging
"""

__version__ = "0.1.0"
