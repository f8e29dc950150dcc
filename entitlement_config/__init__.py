"""
entitlement_config -- single public entrypoint for entitlement configuration.

Responsibility:
    Provides ``load_snapshot()``, the way to turn YAML workspace files into
    a validated, immutable ``EntitlementSnapshot`` for the engines.

Architecture position:
    Configuration -- YAML loading and load-time validation.
    This package sits above ``entitlement_kernel`` and beside
    ``entitlement_engines``.  Neither the kernel nor the engines import
    from ``entitlement_config``.

Invariants enforced:
    - Validation before use: a snapshot with validation errors is never
      returned.
    - Deterministic assembly: the same YAML always produces the same
      checksum and the same snapshot fingerprint.

Failure modes:
    - ``AssemblyError`` -- path or ``workspace.yaml`` missing.
    - ``ValueError`` -- validation errors, or malformed values.
    - ``KeyError`` / ``yaml.YAMLError`` -- malformed fragments.

Audit relevance:
    Every successful ``load_snapshot()`` call emits an
    ``ENTITLEMENT_CONFIG_TRACE`` log entry with the source checksum and
    the snapshot fingerprint, tying every ledger back to the exact
    configuration it was computed from.
"""

from __future__ import annotations

import logging
from pathlib import Path

from entitlement_config.assembler import AssembledWorkspace, AssemblyError, assemble
from entitlement_config.validator import ConfigValidationResult, validate_snapshot
from entitlement_kernel.domain.snapshot import EntitlementSnapshot

_logger = logging.getLogger("entitlement_kernel.config")

__all__ = [
    "AssembledWorkspace",
    "AssemblyError",
    "ConfigValidationResult",
    "assemble",
    "load_snapshot",
    "validate_snapshot",
]


def load_snapshot(path: Path | str) -> EntitlementSnapshot:
    """Load, validate and return the snapshot stored at ``path``.

    Contract:
        ``path`` is a single YAML file or a fragment directory (see
        ``entitlement_config.assembler``).

    Guarantees:
        - The returned snapshot has passed ``validate_snapshot`` with no
          errors; warnings are logged.
        - An ``ENTITLEMENT_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - Does NOT cache snapshots; callers hold the returned snapshot for
          as long as it reflects their data.

    Raises:
        AssemblyError: If the path is missing or incomplete.
        ValueError: If validation fails.
    """
    assembled = assemble(Path(path))
    snapshot = assembled.snapshot

    validation = validate_snapshot(snapshot)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "source": str(assembled.source),
            "detail": warning,
        })

    _logger.info(
        "ENTITLEMENT_CONFIG_TRACE",
        extra={
            "trace_type": "ENTITLEMENT_CONFIG_TRACE",
            "workspace": snapshot.workspace,
            "source": str(assembled.source),
            "checksum": assembled.checksum,
            "snapshot_fingerprint": snapshot.fingerprint,
            "person_count": len(snapshot.persons),
            "category_count": len(snapshot.categories),
            "calendar_count": len(snapshot.calendars),
            "trip_count": len(snapshot.trips),
            "warning_count": len(validation.warnings),
        },
    )
    return snapshot
