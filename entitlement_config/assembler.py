"""
entitlement_config.assembler -- composes YAML fragments into one snapshot.

Responsibility:
    People, calendars and trips are usually edited in small, separately
    owned YAML files.  This module composes them (or a single combined
    file) into one ``EntitlementSnapshot`` plus a checksum of the source.

Architecture position:
    Configuration -- YAML loading.  Called by
    ``entitlement_config.load_snapshot()`` and by tests that build
    fixtures on disk.  The assembler reads the filesystem (I/O boundary);
    the resulting snapshot is a pure, frozen data structure.

Fragment structure::

    workspace/
    +-- workspace.yaml         # Workspace name, working days, categories
    +-- people/                # One or more YAML files with ``people:``
    |   +-- engineering.yaml
    +-- calendars/             # One or more YAML files with ``calendars:``
    |   +-- uk-2024.yaml
    +-- trips/                 # One or more YAML files with ``trips:``
        +-- 2024.yaml

    A single file may instead hold ``categories``, ``people``,
    ``calendars`` and ``trips`` side by side.

Invariants enforced:
    - ``workspace.yaml`` must exist in every fragment directory.
    - Fragment files are read in sorted order, so assembly is
      deterministic and the checksum is stable.

Failure modes:
    - ``AssemblyError`` -- path missing, ``workspace.yaml`` absent.
    - ``KeyError`` / ``ValueError`` / ``yaml.YAMLError`` (propagated
      from the loader) -- malformed fragments.
    - ``DuplicatePolicyError`` -- a person with two policies for one
      (category, year).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from entitlement_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_calendar,
    parse_category,
    parse_person,
    parse_trip,
    parse_working_days,
)
from entitlement_kernel.domain.snapshot import MONDAY_TO_FRIDAY, EntitlementSnapshot
from entitlement_kernel.exceptions import ConfigurationError

WORKSPACE_FILE = "workspace.yaml"
FRAGMENT_SECTIONS = ("people", "calendars", "trips")


class AssemblyError(ConfigurationError):
    """Error during fragment assembly.

    Contract:
        Raised when the source path does not exist or a fragment
        directory has no ``workspace.yaml``.

    Non-goals:
        Does not enumerate field-level parse errors; those propagate from
        the loader and the first one aborts assembly.
    """

    code: str = "ASSEMBLY_FAILED"


@dataclass(frozen=True)
class AssembledWorkspace:
    """An assembled snapshot and the checksum of the YAML it came from."""

    snapshot: EntitlementSnapshot
    checksum: str
    source: Path


def assemble_from_data(data: dict[str, Any], workspace: str = "") -> EntitlementSnapshot:
    """Build a snapshot from already-loaded YAML data."""
    working_days = MONDAY_TO_FRIDAY
    if data.get("working_days") is not None:
        working_days = parse_working_days(data["working_days"])
    return EntitlementSnapshot(
        persons=tuple(parse_person(p) for p in data.get("people", [])),
        categories=tuple(parse_category(c) for c in data.get("categories", [])),
        trips=tuple(parse_trip(t) for t in data.get("trips", [])),
        calendars=tuple(parse_calendar(c) for c in data.get("calendars", [])),
        working_days=working_days,
        workspace=str(data.get("workspace", workspace)),
    )


def _load_directory(fragment_dir: Path) -> dict[str, Any]:
    root_path = fragment_dir / WORKSPACE_FILE
    if not root_path.exists():
        raise AssemblyError(f"{WORKSPACE_FILE} not found in {fragment_dir}")
    data = dict(load_yaml_file(root_path))

    for section in FRAGMENT_SECTIONS:
        entries = list(data.get(section, []))
        section_dir = fragment_dir / section
        if section_dir.is_dir():
            for fragment in sorted(section_dir.glob("*.yaml")):
                entries.extend(load_yaml_file(fragment).get(section, []))
        data[section] = entries
    return data


def assemble(path: Path) -> AssembledWorkspace:
    """Assemble a snapshot from a single YAML file or a fragment directory.

    Args:
        path: A ``.yaml`` file, or a directory laid out as described in
            the module docstring.

    Returns:
        AssembledWorkspace with the snapshot and a SHA-256 checksum over
        the merged YAML data.

    Raises:
        AssemblyError: If the path or ``workspace.yaml`` is missing.
    """
    path = Path(path)
    if path.is_dir():
        data = _load_directory(path)
    elif path.is_file():
        data = load_yaml_file(path)
    else:
        raise AssemblyError(f"Workspace path not found: {path}")

    snapshot = assemble_from_data(data, workspace=path.stem)
    checksum = compute_checksum(data)

    # INVARIANT: checksum must be a non-empty SHA-256 hex digest.
    assert checksum and len(checksum) == 64, (
        f"Checksum must be a 64-char SHA-256 hex digest, got {checksum!r}"
    )

    return AssembledWorkspace(snapshot=snapshot, checksum=checksum, source=path)
