"""
Import-boundary enforcement.

1. Engine purity      -- entitlement_engines/** may not import config,
                         YAML or persistence libraries.
2. Engine no-impure   -- entitlement_engines/** may not call wall-clock or
                         environment functions.
3. Domain purity      -- entitlement_kernel/domain/** imports only the
                         standard library and the kernel's own domain,
                         exception and logging modules.
4. Config centralisation -- only entitlement_config/ may import its
                         internal sub-modules from production code.
5. Dependency direction -- validates the full dependency DAG.

All scanning is done via AST -- these tests are read-only.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted((ROOT / package).rglob("*.py"))


def _relative(filepath: Path) -> str:
    return filepath.relative_to(ROOT).as_posix()


def _parse(filepath: Path) -> ast.AST | None:
    try:
        return ast.parse(filepath.read_text(), filename=str(filepath))
    except (SyntaxError, UnicodeDecodeError):
        return None


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = _parse(filepath)
    if tree is None:
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    for prefix in prefixes:
        if module == prefix or module.startswith(f"{prefix}."):
            return True
    return False


def _extract_attribute_calls(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for ast.Attribute nodes.

    Only captures two-level attribute references (e.g. date.today,
    os.environ), which is enough for the impure-function scan.
    """
    tree = _parse(filepath)
    if tree is None:
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            results.append((node.lineno, f"{node.value.id}.{node.attr}"))
    return results


# ---------------------------------------------------------------------------
# 1. TestEnginePurity
# ---------------------------------------------------------------------------

class TestEnginePurity:
    """entitlement_engines/** may not import config, YAML or persistence."""

    FORBIDDEN_PREFIXES = (
        "entitlement_config",
        "yaml",
        "sqlalchemy",
        "sqlite3",
        "pathlib",
    )

    def test_engine_files_exist(self):
        assert _python_files("entitlement_engines")

    def test_engine_files_have_no_forbidden_imports(self):
        violations: list[str] = []

        for filepath in _python_files("entitlement_engines"):
            for lineno, module in _extract_imports(filepath):
                if _matches_any(module, self.FORBIDDEN_PREFIXES):
                    violations.append(
                        f"  {_relative(filepath)}:{lineno} imports '{module}'"
                    )

        assert not violations, (
            "Engine purity violation -- entitlement_engines/** must not "
            "import config, YAML or persistence libraries:\n"
            + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 2. TestEngineNoImpureFunctions
# ---------------------------------------------------------------------------

class TestEngineNoImpureFunctions:
    """entitlement_engines/** may not call wall-clock or environment functions.

    Forbidden:
        datetime.now, datetime.utcnow, date.today,
        time.time, os.environ, os.getenv

    Allowed (observational-only):
        time.monotonic
    """

    FORBIDDEN_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "date.today",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    def test_no_impure_calls_in_engines(self):
        violations: list[str] = []

        for filepath in _python_files("entitlement_engines"):
            for lineno, qualname in _extract_attribute_calls(filepath):
                if qualname in self.FORBIDDEN_CALLS:
                    violations.append(
                        f"  {_relative(filepath)}:{lineno} calls '{qualname}'"
                    )

        assert not violations, (
            "Engine impurity violation -- entitlement_engines/** must not call "
            "wall-clock or environment functions.  Pass the year or date in "
            "explicitly:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 3. TestDomainPurity
# ---------------------------------------------------------------------------

class TestDomainPurity:
    """entitlement_kernel/domain/** holds frozen value types only."""

    ALLOWED_INTERNAL = (
        "entitlement_kernel.domain",
        "entitlement_kernel.exceptions",
        "entitlement_kernel.logging_config",
    )

    def test_domain_imports_stay_in_kernel(self):
        violations: list[str] = []

        for filepath in _python_files("entitlement_kernel/domain"):
            for lineno, module in _extract_imports(filepath):
                if not module.startswith("entitlement_"):
                    continue
                if not _matches_any(module, self.ALLOWED_INTERNAL):
                    violations.append(
                        f"  {_relative(filepath)}:{lineno} imports '{module}'"
                    )

        assert not violations, (
            "Domain purity violation -- entitlement_kernel/domain/** may only "
            "import the domain, exception and logging modules:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 4. TestConfigCentralization
# ---------------------------------------------------------------------------

class TestConfigCentralization:
    """Production code outside entitlement_config/ uses the package only.

    Forbidden external imports:
        entitlement_config.loader
        entitlement_config.assembler
        entitlement_config.validator
    """

    FORBIDDEN_INTERNAL_MODULES = (
        "entitlement_config.loader",
        "entitlement_config.assembler",
        "entitlement_config.validator",
    )

    def test_no_external_import_of_config_internals(self):
        violations: list[str] = []

        for package in ("entitlement_kernel", "entitlement_engines"):
            for filepath in _python_files(package):
                for lineno, module in _extract_imports(filepath):
                    if _matches_any(module, self.FORBIDDEN_INTERNAL_MODULES):
                        violations.append(
                            f"  {_relative(filepath)}:{lineno} imports '{module}'"
                        )

        assert not violations, (
            "Config centralisation violation -- only entitlement_config/ may "
            "import its internal sub-modules (loader, assembler, "
            "validator):\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# 5. TestDependencyDirection
# ---------------------------------------------------------------------------

class TestDependencyDirection:
    """Verify the overall dependency DAG:

    Allowed edges (-> means "may import"):
        entitlement_config  -> entitlement_kernel
        entitlement_engines -> entitlement_kernel
        entitlement_kernel  -> (stdlib only + internal)

    Forbidden edges:
        entitlement_engines x entitlement_config
        entitlement_kernel  x entitlement_engines, entitlement_config
        entitlement_config  x entitlement_engines
    """

    # (source_root, forbidden_prefixes)
    RULES: list[tuple[str, tuple[str, ...]]] = [
        ("entitlement_engines", ("entitlement_config",)),
        ("entitlement_kernel", ("entitlement_engines", "entitlement_config")),
        ("entitlement_config", ("entitlement_engines",)),
    ]

    def test_dependency_dag(self):
        violations: list[str] = []

        for source_root, forbidden in self.RULES:
            for filepath in _python_files(source_root):
                for lineno, module in _extract_imports(filepath):
                    if _matches_any(module, forbidden):
                        violations.append(
                            f"  [{source_root}] {_relative(filepath)}:{lineno} "
                            f"imports '{module}'"
                        )

        assert not violations, (
            "Dependency direction violation -- the following imports break "
            "the layered architecture DAG:\n" + "\n".join(violations)
        )

    def test_kernel_has_no_third_party_imports(self):
        violations: list[str] = []

        for filepath in _python_files("entitlement_kernel"):
            for lineno, module in _extract_imports(filepath):
                if _matches_any(module, ("yaml", "sqlalchemy", "hypothesis", "pytest")):
                    violations.append(f"  {_relative(filepath)}:{lineno} imports '{module}'")

        assert not violations, "\n".join(violations)
