"""Smoke tests – verify all modules are importable and free of syntax errors.

This is an infrastructure test (not a unit test), so it lives in the tests
root rather than under ``tests/unit/``.
"""

from __future__ import annotations

import importlib
import sys

import pytest

# ---------------------------------------------------------------------------
# Module lists
# ---------------------------------------------------------------------------

CORE_MODULES: list[str] = [
    "badgeviewer.core.badge",
    "badgeviewer.core.db",
    "badgeviewer.core.db.catalog_queries",
    "badgeviewer.core.db.connection",
    "badgeviewer.core.db.metadata_queries",
    "badgeviewer.core.db.models",
    "badgeviewer.core.db.schema",
    "badgeviewer.core.errors",
    "badgeviewer.core.logging",
]

SERVICE_MODULES: list[str] = [
    "badgeviewer.services.availability_service",
    "badgeviewer.services.badge_catalog_service",
    "badgeviewer.services.badge_store",
    "badgeviewer.services.catalog_service",
    "badgeviewer.services.collection_constants",
    "badgeviewer.services.collection_service",
    "badgeviewer.services.metadata_service",
    "badgeviewer.services.sort_service",
]

ENRICHMENT_MODULES: list[str] = [
    "badgeviewer.services.enrichment.base_enrichment_thread",
    "badgeviewer.services.enrichment.metadata_enrichment_service",
    "badgeviewer.services.enrichment.missing_metadata_service",
    "badgeviewer.services.enrichment.request_coalescer",
]

UTILS_MODULES: list[str] = [
    "badgeviewer.utils.date_utils",
]

INTEGRATION_MODULES: list[str] = [
    "badgeviewer.integrations.badgebase_api",
    "badgeviewer.integrations.helix_api",
    "badgeviewer.integrations.ownership_provider",
]

TOP_LEVEL_MODULES: list[str] = [
    "badgeviewer.config",
    "badgeviewer.main",
    "badgeviewer.version",
]


# ---------------------------------------------------------------------------
# Parametrized import tests
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("module_path", CORE_MODULES)
def test_import_core_modules(module_path: str) -> None:
    """Core module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", SERVICE_MODULES)
def test_import_service_modules(module_path: str) -> None:
    """Service module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", ENRICHMENT_MODULES)
def test_import_enrichment_modules(module_path: str) -> None:
    """Enrichment module must be importable without a QApplication."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", UTILS_MODULES)
def test_import_utils_modules(module_path: str) -> None:
    """Utils module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", INTEGRATION_MODULES)
def test_import_integration_modules(module_path: str) -> None:
    """Integration module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", TOP_LEVEL_MODULES)
def test_import_top_level_modules(module_path: str) -> None:
    """Top-level module must be importable without errors."""
    importlib.import_module(module_path)


# ---------------------------------------------------------------------------
# Circular import check
# ---------------------------------------------------------------------------


def test_no_circular_imports() -> None:
    """All modules can be imported in a fresh subprocess without cycles.

    Uses subprocess isolation to avoid corrupting module references for
    other tests in the same session.
    """
    import subprocess

    all_modules = (
        CORE_MODULES + SERVICE_MODULES + ENRICHMENT_MODULES + UTILS_MODULES + INTEGRATION_MODULES + TOP_LEVEL_MODULES
    )
    import_lines = "; ".join(f"import {m}" for m in all_modules)
    result = subprocess.run(
        [sys.executable, "-c", import_lines],
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert result.returncode == 0, f"Circular import detected:\nstderr: {result.stderr}"


def test_version_is_set() -> None:
    from badgeviewer.version import __app_name__, __version__

    assert __app_name__ == "Badge Viewer"
    assert __version__.count(".") == 2
