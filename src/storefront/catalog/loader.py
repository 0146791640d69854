"""Catalog provider.

Provides get_catalog() / set_catalog() so the HTTP layer and tests can swap
the snapshot the engine reads. The default snapshot is loaded from the JSON
file named by ``STOREFRONT_CATALOG_PATH``, or is empty when unset.
"""

import json
from pathlib import Path

import structlog

from storefront.catalog.snapshot import CatalogSnapshot
from storefront.config import load_settings

logger = structlog.get_logger(__name__)

_current_catalog: CatalogSnapshot | None = None


def load_catalog(path: str | Path) -> CatalogSnapshot:
    """Read a catalog JSON document from disk."""
    with open(path, encoding="utf-8") as fp:
        data = json.load(fp)
    snapshot = CatalogSnapshot.from_dict(data)
    logger.info(
        "Catalog loaded",
        path=str(path),
        menu_items=len(snapshot.menu_items),
        extras=len(snapshot.extras),
        drink_options=len(snapshot.drink_options),
    )
    return snapshot


def get_catalog() -> CatalogSnapshot:
    """Return the active catalog snapshot."""
    global _current_catalog
    if _current_catalog is None:
        settings = load_settings()
        _current_catalog = load_catalog(settings.catalog_path) if settings.catalog_path else CatalogSnapshot()
    return _current_catalog


def set_catalog(catalog: CatalogSnapshot) -> None:
    """Override the active catalog snapshot (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the environment-configured catalog."""
    global _current_catalog
    _current_catalog = None
