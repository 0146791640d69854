"""Initialise stock counters from the catalog and step configuration."""

import structlog

from storefront.stock.port import StockStore

logger = structlog.get_logger(__name__)


def seed_stock(store: StockStore, catalog, steps=()) -> int:
    """Write every finite stock value into ``store``. Returns the count written."""
    counters: dict[str, int] = {}

    for entry in (*catalog.menu_items, *catalog.extras, *catalog.drink_options):
        if entry.stock is not None:
            counters[entry.id] = entry.stock

    for step in steps:
        for option in getattr(step, "options", ()):
            if option.track_stock and option.stock is not None:
                counters[option.id] = option.stock

    for stock_id, value in counters.items():
        store.set(stock_id, value)

    logger.info("Stock counters seeded", count=len(counters))
    return len(counters)
