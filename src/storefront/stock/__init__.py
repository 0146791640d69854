"""Stock service factory.

Provides get_stock_service() / set_stock_service() to swap stores:
- SqlStockStore when STOREFRONT_STOCK_DATABASE_URL is set
- InMemoryStockStore otherwise (development and testing)
"""

from storefront.config import load_settings
from storefront.stock.memory_adapter import InMemoryStockStore
from storefront.stock.service import StockReservationService

_current_service: StockReservationService | None = None


def get_stock_service() -> StockReservationService:
    """Return the current stock reservation service."""
    global _current_service
    if _current_service is None:
        settings = load_settings()
        if settings.stock_database_url:
            from storefront.stock.sql_adapter import SqlStockStore

            store = SqlStockStore(settings.stock_database_url)
        else:
            store = InMemoryStockStore()
        _current_service = StockReservationService(store)
    return _current_service


def set_stock_service(service: StockReservationService) -> None:
    """Override the active stock service (useful for tests)."""
    global _current_service
    _current_service = service


def reset_stock_service() -> None:
    """Reset to the environment-configured service."""
    global _current_service
    _current_service = None
