"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_RETENTION_DAYS = 90


@dataclass(frozen=True)
class Settings:
    env: str
    stock_database_url: str | None
    catalog_path: str | None
    order_retention_days: int
    configuration_key: str


def load_settings() -> Settings:
    """Build settings from environment variables."""
    env = (os.getenv("STOREFRONT_ENV") or os.getenv("PROTEAN_ENV") or "development").lower()

    retention = os.getenv("STOREFRONT_ORDER_RETENTION_DAYS")
    try:
        retention_days = int(retention) if retention else DEFAULT_RETENTION_DAYS
    except ValueError:
        raise ValueError(f"STOREFRONT_ORDER_RETENTION_DAYS must be an integer, got {retention!r}") from None

    return Settings(
        env=env,
        stock_database_url=os.getenv("STOREFRONT_STOCK_DATABASE_URL") or None,
        catalog_path=os.getenv("STOREFRONT_CATALOG_PATH") or None,
        order_retention_days=retention_days,
        configuration_key=os.getenv("STOREFRONT_CONFIGURATION_KEY", "default"),
    )
