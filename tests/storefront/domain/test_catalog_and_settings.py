"""Tests for the catalog snapshot, its loader and environment settings."""

import json

import pytest
from storefront.catalog.loader import get_catalog, load_catalog, reset_catalog
from storefront.catalog.snapshot import CatalogSnapshot
from storefront.config import DEFAULT_RETENTION_DAYS, load_settings
from storefront.utils.logging import get_log_level

CATALOG = {
    "menuItems": [
        {"id": 1, "name": "Açaí 300ml", "price": 20, "categoryId": 10},
        {"id": "shake", "name": "Shake", "price": "18.5", "category_id": "shakes", "stock": 3},
    ],
    "categories": [{"id": 10, "name": "Açaí"}],
    "extras": [{"id": "nutella", "name": "Nutella", "price": 4, "stock": 0}],
    "drinkOptions": [{"id": "coke", "name": "Coke", "price": 5}],
}


class TestCatalogSnapshot:
    def test_from_dict_normalises_ids_and_keys(self):
        snapshot = CatalogSnapshot.from_dict(CATALOG)
        acai = snapshot.menu_item("1")
        assert acai.category_id == "10"
        assert acai.stock is None
        assert snapshot.menu_item("shake").price == 18.5
        assert snapshot.menu_item("shake").stock == 3
        assert snapshot.category(10).name == "Açaí"
        assert snapshot.extra("nutella").stock == 0
        assert snapshot.drink("coke").price == 5.0
        assert snapshot.drink("ghost") is None


class TestCatalogLoader:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(CATALOG), encoding="utf-8")
        assert len(load_catalog(path).menu_items) == 2

    def test_get_catalog_reads_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(CATALOG), encoding="utf-8")
        monkeypatch.setenv("STOREFRONT_CATALOG_PATH", str(path))
        reset_catalog()
        assert get_catalog().menu_item("shake") is not None

    def test_empty_catalog_without_path(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_CATALOG_PATH", raising=False)
        reset_catalog()
        assert get_catalog() == CatalogSnapshot()


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "STOREFRONT_STOCK_DATABASE_URL",
            "STOREFRONT_CATALOG_PATH",
            "STOREFRONT_ORDER_RETENTION_DAYS",
            "STOREFRONT_CONFIGURATION_KEY",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.stock_database_url is None
        assert settings.order_retention_days == DEFAULT_RETENTION_DAYS == 90
        assert settings.configuration_key == "default"

    def test_invalid_retention(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_ORDER_RETENTION_DAYS", "ninety")
        with pytest.raises(ValueError):
            load_settings()

    def test_log_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("STOREFRONT_ENV", "production")
        assert get_log_level() == "INFO"
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"
