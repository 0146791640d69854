import pytest
from protean.integrations.pytest import DomainFixture
from storefront.catalog.loader import reset_catalog, set_catalog
from storefront.catalog.snapshot import CatalogSnapshot, Category, MenuItem, OptionItem
from storefront.stock import reset_stock_service, set_stock_service
from storefront.stock.memory_adapter import InMemoryStockStore
from storefront.stock.service import StockReservationService


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_catalog()
    reset_stock_service()


@pytest.fixture()
def catalog():
    snapshot = CatalogSnapshot(
        menu_items=(
            MenuItem(id="acai-300", name="Açaí 300ml", price=20.0, category_id="acai"),
            MenuItem(id="acai-500", name="Açaí 500ml", price=28.0, category_id="acai", stock=10),
            MenuItem(id="shake-choc", name="Chocolate Shake", price=18.0, category_id="shakes", stock=5),
            MenuItem(id="juice-orange", name="Orange Juice", price=9.0, category_id="juices", stock=0),
        ),
        categories=(
            Category(id="acai", name="Açaí"),
            Category(id="shakes", name="Shakes"),
            Category(id="juices", name="Juices"),
        ),
        extras=(
            OptionItem(id="nutella", name="Nutella", price=4.0, stock=20),
            OptionItem(id="granola", name="Granola", price=2.0),
        ),
        drink_options=(
            OptionItem(id="coke", name="Coke", price=5.0, stock=10),
            OptionItem(id="water", name="Water", price=3.0),
        ),
    )
    set_catalog(snapshot)
    return snapshot


@pytest.fixture()
def stock_store():
    store = InMemoryStockStore(
        {
            "acai-500": 10,
            "shake-choc": 5,
            "nutella": 20,
            "coke": 10,
        }
    )
    set_stock_service(StockReservationService(store))
    return store
