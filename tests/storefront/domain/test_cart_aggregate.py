"""Domain tests for the per-instance ShoppingCart aggregate."""

import pytest
from protean.exceptions import ValidationError
from storefront.cart.cart import ShoppingCart
from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved
from storefront.catalog.snapshot import MenuItem

ACAI = MenuItem(id="acai-300", name="Açaí 300ml", price=20.0, category_id="acai")
SHAKE = MenuItem(id="shake-choc", name="Chocolate Shake", price=18.0, category_id="shakes")


class TestAddItem:
    def test_returns_new_instance_id(self):
        cart = ShoppingCart.create(session_id="sess-001")
        instance_id = cart.add_item(ACAI, size="300ml", price=20.0)
        assert cart.instance(instance_id) is not None
        assert cart.instance(instance_id).category_id == "acai"

    def test_same_item_and_size_creates_separate_instances(self):
        cart = ShoppingCart.create()
        first = cart.add_item(ACAI, size="300ml", price=20.0)
        second = cart.add_item(ACAI, size="300ml", price=20.0)
        assert first != second
        assert len(cart.items) == 2

    def test_negative_price_rejected(self):
        cart = ShoppingCart.create()
        with pytest.raises(ValidationError):
            cart.add_item(ACAI, size="300ml", price=-1.0)

    def test_raises_item_added_event(self):
        cart = ShoppingCart.create()
        instance_id = cart.add_item(ACAI, size="300ml", price=20.0)
        event = cart._events[-1]
        assert isinstance(event, CartItemAdded)
        assert event.instance_id == instance_id
        assert event.menu_item_id == "acai-300"


class TestRemoveItem:
    def test_removes_only_that_instance(self):
        cart = ShoppingCart.create()
        first = cart.add_item(ACAI, size="300ml", price=20.0)
        second = cart.add_item(ACAI, size="300ml", price=20.0)
        cart.remove_item(first)
        assert cart.instance_ids() == [second]
        assert isinstance(cart._events[-1], CartItemRemoved)

    def test_unknown_instance_rejected(self):
        cart = ShoppingCart.create()
        with pytest.raises(ValidationError):
            cart.remove_item("missing")


class TestClear:
    def test_clear_empties_cart(self):
        cart = ShoppingCart.create()
        cart.add_item(ACAI, size="300ml", price=20.0)
        cart.add_item(SHAKE, size=None, price=18.0)
        cart.clear()
        assert len(cart.items) == 0
        event = cart._events[-1]
        assert isinstance(event, CartCleared)
        assert event.removed_count == 2


class TestTotalsAndGrouping:
    def test_total_is_sum_of_instance_prices(self):
        cart = ShoppingCart.create()
        cart.add_item(ACAI, size="300ml", price=20.0)
        cart.add_item(ACAI, size="300ml", price=20.0)
        cart.add_item(SHAKE, size=None, price=18.5)
        assert cart.total == 58.5

    def test_grouped_lines_bucket_by_item_and_size(self):
        cart = ShoppingCart.create()
        a = cart.add_item(ACAI, size="300ml", price=20.0)
        b = cart.add_item(ACAI, size="500ml", price=28.0)
        c = cart.add_item(ACAI, size="300ml", price=20.0)

        lines = cart.grouped_lines()
        assert [(line.size, line.quantity) for line in lines] == [("300ml", 2), ("500ml", 1)]
        assert lines[0].instance_ids == (a, c)
        assert lines[0].line_total == 40.0
        assert lines[1].instance_ids == (b,)

    def test_quantities_by_menu_item(self):
        cart = ShoppingCart.create()
        cart.add_item(ACAI, size="300ml", price=20.0)
        cart.add_item(ACAI, size="500ml", price=28.0)
        cart.add_item(SHAKE, size=None, price=18.0)
        assert cart.quantities_by_menu_item() == {"acai-300": 2, "shake-choc": 1}
