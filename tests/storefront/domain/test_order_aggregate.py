"""Domain tests for the Order aggregate."""

import json

import pytest
from protean.exceptions import ValidationError
from storefront.order.events import OrderCancelled, OrderConfirmed, OrderPlaced, StockReservationRecorded
from storefront.order.order import Order, OrderStatus, ReservationStatus
from storefront.stock.service import StockLine


def _items(count=1):
    return [
        {
            "instance_id": f"inst-{n}",
            "menu_item_id": "acai-300",
            "name": "Açaí 300ml",
            "size": "300ml",
            "unit_price": 20.0,
            "recipient_name": "Ana",
            "selections": [],
        }
        for n in range(count)
    ]


def _order(**overrides):
    defaults = {
        "customer_name": "Ana",
        "customer_phone": "11999990000",
        "delivery_type": "pickup",
        "items_data": _items(),
        "extras_data": [
            {"step_id": "extras", "instance_id": "inst-0", "option_id": "nutella", "name": "Nutella", "price": 4.0, "kind": "extra"}
        ],
        "subtotal": 20.0,
        "surcharge": 4.0,
    }
    defaults.update(overrides)
    return Order.create(**defaults)


class TestCreate:
    def test_pending_with_totals(self):
        order = _order()
        assert order.status == OrderStatus.PENDING.value
        assert order.reservation_status == ReservationStatus.AWAITING.value
        assert order.total == 24.0
        assert len(order.items) == 1
        assert order.extras[0].instance_id == "inst-0"

    def test_raises_order_placed(self):
        order = _order()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.total == 24.0
        assert event.item_count == 1

    def test_requires_items(self):
        with pytest.raises(ValidationError):
            _order(items_data=[])

    def test_delivery_requires_address(self):
        with pytest.raises(ValidationError):
            _order(delivery_type="delivery", address="  ")

    def test_table_requires_table_number(self):
        with pytest.raises(ValidationError):
            _order(delivery_type="table")
        assert _order(delivery_type="table", table_number="7").table_number == "7"

    def test_answers_stored_as_json(self):
        order = _order(answers={"notes": "No ice"})
        assert json.loads(order.answers) == {"notes": "No ice"}


class TestTransitions:
    def test_confirm(self):
        order = _order()
        order.confirm()
        assert order.status == OrderStatus.CONFIRMED.value
        assert isinstance(order._events[-1], OrderConfirmed)

    def test_cannot_confirm_cancelled(self):
        order = _order()
        order.cancel()
        with pytest.raises(ValidationError):
            order.confirm()

    def test_cancel_is_idempotent(self):
        order = _order()
        assert order.cancel(reason="Changed mind") is True
        assert order.cancel(reason="Again") is False
        assert order.cancellation_reason == "Changed mind"
        assert len([e for e in order._events if isinstance(e, OrderCancelled)]) == 1

    def test_confirmed_order_can_be_cancelled(self):
        order = _order()
        order.confirm()
        assert order.cancel()
        assert order.status == OrderStatus.CANCELLED.value


class TestReservationLedger:
    def test_full_reservation(self):
        order = _order()
        order.record_reservation(applied=[StockLine("acai-300", 1)], failed=[])
        assert order.reservation_status == ReservationStatus.RESERVED.value
        assert order.reserved_stock_lines() == [StockLine("acai-300", 1)]
        assert isinstance(order._events[-1], StockReservationRecorded)

    def test_partial_reservation_keeps_failed_lines(self):
        order = _order()
        order.record_reservation(applied=[StockLine("acai-300", 1)], failed=[StockLine("nutella", 1)])
        assert order.reservation_status == ReservationStatus.PARTIAL.value
        assert order.failed_stock_lines() == [StockLine("nutella", 1)]

    def test_reconciled_lines_accumulate(self):
        order = _order()
        order.record_reservation(applied=[StockLine("acai-300", 1)], failed=[StockLine("nutella", 1)])
        order.record_reservation(applied=[StockLine("nutella", 1)], failed=[])
        assert order.reserved_stock_lines() == [StockLine("acai-300", 1), StockLine("nutella", 1)]
        assert order.failed_stock_lines() == []
        assert order.reservation_status == ReservationStatus.RESERVED.value

    def test_release_clears_reserved_lines(self):
        order = _order()
        order.record_reservation(applied=[StockLine("acai-300", 1)], failed=[])
        order.record_release(released=[StockLine("acai-300", 1)], unreleased=[])
        assert order.reserved_stock_lines() == []
        assert order.reservation_status == ReservationStatus.RELEASED.value

    def test_unreleased_lines_stay_reserved(self):
        order = _order()
        order.record_reservation(applied=[StockLine("acai-300", 1), StockLine("nutella", 2)], failed=[])
        order.record_release(released=[StockLine("acai-300", 1)], unreleased=[StockLine("nutella", 2)])
        assert order.reserved_stock_lines() == [StockLine("nutella", 2)]
        assert order.reservation_status == ReservationStatus.RELEASE_PARTIAL.value
