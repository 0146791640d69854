"""Order aggregate — the record created when a checkout is submitted.

State Machine:
    PENDING → CONFIRMED
    PENDING / CONFIRMED → CANCELLED (terminal)

Cancellation is the only transition that gives stock back, and it happens at
most once: cancelling an already-cancelled order is a no-op.

The order also keeps a small reservation ledger: the stock lines that were
actually reserved (released again on cancellation) and the lines whose
reservation failed. Reconciliation retries whichever side is outstanding:
failed reservations on a live order, unreleased lines on a cancelled one.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, String, Text

from storefront.checkout.wizard import DeliveryType
from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPlaced,
    StockReleaseRecorded,
    StockReservationRecorded,
)
from storefront.stock.service import StockLine


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ReservationStatus(Enum):
    AWAITING = "awaiting"
    RESERVED = "reserved"
    PARTIAL = "partial"
    RELEASED = "released"
    RELEASE_PARTIAL = "release_partial"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),  # Terminal
}


def _dump_lines(lines) -> str:
    return json.dumps([line.to_dict() for line in lines])


def _load_lines(raw) -> list[StockLine]:
    return [StockLine.from_dict(d) for d in json.loads(raw)] if raw else []


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """One cart instance as ordered, with the customizations attached to it."""

    instance_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    name = String(max_length=255)
    size = String(max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    recipient_name = String(max_length=255)
    selections = Text()  # JSON: list of {step_id, option_id, name, price, kind}


@storefront.entity(part_of="Order")
class OrderExtra:
    """A surcharge line, tied to the instance it was selected for."""

    step_id = String(required=True, max_length=255)
    instance_id = Identifier()
    option_id = String(max_length=255)
    name = String(max_length=255)
    price = Float(default=0.0)
    kind = String(max_length=20)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    customer_name = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    delivery_type = String(required=True, choices=DeliveryType)
    table_number = String(max_length=50)
    address = Text()
    observations = Text()
    answers = Text()  # JSON: {step_id: free-text answer}
    items = HasMany(OrderItem)
    extras = HasMany(OrderExtra)
    drink = String(max_length=255)
    subtotal = Float(default=0.0)
    surcharge = Float(default=0.0)
    total = Float(default=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    reservation_status = String(choices=ReservationStatus, default=ReservationStatus.AWAITING.value)
    reserved_lines = Text()  # JSON: list of {id, quantity}
    failed_lines = Text()  # JSON: list of {id, quantity}
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    confirmed_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_name,
        customer_phone,
        delivery_type,
        items_data,
        extras_data,
        subtotal,
        surcharge,
        table_number=None,
        address=None,
        observations=None,
        answers=None,
        drink=None,
    ):
        """Create a pending order from an assembled checkout payload.

        Args:
            items_data: List of dicts with instance_id, menu_item_id, name,
                        size, unit_price, recipient_name, selections.
            extras_data: List of dicts with step_id, instance_id, option_id,
                         name, price, kind.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        delivery = DeliveryType(delivery_type)
        if delivery == DeliveryType.DELIVERY and not (address or "").strip():
            raise ValidationError({"address": ["Delivery orders need an address"]})
        if delivery == DeliveryType.TABLE and not table_number:
            raise ValidationError({"table_number": ["Table orders need a table number"]})

        now = datetime.now(UTC)
        order = cls(
            customer_name=customer_name,
            customer_phone=customer_phone,
            delivery_type=delivery.value,
            table_number=table_number,
            address=address,
            observations=observations,
            answers=json.dumps(answers or {}),
            drink=drink,
            subtotal=round(subtotal, 2),
            surcharge=round(surcharge, 2),
            total=round(subtotal + surcharge, 2),
            status=OrderStatus.PENDING.value,
            reservation_status=ReservationStatus.AWAITING.value,
            reserved_lines=json.dumps([]),
            failed_lines=json.dumps([]),
            created_at=now,
            updated_at=now,
        )

        for item in items_data:
            order.add_items(
                OrderItem(
                    instance_id=item["instance_id"],
                    menu_item_id=item["menu_item_id"],
                    name=item.get("name"),
                    size=item.get("size"),
                    unit_price=item["unit_price"],
                    recipient_name=item.get("recipient_name"),
                    selections=json.dumps(item.get("selections", [])),
                )
            )
        for extra in extras_data:
            order.add_extras(
                OrderExtra(
                    step_id=extra["step_id"],
                    instance_id=extra.get("instance_id"),
                    option_id=extra.get("option_id"),
                    name=extra.get("name"),
                    price=extra.get("price", 0.0),
                    kind=extra.get("kind"),
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_name=customer_name,
                delivery_type=delivery.value,
                item_count=len(items_data),
                subtotal=order.subtotal,
                surcharge=order.surcharge,
                total=order.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def confirm(self):
        self._assert_can_transition(OrderStatus.CONFIRMED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.confirmed_at = now
        self.updated_at = now
        self.raise_(OrderConfirmed(order_id=str(self.id), confirmed_at=now))

    def cancel(self, reason=None):
        """Cancel the order. Returns False when it was already cancelled."""
        if OrderStatus(self.status) == OrderStatus.CANCELLED:
            return False

        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                lines_to_release=self.reserved_lines,
                cancelled_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Reservation ledger
    # -------------------------------------------------------------------
    def reserved_stock_lines(self) -> list[StockLine]:
        return _load_lines(self.reserved_lines)

    def failed_stock_lines(self) -> list[StockLine]:
        return _load_lines(self.failed_lines)

    def record_reservation(self, applied, failed):
        """Add ``applied`` to the reserved lines and replace the failed ones."""
        reserved = self.reserved_stock_lines() + list(applied)
        failed = list(failed)

        self.reserved_lines = _dump_lines(reserved)
        self.failed_lines = _dump_lines(failed)
        self.reservation_status = (ReservationStatus.PARTIAL if failed else ReservationStatus.RESERVED).value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReservationRecorded(
                order_id=str(self.id),
                reserved_lines=self.reserved_lines,
                failed_lines=self.failed_lines,
                reservation_status=self.reservation_status,
            )
        )

    def record_release(self, released, unreleased):
        """Keep only the lines that could not be given back as still reserved."""
        unreleased = list(unreleased)

        self.reserved_lines = _dump_lines(unreleased)
        self.failed_lines = _dump_lines([])
        self.reservation_status = (
            ReservationStatus.RELEASE_PARTIAL if unreleased else ReservationStatus.RELEASED
        ).value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReleaseRecorded(
                order_id=str(self.id),
                released_lines=_dump_lines(released),
                unreleased_lines=self.reserved_lines,
            )
        )
