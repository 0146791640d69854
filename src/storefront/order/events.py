"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A checkout was submitted and the order recorded as pending."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_name = String(required=True)
    delivery_type = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    surcharge = Float(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; its reserved stock lines are due for release."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(max_length=500)
    lines_to_release = Text()  # JSON: list of {id, quantity}
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class StockReservationRecorded:
    """The outcome of reserving (or reconciling) the order's stock lines."""

    __version__ = 1

    order_id = Identifier(required=True)
    reserved_lines = Text()  # JSON: list of {id, quantity}
    failed_lines = Text()  # JSON: list of {id, quantity}
    reservation_status = String(required=True)


@storefront.event(part_of="Order")
class StockReleaseRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    released_lines = Text()  # JSON: list of {id, quantity}
    unreleased_lines = Text()  # JSON: list of {id, quantity}
