"""Order placement — commands and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.stock.service import StockLine


def _json(value):
    return json.loads(value) if isinstance(value, str) else value


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_name = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    delivery_type = String(required=True, max_length=20)
    table_number = String(max_length=50)
    address = Text()
    observations = Text()
    answers = Text()  # JSON: {step_id: answer}
    items = Text(required=True)  # JSON: list of item dicts
    extras = Text()  # JSON: list of surcharge line dicts
    drink = String(max_length=255)
    subtotal = Float(required=True)
    surcharge = Float(default=0.0)


@storefront.command(part_of="Order")
class RecordReservation:
    order_id = Identifier(required=True)
    applied = Text()  # JSON: list of {id, quantity}
    failed = Text()  # JSON: list of {id, quantity}


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.create(
            customer_name=command.customer_name,
            customer_phone=command.customer_phone,
            delivery_type=command.delivery_type,
            items_data=_json(command.items),
            extras_data=_json(command.extras) or [],
            subtotal=command.subtotal,
            surcharge=command.surcharge or 0.0,
            table_number=command.table_number,
            address=command.address,
            observations=command.observations,
            answers=_json(command.answers),
            drink=command.drink,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)

    @handle(RecordReservation)
    def record_reservation(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_reservation(
            applied=[StockLine.from_dict(d) for d in _json(command.applied) or []],
            failed=[StockLine.from_dict(d) for d in _json(command.failed) or []],
        )
        repo.add(order)
