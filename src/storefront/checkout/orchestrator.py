"""Checkout Orchestrator — drives the wizard and submits the order.

Submission runs in a fixed order:

    1. Assemble the order payload from the cart instances, the wizard input
       and the computed surcharge, and refuse it when a stock line has sold
       out since it was chosen.
    2. Persist the order (status pending) through ``PlaceOrder``.
    3. Only then reserve stock: one line per menu item (count of instances)
       and one per stock-tracked option selected.
    4. Record the reservation outcome on the order.
    5. Clear the cart and reset the selections.

If persistence fails, ``CheckoutFailed`` is raised before any stock counter
moves and the cart and selections are left untouched. A partial reservation
does not fail the checkout; the gap is recorded on the order for
reconciliation and reported in the ``CheckoutResult``.
"""

import json
from dataclasses import asdict, dataclass

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.items import RemoveFromCart
from storefront.cart.management import ClearCart
from storefront.catalog.loader import get_catalog
from storefront.checkout.steps import StepType
from storefront.checkout.wizard import (
    DeliveryType,
    NameMode,
    ReadyToSubmit,
    go_back,
    go_next,
    sync,
    toggle_option,
    validate_all,
)
from storefront.order.placement import PlaceOrder, RecordReservation
from storefront.pricing.engine import Surcharge, compute_surcharge
from storefront.stock import get_stock_service
from storefront.stock.service import ReservationReport, StockLine, merge_lines

logger = structlog.get_logger(__name__)

GUEST_NAME = "Guest"


class CheckoutFailed(Exception):
    """The order could not be persisted; nothing else was changed."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    subtotal: float
    surcharge: Surcharge
    total: float
    reservation: ReservationReport

    @property
    def fully_reserved(self) -> bool:
        return self.reservation.ok


class CheckoutOrchestrator:
    def __init__(self, steps, catalog=None, stock_service=None):
        self.steps = list(steps)
        self.catalog = catalog if catalog is not None else get_catalog()
        self.stock_service = stock_service if stock_service is not None else get_stock_service()

    # -------------------------------------------------------------------
    # Wizard driving
    # -------------------------------------------------------------------
    def visible_steps(self, state, cart) -> list:
        return sync(state, self.steps, cart.items)

    def quote(self, state, cart) -> Surcharge:
        return compute_surcharge(state.selections, self.visible_steps(state, cart), cart.items, self.catalog)

    def next(self, state, cart):
        """Advance the wizard; at the last step, submit the order.

        Returns the wizard outcome (``Advanced`` or ``Blocked``) or, once the
        last step is passed, a ``CheckoutResult``.
        """
        outcome = go_next(state, self.steps, cart.items)
        if isinstance(outcome, ReadyToSubmit):
            return self.submit(state, cart, outcome.steps)
        return outcome

    def back(self, state) -> bool:
        return go_back(state)

    def toggle_option(self, state, cart, step_id, instance_id, option_id):
        step = next((s for s in self.visible_steps(state, cart) if s.id == step_id), None)
        if step is None:
            raise ValidationError({"step_id": [f"Step {step_id} is not part of this checkout"]})
        return toggle_option(state, step, instance_id, option_id, cart.items, self.catalog, self.stock_service)

    def remove_instance(self, state, cart_id, instance_id):
        """Remove one cart instance together with everything chosen for it."""
        current_domain.process(RemoveFromCart(cart_id=cart_id, instance_id=instance_id), asynchronous=False)
        state.selections.drop_instance(str(instance_id))
        state.instance_names.pop(str(instance_id), None)

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        sync(state, self.steps, cart.items)
        return cart

    # -------------------------------------------------------------------
    # Payload assembly
    # -------------------------------------------------------------------
    def _customer_name(self, state, items) -> str:
        if state.name_mode == NameMode.MULTIPLE:
            names = [state.instance_names.get(str(item.id), "").strip() for item in items]
            name = ", ".join(dict.fromkeys(n for n in names if n))
        else:
            name = state.customer_name.strip()
        if name:
            return name
        if state.is_table and state.table_number:
            return f"Table {state.table_number}"
        return GUEST_NAME

    def _recipient(self, state, item) -> str | None:
        if state.name_mode == NameMode.MULTIPLE:
            return state.instance_names.get(str(item.id), "").strip() or None
        return state.customer_name.strip() or None

    def build_order_payload(self, state, cart, steps, surcharge) -> dict:
        """Keyword arguments for ``PlaceOrder``."""
        items = list(cart.items)
        delivery_type = state.effective_delivery_type

        items_data = [
            {
                "instance_id": str(item.id),
                "menu_item_id": str(item.menu_item_id),
                "name": item.name,
                "size": item.size,
                "unit_price": item.unit_price,
                "recipient_name": self._recipient(state, item),
                "selections": [asdict(line) for line in surcharge.for_instance(item.id)],
            }
            for item in items
        ]
        extras_data = [asdict(line) for line in surcharge.line_items]
        drink = next((line.name for line in surcharge.line_items if line.kind == "drink"), None)

        answers = {}
        for step in steps:
            if step.type == StepType.CUSTOM_TEXT.value and state.texts.get(step.id, "").strip():
                answers[step.id] = state.texts[step.id].strip()

        return {
            "customer_name": self._customer_name(state, items),
            "customer_phone": state.phone.strip() or None,
            "delivery_type": delivery_type.value,
            "table_number": state.table_number if delivery_type == DeliveryType.TABLE else None,
            "address": state.address.strip() if delivery_type == DeliveryType.DELIVERY else None,
            "observations": state.observations.strip() or None,
            "answers": json.dumps(answers),
            "items": json.dumps(items_data),
            "extras": json.dumps(extras_data),
            "drink": drink,
            "subtotal": cart.total,
            "surcharge": surcharge.total,
        }

    def _is_tracked(self, step, option_id) -> bool:
        option = step.option(option_id)
        if option is not None:
            return option.track_stock
        if step.type == StepType.EXTRAS.value:
            extra = self.catalog.extra(option_id)
            return extra is not None and extra.stock is not None
        if step.type == StepType.DRINKS.value:
            drink = self.catalog.drink(option_id)
            return drink is not None and drink.stock is not None
        return False

    def reservation_lines(self, cart, steps, surcharge) -> list[StockLine]:
        lines = [
            StockLine(id=menu_item_id, quantity=count) for menu_item_id, count in cart.quantities_by_menu_item().items()
        ]

        by_id = {step.id: step for step in steps}
        for line in surcharge.option_lines():
            step = by_id.get(line.step_id)
            if step is not None and self._is_tracked(step, line.option_id):
                lines.append(StockLine(id=line.option_id, quantity=1))
        return merge_lines(lines)

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def submit(self, state, cart, steps=None) -> CheckoutResult:
        if state.submitted:
            raise ValidationError({"wizard": ["Checkout was already submitted"]})

        items = list(cart.items)
        if not items:
            raise ValidationError({"cart": ["Cart is empty"]})

        visible = list(steps) if steps else sync(state, self.steps, items)
        problems = validate_all(state, visible, items)
        if problems:
            raise ValidationError({step_id: [reason] for step_id, reason in problems.items()})

        subtotal = cart.total
        surcharge = compute_surcharge(state.selections, visible, items, self.catalog)
        total = round(subtotal + surcharge.total, 2)
        payload = self.build_order_payload(state, cart, visible, surcharge)

        lines = self.reservation_lines(cart, visible, surcharge)
        sold_out = self.stock_service.sold_out(lines)
        if sold_out:
            raise ValidationError({"stock": [f"Sold out since it was selected: {', '.join(sold_out)}"]})

        try:
            order_id = current_domain.process(PlaceOrder(**payload), asynchronous=False)
        except ValidationError:
            raise
        except Exception as exc:
            logger.error("Order persistence failed", cart_id=str(cart.id), error=str(exc))
            raise CheckoutFailed("Order could not be saved", cause=exc) from exc

        report = self.stock_service.reserve(lines)
        current_domain.process(
            RecordReservation(
                order_id=order_id,
                applied=json.dumps([line.to_dict() for line in report.applied]),
                failed=json.dumps([line.to_dict() for line in report.failed_lines]),
            ),
            asynchronous=False,
        )
        if not report.ok:
            logger.warning(
                "Stock reservation incomplete",
                order_id=order_id,
                failed=[line.to_dict() for line in report.failed_lines],
            )

        current_domain.process(ClearCart(cart_id=str(cart.id)), asynchronous=False)
        state.selections.clear()
        state.submitted = True

        logger.info(
            "Checkout submitted",
            order_id=order_id,
            items=len(items),
            surcharge=surcharge.total,
            total=total,
        )
        return CheckoutResult(
            order_id=order_id,
            subtotal=subtotal,
            surcharge=surcharge,
            total=total,
            reservation=report,
        )
