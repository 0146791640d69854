"""FastAPI routes for the Storefront — carts, checkout, orders and step configuration."""

import json
from dataclasses import asdict
from datetime import date

from fastapi import APIRouter
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddStepRequest,
    AddToCartRequest,
    CancelOrderRequest,
    CancelResponse,
    CartIdResponse,
    CartItemSchema,
    CartLineSchema,
    CartResponse,
    CheckoutContextRequest,
    CheckoutRequest,
    CheckoutResponse,
    ConfigurationIdResponse,
    CreateCartRequest,
    CreateConfigurationRequest,
    InstanceIdResponse,
    OrderItemSchema,
    OrderResponse,
    PurgeOrdersRequest,
    PurgeResponse,
    QuoteResponse,
    ReconcileResponse,
    ReorderStepsRequest,
    StatusResponse,
    StepsResponse,
    StockLineSchema,
    SurchargeLineSchema,
)
from storefront.cart.cart import ShoppingCart
from storefront.cart.items import AddToCart
from storefront.cart.management import ClearCart, CreateCart
from storefront.checkout.administration import (
    AddCheckoutStep,
    CreateCheckoutConfiguration,
    RemoveCheckoutStep,
    ReorderCheckoutSteps,
    ResetCheckoutSteps,
    UpdateCheckoutStep,
    load_checkout_steps,
)
from storefront.checkout.orchestrator import CheckoutOrchestrator
from storefront.checkout.steps import dump_steps
from storefront.checkout.visibility import relevant_instances
from storefront.checkout.wizard import NameMode, WizardState, set_delivery_type
from storefront.order.cancellation import CancelOrder
from storefront.order.confirmation import ConfirmOrder
from storefront.order.order import Order
from storefront.order.queries import list_orders
from storefront.order.reconciliation import ReconcileReservation
from storefront.order.retention import PurgeOrders


def _orchestrator():
    return CheckoutOrchestrator(load_checkout_steps())


def _wizard_state(orchestrator, cart, body: CheckoutRequest) -> WizardState:
    """Rebuild the wizard input the client sent for ``cart``.

    Selections for steps that are not visible, or for instances a step does
    not apply to, are dropped; the rest go through the same toggle rules as
    interactive clicks.
    """
    state = WizardState(
        is_table=bool(cart.table_number),
        table_number=cart.table_number,
        address=body.address,
        phone=body.phone,
        name_mode=NameMode(body.name_mode) if body.name_mode else None,
        customer_name=body.customer_name,
        instance_names=dict(body.instance_names),
        texts=dict(body.texts),
        observations=body.observations,
    )
    if not state.is_table:
        set_delivery_type(state, body.delivery_type, orchestrator.steps, cart.items)

    for step in orchestrator.visible_steps(state, cart):
        per_instance = body.selections.get(step.id)
        if not step.per_instance or not per_instance:
            continue
        relevant = {str(item.id) for item in relevant_instances(step, cart.items)}
        for instance_id, option_ids in per_instance.items():
            if instance_id not in relevant:
                continue
            for option_id in dict.fromkeys(option_ids):
                orchestrator.toggle_option(state, cart, step.id, instance_id, option_id)
    return state


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        session_id=body.session_id,
        table_number=body.table_number,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    return CartResponse(
        cart_id=str(cart.id),
        table_number=cart.table_number,
        items=[
            CartItemSchema(
                instance_id=str(item.id),
                menu_item_id=str(item.menu_item_id),
                name=item.name,
                size=item.size,
                unit_price=item.unit_price,
            )
            for item in cart.items
        ],
        lines=[
            CartLineSchema(
                menu_item_id=line.menu_item_id,
                name=line.name,
                size=line.size,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line.line_total,
                instance_ids=list(line.instance_ids),
            )
            for line in cart.grouped_lines()
        ],
        total=cart.total,
    )


@cart_router.post("/{cart_id}/items", status_code=201, response_model=InstanceIdResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> InstanceIdResponse:
    command = AddToCart(
        cart_id=cart_id,
        menu_item_id=body.menu_item_id,
        size=body.size,
        price=body.price,
    )
    instance_id = current_domain.process(command, asynchronous=False)
    return InstanceIdResponse(instance_id=instance_id)


@cart_router.delete("/{cart_id}/items/{instance_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, instance_id: str) -> StatusResponse:
    # Over HTTP the wizard input is held by the client
    _orchestrator().remove_instance(WizardState(), cart_id, instance_id)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items", response_model=StatusResponse)
async def clear_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/{cart_id}/steps", response_model=StepsResponse)
async def visible_checkout_steps(cart_id: str, body: CheckoutContextRequest) -> StepsResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    orchestrator = _orchestrator()
    state = WizardState(is_table=bool(cart.table_number), table_number=cart.table_number)
    if not state.is_table:
        set_delivery_type(state, body.delivery_type, orchestrator.steps, cart.items)
    return StepsResponse(steps=dump_steps(orchestrator.visible_steps(state, cart)))


@checkout_router.post("/{cart_id}/quote", response_model=QuoteResponse)
async def quote_checkout(cart_id: str, body: CheckoutRequest) -> QuoteResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    orchestrator = _orchestrator()
    surcharge = orchestrator.quote(_wizard_state(orchestrator, cart, body), cart)
    return QuoteResponse(
        subtotal=cart.total,
        surcharge=surcharge.total,
        total=round(cart.total + surcharge.total, 2),
        lines=[SurchargeLineSchema(**asdict(line)) for line in surcharge.line_items],
    )


@checkout_router.post("/{cart_id}/submit", status_code=201, response_model=CheckoutResponse)
async def submit_checkout(cart_id: str, body: CheckoutRequest) -> CheckoutResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    orchestrator = _orchestrator()
    result = orchestrator.submit(_wizard_state(orchestrator, cart, body), cart)
    return CheckoutResponse(
        order_id=result.order_id,
        subtotal=result.subtotal,
        surcharge=result.surcharge.total,
        total=result.total,
        fully_reserved=result.fully_reserved,
        failed_lines=[StockLineSchema(**line.to_dict()) for line in result.reservation.failed_lines],
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        status=order.status,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        delivery_type=order.delivery_type,
        table_number=order.table_number,
        address=order.address,
        observations=order.observations,
        answers=json.loads(order.answers) if order.answers else {},
        drink=order.drink,
        items=[
            OrderItemSchema(
                instance_id=str(item.instance_id),
                menu_item_id=str(item.menu_item_id),
                name=item.name,
                size=item.size,
                unit_price=item.unit_price,
                recipient_name=item.recipient_name,
                selections=json.loads(item.selections) if item.selections else [],
            )
            for item in order.items
        ],
        extras=[
            SurchargeLineSchema(
                step_id=extra.step_id,
                instance_id=str(extra.instance_id),
                option_id=extra.option_id,
                name=extra.name or "",
                price=extra.price,
                kind=extra.kind or "",
            )
            for extra in order.extras
        ],
        subtotal=order.subtotal,
        surcharge=order.surcharge,
        total=order.total,
        reservation_status=order.reservation_status,
        failed_lines=[StockLineSchema(**line.to_dict()) for line in order.failed_stock_lines()],
        created_at=order.created_at.isoformat() if order.created_at else None,
    )


@order_router.get("", response_model=list[OrderResponse])
async def get_orders(day: date | None = None) -> list[OrderResponse]:
    return [_order_response(order) for order in list_orders(day)]


@order_router.post("/purge", response_model=PurgeResponse)
async def purge_orders(body: PurgeOrdersRequest) -> PurgeResponse:
    deleted = current_domain.process(PurgeOrders(older_than_days=body.older_than_days), asynchronous=False)
    return PurgeResponse(deleted=deleted)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).get(order_id))


@order_router.put("/{order_id}/confirm", response_model=StatusResponse)
async def confirm_order(order_id: str) -> StatusResponse:
    current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=CancelResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> CancelResponse:
    cancelled = current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    return CancelResponse(cancelled=bool(cancelled))


@order_router.post("/{order_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_order(order_id: str) -> ReconcileResponse:
    outstanding = current_domain.process(ReconcileReservation(order_id=order_id), asynchronous=False)
    return ReconcileResponse(outstanding=outstanding)


# ---------------------------------------------------------------------------
# Step Configuration Router
# ---------------------------------------------------------------------------
step_router = APIRouter(prefix="/checkout-configurations", tags=["checkout-configurations"])


@step_router.post("", status_code=201, response_model=ConfigurationIdResponse)
async def create_configuration(body: CreateConfigurationRequest) -> ConfigurationIdResponse:
    command = CreateCheckoutConfiguration(
        store_key=body.store_key,
        steps=json.dumps(body.steps) if body.steps is not None else None,
    )
    result = current_domain.process(command, asynchronous=False)
    return ConfigurationIdResponse(configuration_id=result)


@step_router.get("/{store_key}/steps", response_model=StepsResponse)
async def get_configured_steps(store_key: str) -> StepsResponse:
    return StepsResponse(steps=dump_steps(load_checkout_steps(store_key)))


@step_router.post("/{configuration_id}/steps", response_model=StatusResponse)
async def add_step(configuration_id: str, body: AddStepRequest) -> StatusResponse:
    command = AddCheckoutStep(
        configuration_id=configuration_id,
        step=json.dumps(body.step),
        position=body.position,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@step_router.put("/{configuration_id}/steps/{step_id}", response_model=StatusResponse)
async def update_step(configuration_id: str, step_id: str, body: dict) -> StatusResponse:
    if body.get("id", step_id) != step_id:
        raise ValidationError({"id": ["Step id cannot be changed"]})
    command = UpdateCheckoutStep(
        configuration_id=configuration_id,
        step=json.dumps({**body, "id": step_id}),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@step_router.delete("/{configuration_id}/steps/{step_id}", response_model=StatusResponse)
async def remove_step(configuration_id: str, step_id: str) -> StatusResponse:
    current_domain.process(RemoveCheckoutStep(configuration_id=configuration_id, step_id=step_id), asynchronous=False)
    return StatusResponse()


@step_router.put("/{configuration_id}/order", response_model=StatusResponse)
async def reorder_steps(configuration_id: str, body: ReorderStepsRequest) -> StatusResponse:
    command = ReorderCheckoutSteps(
        configuration_id=configuration_id,
        step_ids=json.dumps(body.step_ids),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@step_router.post("/{configuration_id}/reset", response_model=StatusResponse)
async def reset_steps(configuration_id: str) -> StatusResponse:
    current_domain.process(ResetCheckoutSteps(configuration_id=configuration_id), asynchronous=False)
    return StatusResponse()
