"""Pydantic request/response schemas for the Storefront API.

These are external contracts, kept separate from the internal Protean
commands and from the step configuration models.
"""

from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    session_id: str | None = None
    table_number: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "session_id": "sess-001",
                    "table_number": None,
                }
            ]
        }
    }


class AddToCartRequest(BaseModel):
    menu_item_id: str
    size: str | None = None
    price: float | None = Field(default=None, ge=0)


class CartItemSchema(BaseModel):
    instance_id: str
    menu_item_id: str
    name: str | None = None
    size: str | None = None
    unit_price: float


class CartLineSchema(BaseModel):
    menu_item_id: str
    name: str
    size: str
    unit_price: float
    quantity: int
    line_total: float
    instance_ids: list[str]


class CartResponse(BaseModel):
    cart_id: str
    table_number: str | None = None
    items: list[CartItemSchema]
    lines: list[CartLineSchema]
    total: float


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutContextRequest(BaseModel):
    delivery_type: Literal["delivery", "pickup", "table"] = "pickup"


class CheckoutRequest(BaseModel):
    """Everything the shopper entered in the wizard."""

    delivery_type: Literal["delivery", "pickup", "table"] = "pickup"
    address: str = ""
    phone: str = ""
    name_mode: Literal["single", "multiple"] | None = None
    customer_name: str = ""
    instance_names: dict[str, str] = Field(default_factory=dict)
    texts: dict[str, str] = Field(default_factory=dict)
    observations: str = ""
    selections: dict[str, dict[str, list[str]]] = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "delivery_type": "delivery",
                    "address": "Rua das Flores, 123",
                    "phone": "11999990000",
                    "name_mode": "single",
                    "customer_name": "Ana",
                    "selections": {"extras": {"<instance-id>": ["nutella", "granola"]}},
                }
            ]
        }
    }


class StepsResponse(BaseModel):
    steps: list[dict]


class SurchargeLineSchema(BaseModel):
    step_id: str
    instance_id: str
    option_id: str | None = None
    name: str
    price: float
    kind: str


class QuoteResponse(BaseModel):
    subtotal: float
    surcharge: float
    total: float
    lines: list[SurchargeLineSchema]


class StockLineSchema(BaseModel):
    id: str
    quantity: int


class CheckoutResponse(BaseModel):
    order_id: str
    subtotal: float
    surcharge: float
    total: float
    fully_reserved: bool
    failed_lines: list[StockLineSchema] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str | None = None


class PurgeOrdersRequest(BaseModel):
    older_than_days: int | None = Field(default=None, ge=1)


class OrderItemSchema(BaseModel):
    instance_id: str
    menu_item_id: str
    name: str | None = None
    size: str | None = None
    unit_price: float
    recipient_name: str | None = None
    selections: list[dict] = Field(default_factory=list)


class OrderResponse(BaseModel):
    order_id: str
    status: str
    customer_name: str
    customer_phone: str | None = None
    delivery_type: str
    table_number: str | None = None
    address: str | None = None
    observations: str | None = None
    answers: dict[str, str] = Field(default_factory=dict)
    drink: str | None = None
    items: list[OrderItemSchema]
    extras: list[SurchargeLineSchema]
    subtotal: float
    surcharge: float
    total: float
    reservation_status: str
    failed_lines: list[StockLineSchema] = Field(default_factory=list)
    created_at: str | None = None


class CancelResponse(BaseModel):
    cancelled: bool


class ReconcileResponse(BaseModel):
    outstanding: int


class PurgeResponse(BaseModel):
    deleted: int


# ---------------------------------------------------------------------------
# Step configuration
# ---------------------------------------------------------------------------
class CreateConfigurationRequest(BaseModel):
    store_key: str
    steps: list[dict] | None = None


class AddStepRequest(BaseModel):
    step: dict
    position: int | None = Field(default=None, ge=0)


class ReorderStepsRequest(BaseModel):
    step_ids: list[str]


# ---------------------------------------------------------------------------
# Generic responses
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class InstanceIdResponse(BaseModel):
    instance_id: str


class ConfigurationIdResponse(BaseModel):
    configuration_id: str


class StatusResponse(BaseModel):
    status: str = "ok"
