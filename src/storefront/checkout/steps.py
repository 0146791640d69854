"""Checkout step configuration — a tagged union discriminated by ``type``.

Steps are configuration data loaded before a session starts; the engine
never mutates them. JSON documents use camelCase keys (``multiSelect``,
``triggerItemIds``, ``pricingRule``) while Python code uses snake_case.

Step types:
    delivery       — delivery vs. pickup, plus address (global)
    name           — recipient name(s) and phone (global)
    extras         — per-instance add-ons, priced per option
    drinks         — per-instance drink choice, priced per option
    custom_select  — per-instance options, optionally priced by a PricingRule
    custom_text    — free-text answer (global)
"""

from collections.abc import Iterable
from enum import Enum
from typing import Annotated, ClassVar, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

logger = structlog.get_logger(__name__)


class StepType(str, Enum):
    DELIVERY = "delivery"
    NAME = "name"
    EXTRAS = "extras"
    DRINKS = "drinks"
    CUSTOM_SELECT = "custom_select"
    CUSTOM_TEXT = "custom_text"


class VisibilityMode(str, Enum):
    ALWAYS = "always"
    BY_ITEM = "by_item"
    BY_CATEGORY = "by_category"
    BY_ITEM_OR_CATEGORY = "by_item_or_category"


class PricingRuleType(str, Enum):
    PER_ITEM = "per_item"
    PER_ITEM_AFTER_LIMIT = "per_item_after_limit"
    FLAT_AFTER_LIMIT = "flat_after_limit"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class StepOption(_ConfigModel):
    id: str
    name: str
    price: float = 0.0
    stock: int | None = Field(default=None, ge=0)  # None = unlimited, 0 = unavailable
    track_stock: bool = False

    @property
    def is_available(self) -> bool:
        return self.stock is None or self.stock > 0


class PricingRule(_ConfigModel):
    enabled: bool = False
    rule_type: PricingRuleType = PricingRuleType.PER_ITEM
    free_items_limit: int = Field(default=0, ge=0)
    price_per_item: float = Field(default=0.0, ge=0.0)
    flat_price: float = Field(default=0.0, ge=0.0)


class Visibility(_ConfigModel):
    mode: VisibilityMode = VisibilityMode.ALWAYS
    trigger_item_ids: tuple[str, ...] = ()
    trigger_category_ids: tuple[str, ...] = ()


class BaseStep(_ConfigModel):
    per_instance: ClassVar[bool] = False

    id: str
    title: str
    subtitle: str | None = None
    enabled: bool = True
    required: bool = False
    show_for_table: bool = True
    skip_for_pickup: bool = False
    visibility: Visibility = Visibility()


class _OptionStep(BaseStep):
    per_instance: ClassVar[bool] = True

    multi_select: bool = False
    options: tuple[StepOption, ...] = ()
    max_selections: int | None = Field(default=None, ge=1)

    def option(self, option_id: str) -> StepOption | None:
        return next((o for o in self.options if o.id == option_id), None)


class DeliveryStep(BaseStep):
    type: Literal["delivery"] = "delivery"


class NameStep(BaseStep):
    type: Literal["name"] = "name"


class ExtrasStep(_OptionStep):
    type: Literal["extras"] = "extras"


class DrinksStep(_OptionStep):
    type: Literal["drinks"] = "drinks"


class CustomSelectStep(_OptionStep):
    type: Literal["custom_select"] = "custom_select"
    pricing_rule: PricingRule | None = None

    @property
    def active_pricing_rule(self) -> PricingRule | None:
        """The rule that replaces option prices, if one applies to this step."""
        if self.multi_select and self.pricing_rule is not None and self.pricing_rule.enabled:
            return self.pricing_rule
        return None


class CustomTextStep(BaseStep):
    type: Literal["custom_text"] = "custom_text"


CheckoutStep = Annotated[
    Union[DeliveryStep, NameStep, ExtrasStep, DrinksStep, CustomSelectStep, CustomTextStep],
    Field(discriminator="type"),
]
OptionStep = ExtrasStep | DrinksStep | CustomSelectStep

_step_adapter = TypeAdapter(CheckoutStep)


def parse_step(raw: dict) -> CheckoutStep:
    """Validate one step document. Raises pydantic's ValidationError."""
    return _step_adapter.validate_python(raw)


def parse_steps(raw_steps: Iterable) -> list:
    """Validate a list of step documents, skipping the ones that cannot be used.

    Unknown step types and malformed steps are logged and dropped; a bad step
    never takes the rest of the checkout down with it.
    """
    steps = []
    for raw in raw_steps:
        if isinstance(raw, BaseStep):
            steps.append(raw)
            continue
        try:
            steps.append(parse_step(raw))
        except SchemaError as exc:
            logger.warning(
                "Skipping unusable checkout step",
                step_id=raw.get("id") if isinstance(raw, dict) else None,
                step_type=raw.get("type") if isinstance(raw, dict) else None,
                error_count=exc.error_count(),
            )
    return steps


def dump_steps(steps: Iterable) -> list[dict]:
    """Serialize steps to their camelCase JSON form."""
    return [step.model_dump(mode="json", by_alias=True) for step in steps]


def default_steps() -> list:
    """The out-of-the-box checkout: delivery, name, extras, drinks."""
    return [
        DeliveryStep(id="delivery", title="How would you like to receive it?", required=True, show_for_table=False),
        NameStep(id="name", title="Who is it for?", required=True),
        ExtrasStep(
            id="extras",
            title="Boost your shake?",
            subtitle="Add special extras (optional)",
            multi_select=True,
        ),
        DrinksStep(id="drinks", title="Water or soda?"),
    ]
