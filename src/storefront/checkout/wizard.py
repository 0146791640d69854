"""Checkout wizard state machine.

The wizard's mutable state lives in an explicit ``WizardState`` object that
is passed into plain transition functions; nothing is held globally.

States: ``AtStep(i)`` for ``0 <= i < len(visible_steps)`` and ``Submitted``.

    go_next  — advances when the current step can proceed; at the last
               step it returns ``ReadyToSubmit`` for the orchestrator.
    go_back  — steps back without validation.
    sync     — recomputes the visible steps after any input that may change
               them (cart edits, delivery type), clamps the index and prunes
               selections that no longer apply.
"""

from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ValidationError

from storefront.checkout.selections import GLOBAL_KEY, NONE_OPTION, SelectionStore
from storefront.checkout.steps import StepType
from storefront.checkout.visibility import relevant_instances, resolve_steps

MIN_ADDRESS_LENGTH = 5
MIN_PHONE_LENGTH = 10
MIN_NAME_LENGTH = 2


class DeliveryType(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    TABLE = "table"


class NameMode(Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass
class WizardState:
    step_index: int = 0
    is_table: bool = False
    table_number: str | None = None
    delivery_type: DeliveryType = DeliveryType.PICKUP
    address: str = ""
    phone: str = ""
    name_mode: NameMode | None = None
    customer_name: str = ""
    instance_names: dict[str, str] = field(default_factory=dict)
    texts: dict[str, str] = field(default_factory=dict)
    observations: str = ""
    selections: SelectionStore = field(default_factory=SelectionStore)
    submitted: bool = False

    @property
    def effective_delivery_type(self) -> DeliveryType:
        return DeliveryType.TABLE if self.is_table else self.delivery_type


# ---------------------------------------------------------------------------
# Transition outcomes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Advanced:
    step_index: int


@dataclass(frozen=True)
class Blocked:
    step_id: str
    reason: str


@dataclass(frozen=True)
class ReadyToSubmit:
    steps: tuple


# ---------------------------------------------------------------------------
# Step resolution
# ---------------------------------------------------------------------------
def visible_steps(state: WizardState, steps, cart_items) -> list:
    return resolve_steps(steps, cart_items, state.is_table, state.effective_delivery_type.value)


def sync(state: WizardState, steps, cart_items) -> list:
    """Recompute visible steps, clamp the index and drop stale wizard input."""
    items = list(cart_items)
    visible = visible_steps(state, steps, items)

    if not visible:
        state.step_index = 0
    else:
        state.step_index = max(0, min(state.step_index, len(visible) - 1))

    live_ids = [str(item.id) for item in items]
    state.selections.prune(live_ids, [step.id for step in visible])
    state.instance_names = {k: v for k, v in state.instance_names.items() if k in live_ids}
    return visible


def current_step(state: WizardState, steps, cart_items):
    visible = sync(state, steps, cart_items)
    return visible[state.step_index] if visible else None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def blocking_reason(step, state: WizardState, cart_items) -> str | None:
    """Why ``step`` cannot be left forwards, or None when it can."""
    if step.type == StepType.DELIVERY.value:
        if state.delivery_type == DeliveryType.DELIVERY and len(state.address.strip()) < MIN_ADDRESS_LENGTH:
            return f"Address must have at least {MIN_ADDRESS_LENGTH} characters"
        return None

    if step.type == StepType.NAME.value:
        if len(state.phone.strip()) < MIN_PHONE_LENGTH:
            return f"Phone must have at least {MIN_PHONE_LENGTH} characters"
        if state.name_mode is None:
            return "Choose whether the order has one name or one name per item"
        if state.name_mode == NameMode.SINGLE:
            if len(state.customer_name.strip()) < MIN_NAME_LENGTH:
                return f"Name must have at least {MIN_NAME_LENGTH} characters"
            return None
        for item in relevant_instances(step, cart_items):
            if len(state.instance_names.get(str(item.id), "").strip()) < MIN_NAME_LENGTH:
                return f"Every item needs a name with at least {MIN_NAME_LENGTH} characters"
        return None

    if step.per_instance and step.required:
        for item in relevant_instances(step, cart_items):
            if any(o != NONE_OPTION for o in state.selections.selected(step.id, str(item.id))):
                return None
        return f"{step.title} requires a selection"

    return None


def can_proceed(step, state: WizardState, cart_items) -> bool:
    return blocking_reason(step, state, cart_items) is None


def validate_all(state: WizardState, steps, cart_items) -> dict[str, str]:
    """Blocking reasons for every visible step, keyed by step id."""
    items = list(cart_items)
    problems = {}
    for step in visible_steps(state, steps, items):
        reason = blocking_reason(step, state, items)
        if reason is not None:
            problems[step.id] = reason
    return problems


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def go_next(state: WizardState, steps, cart_items):
    if state.submitted:
        raise ValidationError({"wizard": ["Checkout was already submitted"]})

    items = list(cart_items)
    visible = sync(state, steps, items)
    if not visible:
        return ReadyToSubmit(steps=())

    step = visible[state.step_index]
    reason = blocking_reason(step, state, items)
    if reason is not None:
        return Blocked(step_id=step.id, reason=reason)

    if state.step_index == len(visible) - 1:
        return ReadyToSubmit(steps=tuple(visible))

    state.step_index += 1
    return Advanced(step_index=state.step_index)


def go_back(state: WizardState) -> bool:
    if state.step_index > 0:
        state.step_index -= 1
        return True
    return False


def set_delivery_type(state: WizardState, delivery_type, steps, cart_items) -> list:
    delivery_type = DeliveryType(delivery_type)
    if delivery_type == DeliveryType.TABLE and not state.is_table:
        raise ValidationError({"delivery_type": ["Table service is only available for table orders"]})
    state.delivery_type = delivery_type
    return sync(state, steps, cart_items)


def toggle_option(state: WizardState, step, instance_id, option_id, cart_items, catalog=None, stock=None):
    """Toggle an option of a per-instance step for one relevant instance.

    When a stock service is given, options whose live counter has run out
    are refused.
    """
    if not step.per_instance:
        raise ValidationError({"step_id": [f"Step {step.id} has no selectable options"]})

    instance_id = str(instance_id)
    if instance_id != GLOBAL_KEY and instance_id not in {str(i.id) for i in relevant_instances(step, cart_items)}:
        raise ValidationError({"instance_id": ["Item is not part of this step"]})

    if catalog is not None and step.option(option_id) is None:
        fallback = None
        if step.type == StepType.EXTRAS.value:
            fallback = catalog.extra(option_id)
        elif step.type == StepType.DRINKS.value:
            fallback = catalog.drink(option_id)
        if fallback is not None and fallback.stock == 0:
            raise ValidationError({"option_id": [f"Option {fallback.name} is unavailable"]})

    is_available = stock.is_available if stock is not None else None
    return state.selections.toggle(step, instance_id, option_id, is_available)
