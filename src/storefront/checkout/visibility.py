"""Step Visibility Resolver.

Computes which configured steps apply to a checkout, preserving the
configured order. ``relevant_instances`` uses the same trigger predicate as
step visibility, so a visible per-instance step always has at least one
instance to attach options to.
"""

from storefront.checkout.steps import BaseStep, StepType, VisibilityMode

DELIVERY = "delivery"
PICKUP = "pickup"
TABLE = "table"


def matches_trigger(step, item) -> bool:
    """Whether a cart instance satisfies the step's visibility trigger."""
    visibility = step.visibility
    mode = visibility.mode

    if mode == VisibilityMode.ALWAYS:
        return True

    by_item = str(item.menu_item_id) in visibility.trigger_item_ids
    by_category = item.category_id is not None and str(item.category_id) in visibility.trigger_category_ids

    if mode == VisibilityMode.BY_ITEM:
        return by_item
    if mode == VisibilityMode.BY_CATEGORY:
        return by_category
    if mode == VisibilityMode.BY_ITEM_OR_CATEGORY:
        return by_item or by_category
    return False


def relevant_instances(step, cart_items) -> list:
    """The cart instances a step's options apply to."""
    return [item for item in cart_items if matches_trigger(step, item)]


def is_step_visible(step, cart_items, is_table: bool, delivery_type: str | None) -> bool:
    if not isinstance(step, BaseStep):
        return False
    if not step.enabled:
        return False
    if step.type == StepType.DELIVERY.value and is_table:
        return False
    if is_table and not step.show_for_table:
        return False
    if not is_table and step.skip_for_pickup and _value(delivery_type) == PICKUP:
        return False

    if step.visibility.mode == VisibilityMode.ALWAYS:
        return True
    return any(matches_trigger(step, item) for item in cart_items)


def resolve_steps(steps, cart_items, is_table: bool, delivery_type: str | None) -> list:
    """Ordered subset of ``steps`` that apply to this checkout."""
    items = list(cart_items)
    return [step for step in steps if is_step_visible(step, items, is_table, delivery_type)]


def _value(delivery_type):
    return getattr(delivery_type, "value", delivery_type)
