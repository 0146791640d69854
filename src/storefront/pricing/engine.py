"""Pricing Engine — turns wizard selections into a surcharge.

``compute_surcharge`` is a pure function. For every visible option step and
every relevant cart instance it either:

* applies the step's active pricing rule to the *count* of selections made
  for that instance (option prices are then ignored and reported as zero), or
* sums the price of each selected option.

Selections for instances that are no longer in the cart, and option ids that
match no known option, are ignored.
"""

from dataclasses import dataclass

from storefront.checkout.selections import NONE_OPTION
from storefront.checkout.steps import PricingRuleType, StepType
from storefront.checkout.visibility import relevant_instances


@dataclass(frozen=True)
class SurchargeLine:
    step_id: str
    instance_id: str
    option_id: str | None
    name: str
    price: float
    kind: str  # "extra", "drink", "custom" or "rule"


@dataclass(frozen=True)
class Surcharge:
    total: float
    line_items: tuple[SurchargeLine, ...]

    def for_instance(self, instance_id: str) -> tuple[SurchargeLine, ...]:
        return tuple(line for line in self.line_items if line.instance_id == str(instance_id))

    def option_lines(self) -> tuple[SurchargeLine, ...]:
        return tuple(line for line in self.line_items if line.option_id is not None)


def rule_charge(rule, count: int) -> float:
    """Charge produced by a pricing rule for ``count`` selections on one instance."""
    rule_type = PricingRuleType(rule.rule_type)
    if rule_type == PricingRuleType.PER_ITEM:
        return count * rule.price_per_item
    if rule_type == PricingRuleType.PER_ITEM_AFTER_LIMIT:
        return max(0, count - rule.free_items_limit) * rule.price_per_item
    if rule_type == PricingRuleType.FLAT_AFTER_LIMIT:
        return rule.flat_price if count > rule.free_items_limit else 0.0
    return 0.0


def resolve_option(step, option_id: str, catalog=None):
    """Find the option a selected id refers to, falling back to the catalog.

    Returns ``(name, price)`` or ``None`` when the id is unknown.
    """
    option = step.option(option_id)
    if option is not None:
        return option.name, option.price

    if catalog is not None:
        if step.type == StepType.EXTRAS.value:
            extra = catalog.extra(option_id)
            if extra is not None:
                return extra.name, extra.price
        elif step.type == StepType.DRINKS.value:
            drink = catalog.drink(option_id)
            if drink is not None:
                return drink.name, drink.price
    return None


_KINDS = {
    StepType.EXTRAS.value: "extra",
    StepType.DRINKS.value: "drink",
    StepType.CUSTOM_SELECT.value: "custom",
}


def compute_surcharge(selections, steps, cart_items, catalog=None) -> Surcharge:
    items = list(cart_items)
    lines: list[SurchargeLine] = []

    for step in steps:
        if not step.per_instance:
            continue

        rule = getattr(step, "active_pricing_rule", None)
        kind = _KINDS.get(step.type, "custom")

        for item in relevant_instances(step, items):
            instance_id = str(item.id)
            chosen = [o for o in selections.selected(step.id, instance_id) if o != NONE_OPTION]

            known = []
            for option_id in chosen:
                resolved = resolve_option(step, option_id, catalog)
                if resolved is not None:
                    known.append((option_id, *resolved))

            if rule is not None:
                for option_id, name, _price in known:
                    lines.append(SurchargeLine(step.id, instance_id, option_id, name, 0.0, kind))
                charge = rule_charge(rule, len(known))
                if charge:
                    lines.append(SurchargeLine(step.id, instance_id, None, step.title, round(charge, 2), "rule"))
            else:
                for option_id, name, price in known:
                    lines.append(SurchargeLine(step.id, instance_id, option_id, name, price, kind))

    total = round(sum(line.price for line in lines), 2)
    return Surcharge(total=total, line_items=tuple(lines))
