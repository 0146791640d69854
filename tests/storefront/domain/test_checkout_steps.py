"""Domain tests for the checkout step configuration models."""

import pytest
from pydantic import ValidationError as SchemaError
from storefront.checkout.steps import (
    CustomSelectStep,
    DeliveryStep,
    ExtrasStep,
    PricingRuleType,
    VisibilityMode,
    default_steps,
    dump_steps,
    parse_step,
    parse_steps,
)


class TestParseStep:
    def test_parses_camel_case_document(self):
        step = parse_step(
            {
                "id": "toppings",
                "type": "custom_select",
                "title": "Toppings",
                "multiSelect": True,
                "maxSelections": 3,
                "options": [{"id": "kiwi", "name": "Kiwi", "price": 1.5, "trackStock": True, "stock": 4}],
                "visibility": {"mode": "by_category", "triggerCategoryIds": ["acai"]},
                "pricingRule": {"enabled": True, "ruleType": "per_item", "pricePerItem": 3},
            }
        )
        assert isinstance(step, CustomSelectStep)
        assert step.multi_select is True
        assert step.max_selections == 3
        assert step.option("kiwi").track_stock is True
        assert step.visibility.mode == VisibilityMode.BY_CATEGORY
        assert step.visibility.trigger_category_ids == ("acai",)
        assert step.pricing_rule.rule_type == PricingRuleType.PER_ITEM

    def test_unknown_type_rejected(self):
        with pytest.raises(SchemaError):
            parse_step({"id": "x", "type": "coupon", "title": "Coupon"})

    def test_defaults(self):
        step = parse_step({"id": "delivery", "type": "delivery", "title": "Delivery"})
        assert isinstance(step, DeliveryStep)
        assert step.enabled is True
        assert step.show_for_table is True
        assert step.skip_for_pickup is False
        assert step.visibility.mode == VisibilityMode.ALWAYS

    def test_negative_stock_rejected(self):
        with pytest.raises(SchemaError):
            parse_step(
                {"id": "extras", "type": "extras", "title": "Extras", "options": [{"id": "a", "name": "A", "stock": -1}]}
            )


class TestParseSteps:
    def test_skips_invalid_steps_and_keeps_order(self):
        steps = parse_steps(
            [
                {"id": "name", "type": "name", "title": "Name"},
                {"id": "bad", "type": "mystery", "title": "Bad"},
                {"id": "notes", "type": "custom_text"},  # missing title
                {"id": "drinks", "type": "drinks", "title": "Drinks"},
            ]
        )
        assert [s.id for s in steps] == ["name", "drinks"]

    def test_passes_through_parsed_steps(self):
        extras = ExtrasStep(id="extras", title="Extras")
        assert parse_steps([extras]) == [extras]


class TestActivePricingRule:
    def test_rule_applies_only_to_multi_select(self):
        rule = {"enabled": True, "ruleType": "per_item", "pricePerItem": 3}
        single = parse_step({"id": "s", "type": "custom_select", "title": "S", "pricingRule": rule})
        multi = parse_step({"id": "m", "type": "custom_select", "title": "M", "multiSelect": True, "pricingRule": rule})
        assert single.active_pricing_rule is None
        assert multi.active_pricing_rule is not None

    def test_disabled_rule_is_inactive(self):
        step = parse_step(
            {
                "id": "m",
                "type": "custom_select",
                "title": "M",
                "multiSelect": True,
                "pricingRule": {"enabled": False, "ruleType": "per_item", "pricePerItem": 3},
            }
        )
        assert step.active_pricing_rule is None


class TestDefaults:
    def test_default_step_order(self):
        assert [s.type for s in default_steps()] == ["delivery", "name", "extras", "drinks"]

    def test_dump_uses_camel_case_and_reparses(self):
        dumped = dump_steps(default_steps())
        assert dumped[0]["showForTable"] is False
        assert "multiSelect" in dumped[2]
        assert [s.id for s in parse_steps(dumped)] == ["delivery", "name", "extras", "drinks"]
