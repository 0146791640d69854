"""Domain tests for the Pricing Engine."""

import pytest
from storefront.cart.cart import ShoppingCart
from storefront.catalog.snapshot import CatalogSnapshot, MenuItem, OptionItem
from storefront.checkout.selections import NONE_OPTION, SelectionStore
from storefront.checkout.steps import (
    CustomSelectStep,
    DrinksStep,
    ExtrasStep,
    PricingRule,
    PricingRuleType,
    StepOption,
    Visibility,
    VisibilityMode,
)
from storefront.pricing.engine import compute_surcharge, resolve_option, rule_charge

ACAI = MenuItem(id="acai-300", name="Açaí 300ml", price=20.0, category_id="acai")
SHAKE = MenuItem(id="shake-choc", name="Chocolate Shake", price=18.0, category_id="shakes")

TOPPINGS = tuple(StepOption(id=f"t{n}", name=f"Topping {n}", price=1.0) for n in range(1, 6))


def _cart(*menu_items):
    cart = ShoppingCart.create()
    for menu_item in menu_items:
        cart.add_item(menu_item, size=None, price=menu_item.price)
    return cart


def _rule_step(rule_type, **rule):
    return CustomSelectStep(
        id="toppings",
        title="Toppings",
        multi_select=True,
        options=TOPPINGS,
        pricing_rule=PricingRule(enabled=True, rule_type=rule_type, **rule),
    )


class TestRuleCharge:
    def test_per_item_after_limit_charges_beyond_free(self):
        rule = PricingRule(enabled=True, rule_type=PricingRuleType.PER_ITEM_AFTER_LIMIT, free_items_limit=2, price_per_item=3)
        assert rule_charge(rule, 5) == 9
        assert rule_charge(rule, 2) == 0

    def test_flat_after_limit(self):
        rule = PricingRule(enabled=True, rule_type=PricingRuleType.FLAT_AFTER_LIMIT, free_items_limit=1, flat_price=10)
        assert rule_charge(rule, 1) == 0
        assert rule_charge(rule, 2) == 10

    def test_per_item(self):
        rule = PricingRule(enabled=True, rule_type=PricingRuleType.PER_ITEM, price_per_item=3)
        assert rule_charge(rule, 2) == 6


class TestComputeSurcharge:
    def test_per_item_after_limit_five_selections(self):
        cart = _cart(ACAI)
        instance_id = cart.instance_ids()[0]
        step = _rule_step(PricingRuleType.PER_ITEM_AFTER_LIMIT, free_items_limit=2, price_per_item=3)
        store = SelectionStore({"toppings": {instance_id: ["t1", "t2", "t3", "t4", "t5"]}})

        surcharge = compute_surcharge(store, [step], cart.items)
        assert surcharge.total == 9
        option_lines = surcharge.option_lines()
        assert len(option_lines) == 5
        assert all(line.price == 0 for line in option_lines)
        (rule_line,) = [line for line in surcharge.line_items if line.kind == "rule"]
        assert rule_line.price == 9
        assert rule_line.instance_id == instance_id

    @pytest.mark.parametrize("selected, expected", [(["t1"], 0), (["t1", "t2"], 10)])
    def test_flat_after_limit(self, selected, expected):
        cart = _cart(ACAI)
        step = _rule_step(PricingRuleType.FLAT_AFTER_LIMIT, free_items_limit=1, flat_price=10)
        store = SelectionStore({"toppings": {cart.instance_ids()[0]: selected}})
        assert compute_surcharge(store, [step], cart.items).total == expected

    def test_rule_is_per_instance(self):
        cart = _cart(ACAI, ACAI)
        first, second = cart.instance_ids()
        step = _rule_step(PricingRuleType.PER_ITEM_AFTER_LIMIT, free_items_limit=1, price_per_item=2)
        store = SelectionStore({"toppings": {first: ["t1", "t2"], second: ["t1", "t2", "t3"]}})
        # 1 charged on the first instance, 2 on the second
        assert compute_surcharge(store, [step], cart.items).total == 6

    def test_option_prices_without_rule(self):
        cart = _cart(ACAI)
        instance_id = cart.instance_ids()[0]
        step = ExtrasStep(
            id="extras",
            title="Extras",
            multi_select=True,
            options=(StepOption(id="nutella", name="Nutella", price=4.0), StepOption(id="honey", name="Honey", price=1.5)),
        )
        store = SelectionStore({"extras": {instance_id: ["nutella", "honey"]}})
        surcharge = compute_surcharge(store, [step], cart.items)
        assert surcharge.total == 5.5
        assert [line.kind for line in surcharge.line_items] == ["extra", "extra"]

    def test_unknown_ids_none_and_stale_instances_ignored(self):
        cart = _cart(ACAI)
        instance_id = cart.instance_ids()[0]
        step = ExtrasStep(id="extras", title="Extras", multi_select=True, options=TOPPINGS)
        store = SelectionStore({"extras": {instance_id: ["t1", "ghost", NONE_OPTION], "removed-instance": ["t2"]}})
        surcharge = compute_surcharge(store, [step], cart.items)
        assert surcharge.total == 1.0
        assert [line.option_id for line in surcharge.line_items] == ["t1"]

    def test_only_relevant_instances_are_priced(self):
        cart = _cart(ACAI, SHAKE)
        acai_id, shake_id = cart.instance_ids()
        step = ExtrasStep(
            id="extras",
            title="Extras",
            multi_select=True,
            options=TOPPINGS,
            visibility=Visibility(mode=VisibilityMode.BY_CATEGORY, trigger_category_ids=("acai",)),
        )
        store = SelectionStore({"extras": {acai_id: ["t1"], shake_id: ["t2"]}})
        surcharge = compute_surcharge(store, [step], cart.items)
        assert [line.instance_id for line in surcharge.line_items] == [acai_id]

    def test_catalog_fallback_for_extras_and_drinks(self):
        catalog = CatalogSnapshot(
            extras=(OptionItem(id="nutella", name="Nutella", price=4.0),),
            drink_options=(OptionItem(id="coke", name="Coke", price=5.0),),
        )
        cart = _cart(ACAI)
        instance_id = cart.instance_ids()[0]
        steps = [ExtrasStep(id="extras", title="Extras"), DrinksStep(id="drinks", title="Drinks")]
        store = SelectionStore({"extras": {instance_id: ["nutella"]}, "drinks": {instance_id: ["coke"]}})

        assert compute_surcharge(store, steps, cart.items).total == 0
        surcharge = compute_surcharge(store, steps, cart.items, catalog)
        assert surcharge.total == 9.0
        assert [line.kind for line in surcharge.line_items] == ["extra", "drink"]

    def test_resolve_option_prefers_step_options(self):
        catalog = CatalogSnapshot(extras=(OptionItem(id="t1", name="Catalog", price=9.0),))
        step = ExtrasStep(id="extras", title="Extras", options=TOPPINGS)
        assert resolve_option(step, "t1", catalog) == ("Topping 1", 1.0)
        assert resolve_option(step, "missing", catalog) is None


class TestEndToEndTotals:
    def test_extras_option_price(self):
        cart = _cart(ACAI)
        instance_id = cart.instance_ids()[0]
        step = ExtrasStep(id="extras", title="Extras", options=(StepOption(id="nutella", name="Nutella", price=4.0),))
        store = SelectionStore({"extras": {instance_id: ["nutella"]}})
        assert cart.total + compute_surcharge(store, [step], cart.items).total == 24

    def test_custom_select_per_item_rule(self):
        cart = _cart(ACAI)
        instance_id = cart.instance_ids()[0]
        step = _rule_step(PricingRuleType.PER_ITEM, price_per_item=3)
        store = SelectionStore({"toppings": {instance_id: ["t1", "t2"]}})
        assert cart.total + compute_surcharge(store, [step], cart.items).total == 26
