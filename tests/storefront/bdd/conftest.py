"""Shared BDD fixtures and step definitions for surcharge pricing."""

import pytest
from pytest_bdd import given, parsers, then
from storefront.cart.cart import ShoppingCart
from storefront.catalog.snapshot import MenuItem
from storefront.checkout.wizard import WizardState, sync
from storefront.pricing.engine import compute_surcharge


@pytest.fixture()
def checkout():
    """Mutable scenario context: cart, configured steps and wizard state."""
    return {"cart": None, "steps": [], "state": WizardState()}


@given(parsers.cfparse('a cart with one "{name}" priced at {price:g}'))
def cart_with_one_item(checkout, name, price):
    cart = ShoppingCart.create()
    cart.add_item(MenuItem(id="item-1", name=name, price=price, category_id="cat-1"), size=None, price=price)
    checkout["cart"] = cart


@then(parsers.cfparse("the surcharge is {expected:g}"))
def surcharge_is(checkout, expected):
    cart = checkout["cart"]
    sync(checkout["state"], checkout["steps"], cart.items)
    surcharge = compute_surcharge(checkout["state"].selections, checkout["steps"], cart.items)
    assert surcharge.total == expected


@then(parsers.cfparse("the checkout total is {expected:g}"))
def checkout_total_is(checkout, expected):
    cart = checkout["cart"]
    surcharge = compute_surcharge(checkout["state"].selections, checkout["steps"], cart.items)
    assert cart.total + surcharge.total == expected
