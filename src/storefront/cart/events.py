"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartItemAdded:
    """One unit of a menu item was added to the cart as a new instance."""

    __version__ = 1

    cart_id = Identifier(required=True)
    instance_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    size = String(max_length=50)
    unit_price = Float(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemRemoved:
    """A single cart instance was removed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    instance_id = Identifier(required=True)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    """Every instance was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    removed_count = Integer(required=True)
