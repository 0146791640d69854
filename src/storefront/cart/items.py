"""Cart instance management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalog.loader import get_catalog
from storefront.domain import storefront
from storefront.stock import get_stock_service


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    cart_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    size = String(max_length=50)
    price = Float(min_value=0.0)  # Optional — defaults to the catalog price


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    instance_id = Identifier(required=True)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        menu_item = get_catalog().menu_item(command.menu_item_id)
        if menu_item is None:
            raise ValidationError({"menu_item_id": ["Unknown menu item"]})
        if menu_item.stock == 0 or not get_stock_service().is_available(menu_item.id):
            raise ValidationError({"menu_item_id": ["Menu item is out of stock"]})

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        price = command.price if command.price is not None else menu_item.price
        instance_id = cart.add_item(menu_item, size=command.size, price=price)
        repo.add(cart)
        return instance_id

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.remove_item(instance_id=command.instance_id)
        repo.add(cart)
