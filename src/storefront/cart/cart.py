"""Shopping Cart aggregate — one CartItem per physical unit.

Checkout customizations attach to individual units, so adding the same
menu item and size twice creates two independent instances instead of
incrementing a shared quantity. Display code groups instances back into
``(menu_item_id, size)`` lines on demand.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, String

from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved
from storefront.domain import storefront


@dataclass(frozen=True)
class CartLine:
    """Display grouping of instances sharing menu item and size."""

    menu_item_id: str
    name: str
    size: str
    unit_price: float
    quantity: int
    instance_ids: tuple[str, ...]

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    menu_item_id = Identifier(required=True)
    category_id = Identifier()
    name = String(max_length=255)
    size = String(max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    added_at = DateTime()


@storefront.aggregate
class ShoppingCart:
    session_id = String(max_length=255)
    table_number = String(max_length=50)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, session_id=None, table_number=None):
        now = datetime.now(UTC)
        return cls(
            session_id=session_id,
            table_number=table_number,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Instance management
    # -------------------------------------------------------------------
    def add_item(self, menu_item, size, price):
        """Add one unit of ``menu_item`` and return the new instance id."""
        if price is None or price < 0:
            raise ValidationError({"unit_price": ["Price must be zero or positive"]})

        now = datetime.now(UTC)
        item = CartItem(
            menu_item_id=menu_item.id,
            category_id=menu_item.category_id,
            name=menu_item.name,
            size=size,
            unit_price=price,
            added_at=now,
        )
        self.add_items(item)
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                instance_id=str(item.id),
                menu_item_id=str(menu_item.id),
                size=size,
                unit_price=price,
            )
        )
        return str(item.id)

    def remove_item(self, instance_id):
        """Remove a single instance."""
        item = self.instance(instance_id)
        if item is None:
            raise ValidationError({"instance_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), instance_id=str(instance_id)))

    def clear(self):
        """Remove every instance."""
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), removed_count=len(removed)))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def instance(self, instance_id):
        return next((i for i in self.items if str(i.id) == str(instance_id)), None)

    def instance_ids(self):
        return [str(i.id) for i in self.items]

    @property
    def total(self):
        return round(sum(item.unit_price for item in self.items), 2)

    def grouped_lines(self):
        """Bucket instances by (menu_item_id, size), in first-added order."""
        buckets = {}
        for item in self.items:
            key = (str(item.menu_item_id), item.size or "")
            buckets.setdefault(key, []).append(item)

        return [
            CartLine(
                menu_item_id=menu_item_id,
                name=bucket[0].name or "",
                size=size,
                unit_price=bucket[0].unit_price,
                quantity=len(bucket),
                instance_ids=tuple(str(i.id) for i in bucket),
            )
            for (menu_item_id, size), bucket in buckets.items()
        ]

    def quantities_by_menu_item(self):
        """Count of instances per menu item id, in first-added order."""
        counts = {}
        for item in self.items:
            counts[str(item.menu_item_id)] = counts.get(str(item.menu_item_id), 0) + 1
        return counts
