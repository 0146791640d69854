"""Read-only catalog view consumed by the checkout engine.

The catalog is owned by an external collaborator (menu administration);
the engine only reads menu items, categories, extras and drink options.
A ``stock`` of ``None`` means the entry is not stock-tracked.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: float
    category_id: str
    stock: int | None = None


@dataclass(frozen=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True)
class OptionItem:
    """An extra or a drink option offered by the catalog."""

    id: str
    name: str
    price: float = 0.0
    stock: int | None = None


@dataclass(frozen=True)
class CatalogSnapshot:
    menu_items: tuple[MenuItem, ...] = field(default_factory=tuple)
    categories: tuple[Category, ...] = field(default_factory=tuple)
    extras: tuple[OptionItem, ...] = field(default_factory=tuple)
    drink_options: tuple[OptionItem, ...] = field(default_factory=tuple)

    def menu_item(self, item_id: str) -> MenuItem | None:
        return next((m for m in self.menu_items if m.id == str(item_id)), None)

    def category(self, category_id: str) -> Category | None:
        return next((c for c in self.categories if c.id == str(category_id)), None)

    def extra(self, extra_id: str) -> OptionItem | None:
        return next((e for e in self.extras if e.id == str(extra_id)), None)

    def drink(self, drink_id: str) -> OptionItem | None:
        return next((d for d in self.drink_options if d.id == str(drink_id)), None)

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogSnapshot":
        """Build a snapshot from the catalog read contract (camelCase or snake_case keys)."""
        return cls(
            menu_items=tuple(
                MenuItem(
                    id=str(m["id"]),
                    name=m["name"],
                    price=float(m.get("price", 0.0)),
                    category_id=str(m.get("categoryId", m.get("category_id", ""))),
                    stock=_stock(m),
                )
                for m in data.get("menuItems", data.get("menu_items", []))
            ),
            categories=tuple(
                Category(id=str(c["id"]), name=c["name"]) for c in data.get("categories", [])
            ),
            extras=tuple(_option(e) for e in data.get("extras", [])),
            drink_options=tuple(
                _option(d) for d in data.get("drinkOptions", data.get("drink_options", []))
            ),
        )


def _stock(raw: dict) -> int | None:
    stock = raw.get("stock")
    return None if stock is None else int(stock)


def _option(raw: dict) -> OptionItem:
    return OptionItem(
        id=str(raw["id"]),
        name=raw["name"],
        price=float(raw.get("price", 0.0)),
        stock=_stock(raw),
    )
