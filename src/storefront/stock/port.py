"""Stock store port (abstract interface).

Counters are keyed by menu-item id or step-option id. A missing counter (or
one holding ``None``) means the entry is unlimited and never adjusted.
Adapters must make ``adjust`` a single atomic clamp-and-adjust operation so
concurrent checkouts on the same id cannot lose updates.
"""

from abc import ABC, abstractmethod


class StockStoreError(Exception):
    """A stock counter could not be read or written."""


class StockStore(ABC):
    @abstractmethod
    def get(self, stock_id: str) -> int | None:
        """Current counter value, or None when unlimited."""
        ...

    @abstractmethod
    def set(self, stock_id: str, value: int | None) -> None:
        """Overwrite a counter. ``None`` makes the entry unlimited."""
        ...

    @abstractmethod
    def adjust(self, stock_id: str, delta: int) -> int | None:
        """Atomically add ``delta``, flooring the result at zero.

        Returns the new value, or None (and changes nothing) when the
        counter is unlimited.
        """
        ...
