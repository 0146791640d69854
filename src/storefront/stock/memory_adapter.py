"""In-process stock store for development and testing."""

import threading

from storefront.stock.port import StockStore


class InMemoryStockStore(StockStore):
    def __init__(self, counters: dict[str, int | None] | None = None) -> None:
        self._counters: dict[str, int | None] = dict(counters or {})
        self._lock = threading.Lock()

    def get(self, stock_id: str) -> int | None:
        with self._lock:
            return self._counters.get(str(stock_id))

    def set(self, stock_id: str, value: int | None) -> None:
        if value is not None and value < 0:
            raise ValueError("Stock cannot be negative")
        with self._lock:
            self._counters[str(stock_id)] = value

    def adjust(self, stock_id: str, delta: int) -> int | None:
        with self._lock:
            current = self._counters.get(str(stock_id))
            if current is None:
                return None
            new_value = max(0, current + delta)
            self._counters[str(stock_id)] = new_value
            return new_value

    def snapshot(self) -> dict[str, int | None]:
        with self._lock:
            return dict(self._counters)
