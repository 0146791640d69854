"""Stock Reservation Service — reserves and releases stock lines.

Lines are processed one at a time, each through a single atomic
``StockStore.adjust`` call. A line that fails does not stop the others; the
returned ``ReservationReport`` lists what was applied and what failed so
callers can record the gap for reconciliation.
"""

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from storefront.stock.port import StockStore, StockStoreError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLine:
    id: str
    quantity: int

    def to_dict(self) -> dict:
        return {"id": self.id, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "StockLine":
        return cls(id=str(data["id"]), quantity=int(data["quantity"]))


@dataclass(frozen=True)
class LineFailure:
    line: StockLine
    error: str


@dataclass(frozen=True)
class ReservationReport:
    applied: tuple[StockLine, ...] = ()
    failed: tuple[LineFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_lines(self) -> tuple[StockLine, ...]:
        return tuple(f.line for f in self.failed)


def merge_lines(lines: Iterable[StockLine]) -> list[StockLine]:
    """Combine lines sharing an id, keeping first-seen order."""
    totals: dict[str, int] = {}
    for line in lines:
        totals[line.id] = totals.get(line.id, 0) + line.quantity
    return [StockLine(id=stock_id, quantity=quantity) for stock_id, quantity in totals.items()]


class StockReservationService:
    def __init__(self, store: StockStore) -> None:
        self.store = store

    def is_available(self, stock_id: str) -> bool:
        """False once the live counter for ``stock_id`` has reached zero.

        Unlimited (absent) counters are always available. A failed lookup
        does not block the shopper; the reservation step records any gap.
        """
        try:
            return self.store.get(str(stock_id)) != 0
        except StockStoreError as exc:
            logger.warning("Stock lookup failed", stock_id=str(stock_id), error=str(exc))
            return True

    def sold_out(self, lines: Iterable[StockLine]) -> list[str]:
        return [line.id for line in lines if not self.is_available(line.id)]

    def reserve(self, lines: Iterable[StockLine]) -> ReservationReport:
        """Decrement each counter, flooring at zero."""
        return self._apply(lines, sign=-1, action="reserve")

    def release(self, lines: Iterable[StockLine]) -> ReservationReport:
        """Add each nominal quantity back to its counter."""
        return self._apply(lines, sign=1, action="release")

    def _apply(self, lines: Iterable[StockLine], sign: int, action: str) -> ReservationReport:
        applied: list[StockLine] = []
        failed: list[LineFailure] = []

        for line in lines:
            if line.quantity <= 0:
                continue
            try:
                new_value = self.store.adjust(line.id, sign * line.quantity)
            except StockStoreError as exc:
                logger.warning(
                    "Stock adjustment failed",
                    action=action,
                    stock_id=line.id,
                    quantity=line.quantity,
                    error=str(exc),
                )
                failed.append(LineFailure(line=line, error=str(exc)))
                continue

            applied.append(line)
            logger.debug(
                "Stock adjusted",
                action=action,
                stock_id=line.id,
                quantity=line.quantity,
                new_value=new_value,
            )

        return ReservationReport(applied=tuple(applied), failed=tuple(failed))
