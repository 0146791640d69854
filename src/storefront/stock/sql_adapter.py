"""SQL-backed stock store.

Each adjustment is one conditional UPDATE — ``quantity = CASE WHEN
quantity + delta < 0 THEN 0 ELSE quantity + delta END`` — so the database
applies the read-modify-write atomically per row.
"""

from sqlalchemy import Column, Integer, MetaData, String, Table, case, create_engine, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from storefront.stock.port import StockStore, StockStoreError

metadata = MetaData()

stock_counters = Table(
    "stock_counters",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("quantity", Integer, nullable=True),
)


class SqlStockStore(StockStore):
    def __init__(self, database: str | Engine) -> None:
        self.engine = create_engine(database) if isinstance(database, str) else database
        metadata.create_all(self.engine)

    def get(self, stock_id: str) -> int | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(stock_counters.c.quantity).where(stock_counters.c.id == str(stock_id))
                ).first()
        except SQLAlchemyError as exc:
            raise StockStoreError(f"Could not read stock for {stock_id}") from exc
        return None if row is None else row.quantity

    def set(self, stock_id: str, value: int | None) -> None:
        if value is not None and value < 0:
            raise ValueError("Stock cannot be negative")
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(stock_counters).where(stock_counters.c.id == str(stock_id)).values(quantity=value)
                )
                if result.rowcount == 0:
                    conn.execute(insert(stock_counters).values(id=str(stock_id), quantity=value))
        except SQLAlchemyError as exc:
            raise StockStoreError(f"Could not write stock for {stock_id}") from exc

    def adjust(self, stock_id: str, delta: int) -> int | None:
        adjusted = stock_counters.c.quantity + delta
        statement = (
            update(stock_counters)
            .where(stock_counters.c.id == str(stock_id), stock_counters.c.quantity.is_not(None))
            .values(quantity=case((adjusted < 0, 0), else_=adjusted))
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(statement)
                if result.rowcount == 0:
                    return None
                return conn.execute(
                    select(stock_counters.c.quantity).where(stock_counters.c.id == str(stock_id))
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise StockStoreError(f"Could not adjust stock for {stock_id}") from exc
