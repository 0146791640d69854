"""Read helpers over persisted orders."""

from datetime import UTC, date, datetime, time, timedelta

from protean.utils.globals import current_domain

from storefront.order.order import Order


def list_orders(day: date | None = None, limit: int = 100) -> list:
    """Orders newest first, optionally limited to one calendar day (UTC)."""
    repo = current_domain.repository_for(Order)
    if day is None:
        return repo.newest(limit=limit)

    start = datetime.combine(day, time.min, tzinfo=UTC)
    return repo.newest(created_from=start, created_before=start + timedelta(days=1), limit=limit)
