"""Repository for the Order aggregate."""

from datetime import datetime

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    """Order persistence plus the listing and retention queries."""

    def newest(self, created_from: datetime | None = None, created_before: datetime | None = None, limit: int = 100):
        """Orders newest first, optionally bounded by creation time."""
        criteria = {}
        if created_from is not None:
            criteria["created_at__gte"] = created_from
        if created_before is not None:
            criteria["created_at__lt"] = created_before

        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        return query.order_by("-created_at").limit(limit).all().items

    def purge_created_before(self, cutoff: datetime) -> int:
        """Delete every order created before ``cutoff``; returns how many went."""
        deleted = 0
        while True:
            stale = self._dao.query.filter(created_at__lt=cutoff).all().items
            if not stale:
                return deleted
            for order in stale:
                self._dao.delete(order)
                deleted += 1
