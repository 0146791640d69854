"""Order retention — deletes orders older than the retention window."""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer
from protean.utils.globals import current_domain

from storefront.config import load_settings
from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PurgeOrders:
    older_than_days = Integer()  # Defaults to STOREFRONT_ORDER_RETENTION_DAYS


@storefront.command_handler(part_of=Order)
class PurgeOrdersHandler:
    @handle(PurgeOrders)
    def purge_orders(self, command):
        days = command.older_than_days if command.older_than_days is not None else load_settings().order_retention_days
        if days < 1:
            raise ValidationError({"older_than_days": ["Retention must be at least one day"]})

        cutoff = datetime.now(UTC) - timedelta(days=days)
        deleted = current_domain.repository_for(Order).purge_created_before(cutoff)

        logger.info("Orders purged", older_than_days=days, deleted=deleted)
        return deleted
