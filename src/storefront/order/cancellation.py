"""Order cancellation — command and handler.

Cancelling gives back exactly the stock lines the order managed to reserve.
A second cancellation finds the order already cancelled and does nothing, so
stock is never released twice. Lines whose release fails stay on the order
(status ``release_partial``) until ``ReconcileReservation`` gives them back.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.stock import get_stock_service

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not order.cancel(reason=command.reason):
            logger.info("Order already cancelled", order_id=str(order.id))
            return False

        report = get_stock_service().release(order.reserved_stock_lines())
        if not report.ok:
            logger.warning(
                "Stock release incomplete",
                order_id=str(order.id),
                failed=[line.to_dict() for line in report.failed_lines],
            )

        order.record_release(released=report.applied, unreleased=report.failed_lines)
        repo.add(order)

        logger.info("Order cancelled", order_id=str(order.id), released=len(report.applied))
        return True
