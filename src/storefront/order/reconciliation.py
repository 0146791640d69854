"""Reservation reconciliation — retries the stock lines an order left outstanding.

On a live order the outstanding lines are the ones the checkout failed to
reserve. On a cancelled order they are the reserved lines the cancellation
failed to give back.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus
from storefront.stock import get_stock_service

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ReconcileReservation:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class ReconcileReservationHandler:
    @handle(ReconcileReservation)
    def reconcile(self, command):
        """Retry the outstanding lines and return how many are still outstanding."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if OrderStatus(order.status) == OrderStatus.CANCELLED:
            return self._retry_release(repo, order)

        pending = order.failed_stock_lines()
        if not pending:
            return 0

        report = get_stock_service().reserve(pending)
        order.record_reservation(applied=report.applied, failed=report.failed_lines)
        repo.add(order)

        logger.info(
            "Reservation reconciled",
            order_id=str(order.id),
            applied=len(report.applied),
            outstanding=len(report.failed),
        )
        return len(report.failed)

    def _retry_release(self, repo, order):
        pending = order.reserved_stock_lines()
        if not pending:
            return 0

        report = get_stock_service().release(pending)
        order.record_release(released=report.applied, unreleased=report.failed_lines)
        repo.add(order)

        logger.info(
            "Release reconciled",
            order_id=str(order.id),
            released=len(report.applied),
            outstanding=len(report.failed),
        )
        return len(report.failed)
