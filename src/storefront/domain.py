"""Storefront bounded context — Cart, Checkout Wizard, Orders and Stock.

Handles the per-instance shopping cart, the configurable checkout wizard,
surcharge pricing, order lifecycle and stock reservation.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

storefront = Domain(name="storefront")

logger = get_logger(__name__)
