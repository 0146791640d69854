"""Repository for the CheckoutConfiguration aggregate."""

from storefront.checkout.configuration import CheckoutConfiguration
from storefront.domain import storefront


@storefront.repository(part_of=CheckoutConfiguration)
class CheckoutConfigurationRepository:
    def find_by_store_key(self, store_key: str) -> CheckoutConfiguration | None:
        """The configuration stored under ``store_key``, or None."""
        return self._dao.query.filter(store_key=store_key).all().first
