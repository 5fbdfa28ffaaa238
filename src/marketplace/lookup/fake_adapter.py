"""In-memory lookup adapters for development and testing.

Records are registered up front with ``add_*`` and served from dictionaries.
Every read is appended to ``calls`` so tests can assert how often a
collaborator was consulted. ``configure(available=False)`` simulates an
outage: every read then raises ``ConnectionError``.
"""

from marketplace.errors import NotFound
from marketplace.lookup.port import (
    ProductDetail,
    ProductLookup,
    PromoLookup,
    StoreLookup,
    StoreSummary,
    VendorPromo,
)


class _FakeLookup:
    def __init__(self) -> None:
        self.available: bool = True
        self.outage_reason: str = "lookup unavailable"
        self.calls: list[dict] = []

    def configure(self, available: bool, outage_reason: str = "lookup unavailable") -> None:
        """Configure adapter behavior at runtime."""
        self.available = available
        self.outage_reason = outage_reason

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if not self.available:
            raise ConnectionError(self.outage_reason)


class FakeStoreLookup(_FakeLookup, StoreLookup):
    def __init__(self) -> None:
        super().__init__()
        self.stores: dict[str, StoreSummary] = {}

    def add_store(self, store: StoreSummary) -> StoreSummary:
        self.stores[store.id] = store
        return store

    def get_by_id(self, store_id: str) -> StoreSummary:
        self._record("get_by_id", store_id=store_id)
        try:
            return self.stores[store_id]
        except KeyError:
            raise NotFound("store not found") from None


class FakeProductLookup(_FakeLookup, ProductLookup):
    def __init__(self) -> None:
        super().__init__()
        self.products: dict[str, ProductDetail] = {}

    def add_product(self, product: ProductDetail) -> ProductDetail:
        self.products[product.id] = product
        return product

    def get_product_detail(self, product_id: str) -> ProductDetail:
        self._record("get_product_detail", product_id=product_id)
        try:
            return self.products[product_id]
        except KeyError:
            raise NotFound("product not found") from None


class FakePromoLookup(_FakeLookup, PromoLookup):
    def __init__(self) -> None:
        super().__init__()
        self.promos: dict[tuple[str, str], VendorPromo] = {}

    def add_promo(self, promo: VendorPromo) -> VendorPromo:
        self.promos[(promo.vendor_store_id, promo.code)] = promo
        return promo

    def get_vendor_promo(self, vendor_store_id: str, code: str) -> VendorPromo | None:
        self._record("get_vendor_promo", vendor_store_id=vendor_store_id, code=code)
        return self.promos.get((vendor_store_id, code))
