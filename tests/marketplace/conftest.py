import pytest
from faker import Faker
from marketplace.lookup import Lookups, reset_lookups, set_lookups
from marketplace.lookup.port import (
    Address,
    KYCStatus,
    ProductDetail,
    StoreSummary,
    StoreType,
    VendorPromo,
    VolumeTier,
)
from protean.integrations.pytest import DomainFixture

fake = Faker()


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def lookups():
    """Fresh in-memory stores, products and promos for every test."""
    active = Lookups()
    set_lookups(active)
    yield active
    reset_lookups()


# ---------------------------------------------------------------------------
# Store / product / promo builders
# ---------------------------------------------------------------------------
def _address(state):
    if state is None:
        return None
    return Address(
        line1=fake.street_address(),
        city=fake.city(),
        state=state,
        postal_code=fake.postcode(),
    )


@pytest.fixture
def add_store(lookups):
    def _add(
        store_id,
        store_type=StoreType.VENDOR.value,
        state="CA",
        kyc_status=KYCStatus.VERIFIED.value,
        subscription_active=True,
    ):
        return lookups.stores.add_store(
            StoreSummary(
                id=store_id,
                name=fake.company(),
                store_type=store_type,
                kyc_status=kyc_status,
                subscription_active=subscription_active,
                address=_address(state),
            )
        )

    return _add


@pytest.fixture
def buyer(add_store):
    return add_store("buyer-1", store_type=StoreType.BUYER.value)


@pytest.fixture
def vendor(add_store):
    return add_store("vendor-1")


@pytest.fixture
def add_product(lookups):
    def _add(
        product_id,
        vendor_store_id="vendor-1",
        price_cents=1000,
        moq=1,
        max_qty=None,
        available_qty=100,
        tiers=(),
        is_active=True,
    ):
        return lookups.products.add_product(
            ProductDetail(
                id=product_id,
                vendor_store_id=vendor_store_id,
                title=f"Product {product_id}",
                sku=f"SKU-{product_id.upper()}",
                price_cents=price_cents,
                moq=moq,
                max_qty=max_qty,
                is_active=is_active,
                available_qty=available_qty,
                volume_tiers=tuple(VolumeTier(min_qty, price) for min_qty, price in tiers),
            )
        )

    return _add


@pytest.fixture
def add_promo(lookups):
    def _add(vendor_store_id, code, amount_cents, **kwargs):
        return lookups.promos.add_promo(
            VendorPromo(vendor_store_id=vendor_store_id, code=code, amount_cents=amount_cents, **kwargs)
        )

    return _add


@pytest.fixture
def stock():
    """Seed an InventoryItem through the StockInventory command."""
    from marketplace.inventory.stocking import StockInventory
    from protean.utils.globals import current_domain

    def _stock(product_id, available_qty):
        current_domain.process(
            StockInventory(product_id=product_id, available_qty=available_qty),
            asynchronous=False,
        )

    return _stock
