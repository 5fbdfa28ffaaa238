"""Read-only collaborator ports consumed by the quote and checkout flows.

Stores, products and promotions are owned by other parts of the platform.
The marketplace core only reads them through these interfaces, so the
in-memory fakes (dev/test) and database-backed adapters are interchangeable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class StoreType(Enum):
    BUYER = "buyer"
    VENDOR = "vendor"


class KYCStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Address:
    line1: str
    city: str
    state: str
    postal_code: str
    country: str = "US"


@dataclass(frozen=True)
class StoreSummary:
    """The slice of a store the visibility rules need."""

    id: str
    name: str
    store_type: str
    kyc_status: str
    subscription_active: bool = False
    address: Address | None = None

    @property
    def state(self) -> str:
        if self.address is None or self.address.state is None:
            return ""
        return self.address.state.strip().upper()


@dataclass(frozen=True)
class VolumeTier:
    min_qty: int
    unit_price_cents: int


@dataclass(frozen=True)
class ProductDetail:
    """Product snapshot including inventory and volume-discount tiers."""

    id: str
    vendor_store_id: str
    title: str
    price_cents: int
    sku: str = ""
    moq: int = 1
    max_qty: int | None = None
    is_active: bool = True
    available_qty: int = 0
    volume_tiers: tuple[VolumeTier, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class VendorPromo:
    vendor_store_id: str
    code: str
    amount_cents: int
    active: bool = True
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    def is_valid(self, now: datetime) -> bool:
        if not self.active:
            return False
        if self.starts_at is not None and now < self.starts_at:
            return False
        if self.ends_at is not None and now >= self.ends_at:
            return False
        return True


class StoreLookup(ABC):
    @abstractmethod
    def get_by_id(self, store_id: str) -> StoreSummary:
        """Return the store, or raise ``NotFound``."""
        ...


class ProductLookup(ABC):
    @abstractmethod
    def get_product_detail(self, product_id: str) -> ProductDetail:
        """Return the product with inventory and tiers, or raise ``NotFound``."""
        ...


class PromoLookup(ABC):
    @abstractmethod
    def get_vendor_promo(self, vendor_store_id: str, code: str) -> VendorPromo | None:
        """Return the promo registered under ``code`` for the vendor, if any."""
        ...
