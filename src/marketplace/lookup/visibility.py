"""Buyer eligibility and vendor visibility rules.

A buyer may quote or check out only when its store is a verified buyer with
a resolvable state. A vendor is visible to that buyer only when it is a
verified vendor with an active subscription operating in the same state.
"""

from typing import Callable, TypeVar

import structlog

from marketplace.errors import DependencyFailure, Forbidden, InvalidRequest, MarketplaceError, NotFound
from marketplace.lookup import get_lookups
from marketplace.lookup.port import KYCStatus, StoreSummary, StoreType

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def guarded(operation: str, fn: Callable[..., T], *args) -> T:
    """Call a collaborator, wrapping infrastructure failures as DependencyFailure."""
    try:
        return fn(*args)
    except MarketplaceError:
        raise
    except Exception as exc:
        logger.warning("lookup.failed", operation=operation, error=str(exc))
        raise DependencyFailure.wrap(exc, operation) from exc


def normalize_state(value: str | None) -> str:
    return (value or "").strip().upper()


def validate_buyer_store(store: StoreSummary) -> str:
    """Return the buyer's normalized state, or raise."""
    if store.store_type != StoreType.BUYER.value:
        raise Forbidden("active store must be a buyer")
    if store.kyc_status != KYCStatus.VERIFIED.value:
        raise Forbidden("buyer store must be verified")
    state = store.state
    if not state:
        raise InvalidRequest("buyer store state is required")
    return state


def ensure_vendor_visible(vendor: StoreSummary, buyer_state: str) -> None:
    if vendor.store_type != StoreType.VENDOR.value:
        raise NotFound("vendor not found")
    if vendor.kyc_status != KYCStatus.VERIFIED.value:
        raise NotFound("vendor not verified")
    if not vendor.subscription_active:
        raise NotFound("vendor subscription inactive")
    vendor_state = vendor.state
    if not vendor_state:
        raise NotFound("vendor state unavailable")
    if vendor_state != normalize_state(buyer_state):
        raise NotFound("vendor not available in the requested state")


def load_buyer(buyer_store_id: str) -> tuple[StoreSummary, str]:
    if not buyer_store_id:
        raise InvalidRequest("buyer store id is required")
    store = guarded("load buyer store", get_lookups().stores.get_by_id, buyer_store_id)
    return store, validate_buyer_store(store)


class VendorResolver:
    """Resolves and validates each vendor at most once per operation.

    ``resolve`` raises the visibility failure. ``failure_for`` returns it
    instead, so advisory callers can degrade the vendor's items without
    aborting.
    """

    def __init__(self, buyer_state: str) -> None:
        self.buyer_state = buyer_state
        self._vendors: dict[str, StoreSummary] = {}
        self._failures: dict[str, NotFound] = {}

    def _load(self, vendor_store_id: str) -> None:
        if vendor_store_id in self._vendors or vendor_store_id in self._failures:
            return
        try:
            vendor = guarded("load vendor store", get_lookups().stores.get_by_id, vendor_store_id)
            ensure_vendor_visible(vendor, self.buyer_state)
        except NotFound as exc:
            logger.info("vendor.not_visible", vendor_store_id=vendor_store_id, reason=exc.message)
            self._failures[vendor_store_id] = NotFound(
                "vendor not found" if exc.message == "store not found" else exc.message
            )
            return
        self._vendors[vendor_store_id] = vendor

    def failure_for(self, vendor_store_id: str) -> NotFound | None:
        self._load(vendor_store_id)
        return self._failures.get(vendor_store_id)

    def resolve(self, vendor_store_id: str) -> StoreSummary:
        failure = self.failure_for(vendor_store_id)
        if failure is not None:
            raise failure
        return self._vendors[vendor_store_id]
