"""Inventory reservation engine.

Processes a batch of reservation requests strictly in input order under the
caller's unit of work. Each request either moves stock from available to
reserved or is rejected with ``insufficient_inventory``; one rejection never
blocks later requests. Requests for the same product share a single loaded
InventoryItem, so each one sees the balance left by the requests before it.

A malformed batch (any non-positive quantity) is refused before anything is
loaded or changed.
"""

from dataclasses import dataclass

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from marketplace.errors import InvalidRequest
from marketplace.inventory.inventory import InventoryItem

logger = structlog.get_logger(__name__)

INSUFFICIENT_INVENTORY = "insufficient_inventory"


@dataclass(frozen=True)
class ReservationRequest:
    cart_item_id: str
    product_id: str
    qty: int


@dataclass(frozen=True)
class ReservationResult:
    cart_item_id: str
    product_id: str
    qty: int
    reserved: bool
    reason: str | None = None


def reserve_inventory(requests: list[ReservationRequest]) -> list[ReservationResult]:
    """Reserve every request it can; return one result per request, in order."""
    for request in requests:
        if request.qty <= 0:
            raise InvalidRequest(
                "reservation quantity must be positive",
                details={"cart_item_id": str(request.cart_item_id), "qty": request.qty},
            )

    repo = current_domain.repository_for(InventoryItem)
    results = []

    with UnitOfWork():
        loaded: dict[str, InventoryItem | None] = {}
        touched: dict[str, InventoryItem] = {}

        for request in requests:
            product_id = str(request.product_id)
            if product_id not in loaded:
                loaded[product_id] = repo.get_or_none(product_id)
            item = loaded[product_id]

            if item is not None and item.reserve(request.qty):
                touched[product_id] = item
                results.append(ReservationResult(request.cart_item_id, product_id, request.qty, reserved=True))
                continue

            logger.info(
                "inventory.reservation_rejected",
                product_id=product_id,
                cart_item_id=str(request.cart_item_id),
                requested_qty=request.qty,
                available_qty=item.available_qty if item is not None else 0,
            )
            results.append(
                ReservationResult(
                    request.cart_item_id,
                    product_id,
                    request.qty,
                    reserved=False,
                    reason=INSUFFICIENT_INVENTORY,
                )
            )

        for item in touched.values():
            repo.add(item)

    logger.info(
        "inventory.reserved",
        requests=len(requests),
        reserved=sum(1 for result in results if result.reserved),
        rejected=sum(1 for result in results if not result.reserved),
    )
    return results
