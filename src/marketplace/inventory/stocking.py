"""Stocking: seed or restock a product's available inventory."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.inventory.inventory import InventoryItem

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="InventoryItem")
class StockInventory:
    """Set the available quantity for a product, creating its record if needed."""

    product_id = Identifier(required=True)
    available_qty = Integer(required=True, min_value=0)


@marketplace.command_handler(part_of=InventoryItem)
class StockingHandler:
    @handle(StockInventory)
    def stock_inventory(self, command):
        repo = current_domain.repository_for(InventoryItem)
        item = repo.get_or_none(command.product_id)
        if item is None:
            item = InventoryItem.stock(product_id=command.product_id, available_qty=command.available_qty)
        else:
            item.restock(command.available_qty)
        repo.add(item)

        logger.info("inventory.stocked", product_id=str(command.product_id), available_qty=item.available_qty)
        return str(item.product_id)
