"""Tests for InventoryItem stock movements."""

import pytest
from marketplace.inventory.inventory import InventoryItem
from protean.exceptions import ValidationError


class TestStock:
    def test_stock_creates_item_keyed_by_product(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=10)
        assert str(item.product_id) == "prod-001"
        assert item.available_qty == 10
        assert item.reserved_qty == 0
        assert item.updated_at is not None

    def test_restock_sets_available(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=10)
        item.restock(25)
        assert item.available_qty == 25

    def test_restock_rejects_negative(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=10)
        with pytest.raises(ValidationError):
            item.restock(-1)


class TestReserve:
    def test_reserve_moves_units(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=5)
        assert item.reserve(3) is True
        assert item.available_qty == 2
        assert item.reserved_qty == 3

    def test_reserve_exact_balance(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=5)
        assert item.reserve(5) is True
        assert item.available_qty == 0
        assert item.reserved_qty == 5

    def test_short_stock_leaves_item_untouched(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=2)
        assert item.reserve(3) is False
        assert item.available_qty == 2
        assert item.reserved_qty == 0

    def test_non_positive_quantity_is_invalid(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=5)
        with pytest.raises(ValidationError):
            item.reserve(0)

    def test_can_reserve(self):
        item = InventoryItem.stock(product_id="prod-001", available_qty=5)
        assert item.can_reserve(5)
        assert not item.can_reserve(6)
        assert not item.can_reserve(0)
