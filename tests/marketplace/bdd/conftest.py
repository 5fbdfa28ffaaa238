"""Shared BDD fixtures and step definitions for the Marketplace domain."""

import pytest
from marketplace.inventory.inventory import InventoryItem
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def outcome():
    """Container for the result or error of a When step."""
    return {"result": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('product "{product_id}" has {qty:d} units available'))
def product_has_stock(stock, product_id, qty):
    stock(product_id, qty)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('product "{product_id}" has {available:d} units available and {reserved:d} reserved'))
def product_stock_is(product_id, available, reserved):
    item = current_domain.repository_for(InventoryItem).get(product_id)
    assert item.available_qty == available
    assert item.reserved_qty == reserved
