"""Application tests for checkout execution: reservation, vendor orders and cart conversion."""

import pytest
from marketplace.cart.cart import Cart, CartStatus
from marketplace.cart.quoting import quote_cart
from marketplace.checkout.checkout_group import (
    CheckoutGroup,
    LineItemStatus,
    PaymentStatus,
    VendorOrderStatus,
)
from marketplace.checkout.execution import execute_checkout
from marketplace.errors import Conflict, Forbidden, InvalidRequest, NotFound, StateConflict
from marketplace.inventory.inventory import InventoryItem
from marketplace.lookup.port import KYCStatus, StoreType
from marketplace.shared.address import ShippingAddress
from protean import current_domain


def _item(product_id, quantity, vendor_store_id="vendor-1"):
    return {"product_id": product_id, "vendor_store_id": vendor_store_id, "quantity": quantity}


def _inventory(product_id):
    return current_domain.repository_for(InventoryItem).get(product_id)


def _group_count():
    return len(current_domain.repository_for(CheckoutGroup)._dao.query.all().items)


@pytest.fixture
def world(buyer, add_store, add_product, stock):
    add_store("vendor-1")
    add_store("vendor-2")
    add_product("prod-001", vendor_store_id="vendor-1", price_cents=1000)
    add_product("prod-002", vendor_store_id="vendor-2", price_cents=500)
    add_product("prod-003", vendor_store_id="vendor-1", price_cents=200, moq=5)
    stock("prod-001", 10)
    stock("prod-002", 10)
    stock("prod-003", 10)


@pytest.fixture
def cart(world):
    return quote_cart(
        "buyer-1",
        [
            _item("prod-002", 2, vendor_store_id="vendor-2"),
            _item("prod-001", 3),
            _item("prod-003", 5),
        ],
    )


class TestCheckoutHappyPath:
    def test_one_vendor_order_per_vendor_in_cart_order(self, cart):
        group = execute_checkout("buyer-1", str(cart.id))

        orders = group.ordered_vendor_orders
        assert [str(order.vendor_store_id) for order in orders] == ["vendor-2", "vendor-1"]
        assert all(order.status == VendorOrderStatus.CREATED_PENDING.value for order in orders)
        assert str(group.cart_id) == str(cart.id)
        assert str(group.buyer_store_id) == "buyer-1"

    def test_vendor_order_amounts_come_from_cart_groups(self, cart):
        group = execute_checkout("buyer-1", str(cart.id))
        vendor_1 = group.ordered_vendor_orders[1]

        assert vendor_1.subtotal_cents == 4000
        assert vendor_1.total_cents == 4000
        assert vendor_1.balance_due_cents == 4000
        assert vendor_1.payment_method == "cash"
        assert vendor_1.payment_intent.status == PaymentStatus.UNPAID.value
        assert vendor_1.payment_intent.amount_cents == 4000

    def test_line_items_snapshot_cart_items(self, cart):
        group = execute_checkout("buyer-1", str(cart.id))
        lines = group.ordered_vendor_orders[1].ordered_line_items

        assert [str(line.product_id) for line in lines] == ["prod-001", "prod-003"]
        assert all(line.status == LineItemStatus.PENDING.value for line in lines)
        assert lines[0].product_name == "Product prod-001"
        assert lines[0].quantity == 3
        assert lines[0].unit_price_cents == 1000
        assert lines[0].line_subtotal_cents == 3000

    def test_inventory_is_reserved(self, cart):
        execute_checkout("buyer-1", str(cart.id))
        item = _inventory("prod-001")
        assert item.available_qty == 7
        assert item.reserved_qty == 3

    def test_cart_is_converted(self, cart):
        group = execute_checkout("buyer-1", str(cart.id), payment_method="ach")
        converted = current_domain.repository_for(Cart).get(cart.id)

        assert converted.status == CartStatus.CONVERTED.value
        assert str(converted.checkout_group_id) == str(group.id)
        assert converted.payment_method == "ach"
        assert converted.converted_at is not None

    def test_shipping_address_override(self, cart):
        address = ShippingAddress(line1="9 Dock Rd", city="Oakland", state="CA", postal_code="94607")
        group = execute_checkout("buyer-1", str(cart.id), shipping_address=address)

        assert all(order.shipping_address == address for order in group.vendor_orders)
        assert current_domain.repository_for(Cart).get(cart.id).shipping_address == address

    def test_defaults_to_cart_shipping_address(self, cart):
        group = execute_checkout("buyer-1", str(cart.id))
        assert group.vendor_orders[0].shipping_address == cart.shipping_address

    def test_volume_discount_is_carried_to_line(self, buyer, vendor, add_product, stock):
        add_product("prod-bulk", price_cents=1000, tiers=[(10, 800)])
        stock("prod-bulk", 50)
        cart = quote_cart("buyer-1", [_item("prod-bulk", 10)])

        group = execute_checkout("buyer-1", str(cart.id))
        line = group.vendor_orders[0].line_items[0]
        assert line.unit_price_cents == 800
        assert line.discount_cents == 2000


class TestPartialReservation:
    def test_short_stock_rejects_the_line(self, cart, stock):
        stock("prod-003", 1)
        group = execute_checkout("buyer-1", str(cart.id))
        vendor_1 = group.ordered_vendor_orders[1]
        statuses = {str(line.product_id): line for line in vendor_1.line_items}

        assert statuses["prod-001"].status == LineItemStatus.PENDING.value
        assert statuses["prod-003"].status == LineItemStatus.REJECTED.value
        assert statuses["prod-003"].notes == "insufficient_inventory"
        assert vendor_1.status == VendorOrderStatus.CREATED_PENDING.value

    def test_vendor_order_with_nothing_reserved_is_rejected(self, cart, stock):
        stock("prod-002", 0)
        group = execute_checkout("buyer-1", str(cart.id))
        vendor_2 = group.ordered_vendor_orders[0]

        assert vendor_2.status == VendorOrderStatus.REJECTED.value
        assert vendor_2.balance_due_cents == 0
        assert _inventory("prod-002").reserved_qty == 0

    def test_non_orderable_items_are_skipped(self, world, add_product):
        add_product("prod-002", vendor_store_id="vendor-2", price_cents=500, available_qty=0)
        cart = quote_cart("buyer-1", [_item("prod-001", 1), _item("prod-002", 1, vendor_store_id="vendor-2")])

        group = execute_checkout("buyer-1", str(cart.id))
        assert [str(order.vendor_store_id) for order in group.vendor_orders] == ["vendor-1"]
        assert _inventory("prod-002").reserved_qty == 0


class TestCheckoutPreconditions:
    def test_unknown_cart(self, world):
        with pytest.raises(NotFound) as exc:
            execute_checkout("buyer-1", "cart-missing")
        assert exc.value.message == "cart not found"

    def test_cart_of_another_buyer(self, cart, add_store):
        add_store("buyer-2", store_type=StoreType.BUYER.value)
        with pytest.raises(Forbidden) as exc:
            execute_checkout("buyer-2", str(cart.id))
        assert exc.value.message == "cart does not belong to buyer store"

    def test_converted_cart(self, cart):
        execute_checkout("buyer-1", str(cart.id))
        with pytest.raises(Conflict) as exc:
            execute_checkout("buyer-1", str(cart.id))
        assert exc.value.message == "cart must be active"
        assert _group_count() == 1

    def test_cart_without_orderable_items(self, world, add_product):
        add_product("prod-001", vendor_store_id="vendor-1", is_active=False)
        cart = quote_cart("buyer-1", [_item("prod-001", 1)])
        with pytest.raises(Conflict) as exc:
            execute_checkout("buyer-1", str(cart.id))
        assert exc.value.message == "cart contains no orderable items"

    def test_unsupported_payment_method(self, cart):
        with pytest.raises(InvalidRequest) as exc:
            execute_checkout("buyer-1", str(cart.id), payment_method="bitcoin")
        assert exc.value.message == "unsupported payment method: bitcoin"
        assert _inventory("prod-001").reserved_qty == 0

    def test_buyer_is_revalidated(self, cart, add_store):
        add_store("buyer-1", store_type=StoreType.BUYER.value, kyc_status=KYCStatus.REJECTED.value)
        with pytest.raises(Forbidden):
            execute_checkout("buyer-1", str(cart.id))

    def test_vendor_is_revalidated(self, cart, add_store):
        add_store("vendor-2", state="NY")
        with pytest.raises(NotFound) as exc:
            execute_checkout("buyer-1", str(cart.id))

        assert exc.value.message == "vendor not available in the requested state"
        assert _inventory("prod-001").reserved_qty == 0
        assert current_domain.repository_for(Cart).get(cart.id).status == CartStatus.ACTIVE.value
        assert _group_count() == 0


class TestMinimumOrderQuantity:
    def test_below_moq_is_a_state_conflict(self, cart):
        repo = current_domain.repository_for(Cart)
        stored = repo.get(cart.id)
        line = next(item for item in stored.items if str(item.product_id) == "prod-003")
        line.quantity = 2
        repo.add(stored)

        with pytest.raises(StateConflict) as exc:
            execute_checkout("buyer-1", str(cart.id))

        assert exc.value.message == "minimum order quantity not met for 1 item(s)"
        assert exc.value.violations == [
            {
                "product_id": "prod-003",
                "product_name": "Product prod-003",
                "required_qty": 5,
                "requested_qty": 2,
            }
        ]
        assert exc.value.http_status == 422
        assert _inventory("prod-001").reserved_qty == 0
        assert _group_count() == 0
