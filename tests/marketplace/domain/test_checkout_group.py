"""Tests for the CheckoutGroup aggregate and its vendor orders."""

import pytest
from marketplace.checkout.checkout_group import (
    CheckoutGroup,
    LineItemStatus,
    OrderLineItem,
    PaymentStatus,
    VendorOrderStatus,
)
from protean import current_domain
from protean.exceptions import InvalidOperationError, ValidationError


def _line(position, status=LineItemStatus.PENDING.value, notes=None):
    return OrderLineItem(
        position=position,
        cart_item_id=f"item-{position}",
        product_id=f"prod-{position}",
        product_name=f"Product {position}",
        quantity=2,
        unit_price_cents=500,
        line_subtotal_cents=1000,
        status=status,
        notes=notes,
    )


def _place(group, vendor_store_id, lines, total=1000):
    return group.place_vendor_order(
        vendor_store_id=vendor_store_id,
        lines=lines,
        subtotal_cents=total,
        discounts_cents=0,
        total_cents=total,
        payment_method="cash",
    )


class TestPlaceVendorOrder:
    def test_open_group(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        assert str(group.buyer_store_id) == "buyer-1"
        assert group.created_at is not None
        assert len(group.vendor_orders) == 0

    def test_reserved_lines_make_a_pending_order(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        order = _place(group, "vendor-1", [_line(0), _line(1)], total=2000)

        assert order.status == VendorOrderStatus.CREATED_PENDING.value
        assert order.balance_due_cents == 2000
        assert len(order.line_items) == 2
        assert order.payment_intent.status == PaymentStatus.UNPAID.value
        assert order.payment_intent.amount_cents == 2000
        assert order.payment_intent.method == "cash"

    def test_partially_reserved_order_stays_pending(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        order = _place(
            group,
            "vendor-1",
            [_line(0), _line(1, status=LineItemStatus.REJECTED.value, notes="insufficient_inventory")],
        )
        assert order.status == VendorOrderStatus.CREATED_PENDING.value
        assert [line.is_reserved for line in order.ordered_line_items] == [True, False]

    def test_no_reserved_line_rejects_order(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        order = _place(group, "vendor-1", [_line(0, status=LineItemStatus.REJECTED.value)])

        assert order.status == VendorOrderStatus.REJECTED.value
        assert order.balance_due_cents == 0
        assert order.total_cents == 1000

    def test_orders_are_numbered_in_placement_order(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        _place(group, "vendor-2", [_line(0)])
        _place(group, "vendor-1", [_line(0)])

        assert [str(order.vendor_store_id) for order in group.ordered_vendor_orders] == ["vendor-2", "vendor-1"]

    def test_one_order_per_vendor(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        _place(group, "vendor-1", [_line(0)])
        with pytest.raises(ValidationError):
            _place(group, "vendor-1", [_line(0)])

    def test_order_needs_lines(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        with pytest.raises(ValidationError):
            _place(group, "vendor-1", [])


class TestRecordCreated:
    def test_requires_unit_of_work(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        _place(group, "vendor-1", [_line(0)])
        with pytest.raises(InvalidOperationError):
            group.record_created()


class TestPersistedGraph:
    def test_line_items_and_intent_link_back_to_their_vendor_order(self):
        group = CheckoutGroup.open(buyer_store_id="buyer-1", cart_id="cart-1")
        _place(group, "vendor-1", [_line(0), _line(1)], total=2000)
        _place(group, "vendor-2", [_line(0)])
        current_domain.repository_for(CheckoutGroup).add(group)

        stored = current_domain.repository_for(CheckoutGroup).get(group.id)
        first, second = stored.ordered_vendor_orders

        assert [str(line.cart_item_id) for line in first.ordered_line_items] == ["item-0", "item-1"]
        assert all(str(line.vendor_order_id) == str(first.id) for line in first.line_items)
        assert len(second.line_items) == 1
        assert str(first.payment_intent.vendor_order_id) == str(first.id)
        assert second.payment_intent.amount_cents == 1000
