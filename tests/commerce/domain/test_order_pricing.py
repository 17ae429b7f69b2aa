"""Tests for Order creation, numbering, discounts and shipping."""

from datetime import UTC, datetime, timedelta

import pytest
from commerce.discount.discount import Discount, DiscountMethod, DiscountType
from commerce.order.events import OrderCreated, OrderDiscountApplied, OrderDiscountRemoved
from commerce.order.order import Order
from commerce.shared.snapshots import AppliedDiscount, ShippingOption
from protean.exceptions import ValidationError


def _items():
    return [
        {"product_id": "1", "quantity": 1, "price": 5000, "weight": 1.5},
        {"product_id": "2", "quantity": 2, "price": 1500, "weight": 0.5},
        {"product_id": "3", "quantity": 1, "price": 7000},
    ]


def _order():
    return Order.create(user_id="user-1", items=_items(), currency="usd")


def _discount(**overrides):
    now = datetime.now(UTC)
    defaults = {
        "code": "TENOFF",
        "discount_type": DiscountType.PRODUCT.value,
        "method": DiscountMethod.PERCENTAGE.value,
        "value": 10.0,
        "product_ids": ["1", "2"],
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
    }
    defaults.update(overrides)
    return Discount.create(**defaults)


def _shipping(cost):
    return ShippingOption(shipping_rate_id="rate-1", shipping_method_id="method-1", name="Express", cost=cost)


class TestOrderCreation:
    def test_totals_are_derived_from_items(self):
        order = _order()
        assert order.currency == "USD"
        assert [item.subtotal for item in order.items] == [5000, 3000, 7000]
        assert order.total_amount == 15000
        assert order.final_amount == 15000
        assert order.total_weight == 2.5
        assert order.calculate_total_weight() == 2.5

    def test_created_event(self):
        order = _order()
        event = order._events[-1]
        assert isinstance(event, OrderCreated)
        assert event.item_count == 3

    def test_temporary_number_until_assigned(self):
        order = _order()
        assert order.order_number.endswith("-TEMP")
        order.assign_order_number(42)
        assert order.order_number == f"ORD-{order.created_at:%Y%m%d}-000042"

    def test_user_required(self):
        with pytest.raises(ValidationError):
            Order.create(user_id=None, items=_items(), currency="USD")

    def test_items_required(self):
        with pytest.raises(ValidationError):
            Order.create_guest(items=[], currency="USD")

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError):
            Order.create_guest(items=[{"product_id": "1", "quantity": 1, "price": 0}], currency="USD")

    def test_guest_order(self):
        order = Order.create_guest(items=_items(), currency="USD")
        assert order.is_guest_order is True
        assert order.order_number.startswith("GS-")


class TestOrderDiscount:
    def test_product_discount_on_matching_lines(self):
        order = _order()
        order.apply_discount(_discount())
        assert order.discount_amount == 800
        assert order.final_amount == 14200
        assert order.applied_discount.discount_code == "TENOFF"
        assert isinstance(order._events[-1], OrderDiscountApplied)

    def test_invalid_discount_rejected(self):
        discount = _discount()
        discount.deactivate()
        with pytest.raises(ValidationError) as exc:
            _order().apply_discount(discount)
        assert "discount is invalid or inactive" in str(exc.value)

    def test_inapplicable_discount_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _order().apply_discount(_discount(product_ids=["99"]))
        assert "discount is not applicable to this order" in str(exc.value)

    def test_remove_discount(self):
        order = _order()
        order.apply_discount(_discount())
        order.remove_discount()
        assert order.discount_amount == 0
        assert order.applied_discount is None
        assert order.final_amount == 15000
        assert isinstance(order._events[-1], OrderDiscountRemoved)

    def test_carry_discount(self):
        order = _order()
        order.carry_discount(AppliedDiscount(discount_id="d-1", discount_code="X", discount_amount=1500))
        assert order.final_amount == 13500


class TestOrderShipping:
    def test_shipping_recomputes_final_amount(self):
        order = _order()
        order.apply_discount(_discount())
        order.set_shipping_method(_shipping(900))
        assert order.final_amount == 15000 + 900 - 800

    def test_replacing_shipping_does_not_accumulate(self):
        order = _order()
        order.set_shipping_method(_shipping(900))
        order.set_shipping_method(_shipping(400))
        assert order.shipping_cost == 400
        assert order.final_amount == 15400

    def test_empty_shipping_rejected(self):
        with pytest.raises(ValidationError):
            _order().set_shipping_method(None)


class TestOrderReferences:
    def test_tracking_code(self):
        order = _order()
        order.set_tracking_code("1Z999")
        assert order.tracking_code == "1Z999"

    def test_empty_payment_id_rejected(self):
        with pytest.raises(ValidationError):
            _order().set_payment_id("")
