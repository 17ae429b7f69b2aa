"""Application tests for converting a checkout into an order."""

import json
import re

import pytest
from commerce.checkout.checkout import Checkout, CheckoutStatus
from commerce.checkout.conversion import CompleteCheckout
from commerce.checkout.items import AddCheckoutItem
from commerce.checkout.management import SetBillingAddress, SetCustomerDetails, SetShippingAddress, StartCheckout
from commerce.checkout.pricing import ApplyDiscountCode, SelectShippingMethod
from commerce.discount.discount import Discount
from commerce.discount.management import DeactivateDiscount
from commerce.order.order import Order, OrderStatus, PaymentStatus
from protean import current_domain
from protean.exceptions import ValidationError

US_ADDRESS = json.dumps({"street1": "1 Main St", "city": "Springfield", "postal_code": "12345", "country": "US"})


def _ready_checkout(shipping_rate_id, session_id="sess-001", user_id=None):
    checkout_id = current_domain.process(
        StartCheckout(session_id=session_id, user_id=user_id, currency="USD"),
        asynchronous=False,
    )
    for command in (
        AddCheckoutItem(checkout_id=checkout_id, product_id="p1", quantity=2, price=2500, weight=1.0),
        AddCheckoutItem(checkout_id=checkout_id, product_id="p2", quantity=1, price=1000),
        SetShippingAddress(checkout_id=checkout_id, address=US_ADDRESS),
        SetBillingAddress(checkout_id=checkout_id, address=US_ADDRESS),
        SetCustomerDetails(checkout_id=checkout_id, email="jo@example.com", full_name="Jo Doe"),
        SelectShippingMethod(checkout_id=checkout_id, shipping_rate_id=shipping_rate_id),
    ):
        current_domain.process(command, asynchronous=False)
    return checkout_id


def _complete(checkout_id):
    return current_domain.process(CompleteCheckout(checkout_id=checkout_id), asynchronous=False)


class TestCompleteCheckout:
    def test_creates_numbered_order(self, shipping_rates):
        checkout_id = _ready_checkout(shipping_rates["standard"])
        order = current_domain.repository_for(Order).get(_complete(checkout_id))

        assert re.fullmatch(r"ORD-\d{8}-000001", order.order_number)
        assert order.is_guest_order is True
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert len(order.items) == 2
        assert order.total_amount == 6000
        assert order.shipping_cost == 500
        assert order.final_amount == 6500
        assert order.checkout_session_id == "sess-001"

    def test_order_numbers_increase(self, shipping_rates):
        first = _complete(_ready_checkout(shipping_rates["standard"], session_id="a"))
        second = _complete(_ready_checkout(shipping_rates["standard"], session_id="b"))
        repo = current_domain.repository_for(Order)
        assert repo.get(first).order_number.endswith("-000001")
        assert repo.get(second).order_number.endswith("-000002")

    def test_checkout_is_completed(self, shipping_rates):
        checkout_id = _ready_checkout(shipping_rates["standard"])
        order_id = _complete(checkout_id)

        checkout = current_domain.repository_for(Checkout).get(checkout_id)
        assert checkout.status == CheckoutStatus.COMPLETED.value
        assert str(checkout.converted_order_id) == order_id

    def test_user_checkout(self, shipping_rates):
        checkout_id = _ready_checkout(shipping_rates["standard"], user_id="user-9")
        order = current_domain.repository_for(Order).get(_complete(checkout_id))
        assert order.is_guest_order is False
        assert str(order.user_id) == "user-9"

    def test_completed_checkout_cannot_complete_again(self, shipping_rates):
        checkout_id = _ready_checkout(shipping_rates["standard"])
        _complete(checkout_id)
        with pytest.raises(ValidationError):
            _complete(checkout_id)

    def test_incomplete_checkout_lists_missing_details(self):
        checkout_id = current_domain.process(StartCheckout(session_id="sess-x"), asynchronous=False)
        with pytest.raises(ValidationError) as exc:
            _complete(checkout_id)
        messages = exc.value.messages
        for field in ("items", "shipping_address", "billing_address", "customer_details", "shipping_option"):
            assert field in messages


class TestDiscountRedemption:
    def test_discount_carried_and_usage_recorded(self, shipping_rates, make_discount):
        discount_id = make_discount(code="SAVE10")
        checkout_id = _ready_checkout(shipping_rates["standard"])
        current_domain.process(ApplyDiscountCode(checkout_id=checkout_id, discount_code="SAVE10"), asynchronous=False)

        order = current_domain.repository_for(Order).get(_complete(checkout_id))

        assert order.discount_amount == 600
        assert order.final_amount == 6000 + 500 - 600
        assert order.applied_discount.discount_code == "SAVE10"
        assert current_domain.repository_for(Discount).get(discount_id).current_usage == 1

    def test_discount_deactivated_before_completion_is_dropped(self, shipping_rates, make_discount):
        discount_id = make_discount(code="SAVE10")
        checkout_id = _ready_checkout(shipping_rates["standard"])
        current_domain.process(ApplyDiscountCode(checkout_id=checkout_id, discount_code="SAVE10"), asynchronous=False)
        current_domain.process(DeactivateDiscount(discount_id=discount_id), asynchronous=False)

        order = current_domain.repository_for(Order).get(_complete(checkout_id))

        assert order.discount_amount == 0
        assert order.final_amount == 6500
        assert current_domain.repository_for(Discount).get(discount_id).current_usage == 0
