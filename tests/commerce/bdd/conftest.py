"""Shared BDD fixtures and step definitions for orders and checkouts."""

import pytest
from commerce.checkout.checkout import Checkout
from commerce.checkout.events import (
    CheckoutAbandoned,
    CheckoutCompleted,
    CheckoutExpired,
    CheckoutItemAdded,
    CheckoutItemRemoved,
    CheckoutItemUpdated,
)
from commerce.order.events import OrderPaymentStatusChanged, OrderStatusChanged
from commerce.order.order import Order
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_ORDER_EVENT_CLASSES = {
    "OrderStatusChanged": OrderStatusChanged,
    "OrderPaymentStatusChanged": OrderPaymentStatusChanged,
}

_CHECKOUT_EVENT_CLASSES = {
    "CheckoutItemAdded": CheckoutItemAdded,
    "CheckoutItemUpdated": CheckoutItemUpdated,
    "CheckoutItemRemoved": CheckoutItemRemoved,
    "CheckoutCompleted": CheckoutCompleted,
    "CheckoutAbandoned": CheckoutAbandoned,
    "CheckoutExpired": CheckoutExpired,
}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps: Order
# ---------------------------------------------------------------------------
@given("a new order", target_fixture="order")
def new_order():
    order = Order.create(
        user_id="user-001",
        items=[{"product_id": "prod-001", "quantity": 2, "price": 2500}],
        currency="USD",
    )
    order._events.clear()
    return order


@given("the payment was authorized", target_fixture="order")
def authorized_order(order):
    order.update_payment_status("authorized")
    order._events.clear()
    return order


@given("the order was shipped", target_fixture="order")
def shipped_order(order):
    order.update_status("shipped")
    order._events.clear()
    return order


@given("the payment was captured", target_fixture="order")
def captured_order(order):
    order.update_payment_status("captured")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Given steps: Checkout
# ---------------------------------------------------------------------------
@given("an active checkout", target_fixture="checkout")
def active_checkout():
    checkout = Checkout.create(session_id="sess-001", currency="USD")
    checkout._events.clear()
    return checkout


@given(parsers.cfparse('the checkout has {quantity:d} of "{product_id}" at {price:d}'), target_fixture="checkout")
def checkout_with_item(checkout, quantity, product_id, price):
    checkout.add_item(product_id=product_id, variant_id=None, quantity=quantity, price=price)
    checkout._events.clear()
    return checkout


@given("the checkout was completed", target_fixture="checkout")
def completed_checkout(checkout):
    checkout.mark_as_completed("order-001")
    checkout._events.clear()
    return checkout


@given("the checkout was abandoned", target_fixture="checkout")
def abandoned_checkout(checkout):
    checkout.mark_as_abandoned()
    checkout._events.clear()
    return checkout


# ---------------------------------------------------------------------------
# Then steps: shared
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the payment status is "{payment_status}"'))
def payment_status_is(order, payment_status):
    assert order.payment_status == payment_status


@then(parsers.cfparse('the checkout status is "{status}"'))
def checkout_status_is(checkout, status):
    assert checkout.status == status


@then("the action fails with a validation error")
def action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("an {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


@then(parsers.cfparse("no order event is raised"))
def no_order_event(order):
    assert order._events == []


@then(parsers.cfparse("a {event_type} checkout event is raised"))
def checkout_event_raised(checkout, event_type):
    event_cls = _CHECKOUT_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in checkout._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in checkout._events]}"
