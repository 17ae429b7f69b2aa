"""BDD tests for the order fulfilment and payment state machines."""

from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, when

scenarios("features/order_state_machine.feature")


@given(parsers.cfparse('the payment status was set to "{payment_status}"'), target_fixture="order")
def _(order, payment_status):
    order.update_payment_status(payment_status)
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order status is set to "{status}"'))
def _(order, error, status):
    try:
        order.update_status(status)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the payment status is set to "{payment_status}"'))
def _(order, error, payment_status):
    try:
        order.update_payment_status(payment_status)
    except ValidationError as exc:
        error["exc"] = exc
