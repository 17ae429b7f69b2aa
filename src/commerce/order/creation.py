"""Order creation: command, handler and order numbering."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.order.order import Order
from commerce.sequence.sequence import next_sequence_value
from commerce.shared.address import Address, CustomerDetails

ORDER_NUMBER_SEQUENCE = "order-number"


@commerce.command(part_of="Order")
class CreateOrder:
    user_id = Identifier()  # Omit for guest orders
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity, price, ...}
    currency = String(required=True, max_length=3)
    shipping_address = Text()  # JSON: {street1, street2, city, state, postal_code, country}
    billing_address = Text()  # JSON
    customer_details = Text()  # JSON: {email, phone, full_name}


def _value_object(cls, raw):
    return cls(**json.loads(raw)) if raw else None


def place_order(order):
    """Assign the final order number and persist the order."""
    order.assign_order_number(next_sequence_value(ORDER_NUMBER_SEQUENCE))
    current_domain.repository_for(Order).add(order)

    logger.info(
        "Order placed",
        order_id=str(order.id),
        order_number=order.order_number,
        is_guest_order=order.is_guest_order,
        final_amount=order.final_amount,
        currency=order.currency,
    )
    return order


@commerce.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        kwargs = dict(
            items=json.loads(command.items),
            currency=command.currency,
            shipping_address=_value_object(Address, command.shipping_address),
            billing_address=_value_object(Address, command.billing_address),
            customer_details=_value_object(CustomerDetails, command.customer_details),
        )
        if command.user_id:
            order = Order.create(user_id=command.user_id, **kwargs)
        else:
            order = Order.create_guest(**kwargs)

        place_order(order)
        return str(order.id)
