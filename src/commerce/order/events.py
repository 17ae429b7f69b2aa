"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Order")
class OrderCreated:
    """A new order was placed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()
    is_guest_order = Boolean(default=False)
    currency = String(required=True)
    total_amount = Integer(required=True)
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderNumberAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)


@commerce.event(part_of="Order")
class OrderStatusChanged:
    """The fulfilment status of an order moved."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderPaymentStatusChanged:
    """The payment status of an order moved."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    new_payment_status = String(required=True)
    changed_at = DateTime(required=True)


@commerce.event(part_of="Order")
class OrderDiscountApplied:
    __version__ = 1

    order_id = Identifier(required=True)
    discount_id = Identifier(required=True)
    discount_code = String(required=True)
    discount_amount = Integer(required=True)


@commerce.event(part_of="Order")
class OrderDiscountRemoved:
    __version__ = 1

    order_id = Identifier(required=True)


@commerce.event(part_of="Order")
class OrderShippingMethodSet:
    __version__ = 1

    order_id = Identifier(required=True)
    shipping_rate_id = Identifier(required=True)
    shipping_method_id = Identifier(required=True)
    shipping_cost = Integer(required=True)
