"""Domain events for the Checkout aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Checkout")
class CheckoutStarted:
    """A shopper session opened a new checkout."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)
    user_id = Identifier()
    currency = String(required=True)
    expires_at = DateTime(required=True)


@commerce.event(part_of="Checkout")
class CheckoutItemAdded:
    """A product variant was added to the checkout, or its quantity increased."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)
    price = Integer(required=True)


@commerce.event(part_of="Checkout")
class CheckoutItemUpdated:
    __version__ = 1

    checkout_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@commerce.event(part_of="Checkout")
class CheckoutItemRemoved:
    __version__ = 1

    checkout_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()


@commerce.event(part_of="Checkout")
class CheckoutDiscountApplied:
    __version__ = 1

    checkout_id = Identifier(required=True)
    discount_id = Identifier(required=True)
    discount_code = String(required=True)
    discount_amount = Integer(required=True)


@commerce.event(part_of="Checkout")
class CheckoutDiscountRemoved:
    __version__ = 1

    checkout_id = Identifier(required=True)


@commerce.event(part_of="Checkout")
class CheckoutShippingSelected:
    __version__ = 1

    checkout_id = Identifier(required=True)
    shipping_rate_id = Identifier()
    shipping_cost = Integer(required=True)


@commerce.event(part_of="Checkout")
class CheckoutCurrencyChanged:
    __version__ = 1

    checkout_id = Identifier(required=True)
    previous_currency = String(required=True)
    new_currency = String(required=True)


@commerce.event(part_of="Checkout")
class CheckoutCompleted:
    """The checkout was converted into an order."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    order_id = Identifier(required=True)
    final_amount = Integer(required=True)
    completed_at = DateTime(required=True)


@commerce.event(part_of="Checkout")
class CheckoutAbandoned:
    """A checkout with customer details went quiet and was marked abandoned."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)
    abandoned_at = DateTime(required=True)


@commerce.event(part_of="Checkout")
class CheckoutExpired:
    __version__ = 1

    checkout_id = Identifier(required=True)
    session_id = String(required=True)
    expired_at = DateTime(required=True)
