"""Denormalized snapshots embedded in checkouts and orders.

Snapshots copy what was chosen at the time (a shipping option, a discount)
so later edits to the source records never change historical orders.
"""

from protean.fields import Boolean, Identifier, Integer, String

from commerce.domain import commerce


@commerce.value_object
class ShippingOption:
    """A priced way to ship an order, derived from a ShippingRate."""

    shipping_rate_id = Identifier(required=True)
    shipping_method_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = String(max_length=1000)
    estimated_delivery_days = Integer(default=0)
    cost = Integer(required=True, min_value=0)
    free_shipping = Boolean(default=False)


@commerce.value_object
class AppliedDiscount:
    """The discount that was applied and the amount it produced."""

    discount_id = Identifier(required=True)
    discount_code = String(required=True, max_length=100)
    discount_amount = Integer(required=True, min_value=0)
