"""Domain events for the ShippingRate aggregate."""

from protean.fields import Identifier, Integer

from commerce.domain import commerce


@commerce.event(part_of="ShippingRate")
class ShippingRateCreated:
    __version__ = 1

    shipping_rate_id = Identifier(required=True)
    shipping_method_id = Identifier(required=True)
    shipping_zone_id = Identifier(required=True)
    base_rate = Integer(required=True)
    min_order_value = Integer(required=True)


@commerce.event(part_of="ShippingRate")
class ShippingRateUpdated:
    __version__ = 1

    shipping_rate_id = Identifier(required=True)
    base_rate = Integer(required=True)
    min_order_value = Integer(required=True)
