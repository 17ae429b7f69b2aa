"""Shipping configuration: commands and handlers for methods, zones and rates."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.shipping.method import ShippingMethod, ShippingZone
from commerce.shipping.rate import ShippingRate


@commerce.command(part_of="ShippingMethod")
class CreateShippingMethod:
    name = String(required=True, max_length=255)
    description = Text()
    estimated_delivery_days = Integer(default=0)


@commerce.command(part_of="ShippingZone")
class CreateShippingZone:
    name = String(required=True, max_length=255)
    description = Text()
    countries = Text()  # JSON array of country codes


@commerce.command(part_of="ShippingRate")
class CreateShippingRate:
    shipping_method_id = Identifier(required=True)
    shipping_zone_id = Identifier(required=True)
    base_rate = Integer(required=True)
    min_order_value = Integer(default=0)
    free_shipping_threshold = Integer()


@commerce.command(part_of="ShippingRate")
class AddWeightBasedRate:
    shipping_rate_id = Identifier(required=True)
    min_weight = Float(required=True)
    max_weight = Float(required=True)
    rate = Integer(required=True)


@commerce.command(part_of="ShippingRate")
class AddValueBasedRate:
    shipping_rate_id = Identifier(required=True)
    min_order_value = Integer(required=True)
    max_order_value = Integer(required=True)
    rate = Integer(required=True)


@commerce.command_handler(part_of=ShippingMethod)
class ShippingMethodHandler:
    @handle(CreateShippingMethod)
    def create_shipping_method(self, command):
        method = ShippingMethod.create(
            name=command.name,
            description=command.description or "",
            estimated_delivery_days=command.estimated_delivery_days,
        )
        current_domain.repository_for(ShippingMethod).add(method)
        return str(method.id)


@commerce.command_handler(part_of=ShippingZone)
class ShippingZoneHandler:
    @handle(CreateShippingZone)
    def create_shipping_zone(self, command):
        zone = ShippingZone.create(
            name=command.name,
            countries=json.loads(command.countries) if command.countries else [],
            description=command.description or "",
        )
        current_domain.repository_for(ShippingZone).add(zone)
        return str(zone.id)


@commerce.command_handler(part_of=ShippingRate)
class ShippingRateHandler:
    @handle(CreateShippingRate)
    def create_shipping_rate(self, command):
        # Both ends of the link must exist
        current_domain.repository_for(ShippingMethod).get(command.shipping_method_id)
        current_domain.repository_for(ShippingZone).get(command.shipping_zone_id)

        rate = ShippingRate.create(
            shipping_method_id=command.shipping_method_id,
            shipping_zone_id=command.shipping_zone_id,
            base_rate=command.base_rate,
            min_order_value=command.min_order_value,
        )
        if command.free_shipping_threshold is not None:
            rate.set_free_shipping_threshold(command.free_shipping_threshold)
        current_domain.repository_for(ShippingRate).add(rate)

        logger.info(
            "Shipping rate created",
            shipping_rate_id=str(rate.id),
            shipping_method_id=str(command.shipping_method_id),
            shipping_zone_id=str(command.shipping_zone_id),
        )
        return str(rate.id)

    @handle(AddWeightBasedRate)
    def add_weight_based_rate(self, command):
        repo = current_domain.repository_for(ShippingRate)
        rate = repo.get(command.shipping_rate_id)
        rate.add_weight_based_rate(command.min_weight, command.max_weight, command.rate)
        repo.add(rate)

    @handle(AddValueBasedRate)
    def add_value_based_rate(self, command):
        repo = current_domain.repository_for(ShippingRate)
        rate = repo.get(command.shipping_rate_id)
        rate.add_value_based_rate(command.min_order_value, command.max_order_value, command.rate)
        repo.add(rate)
