"""Shipping option calculation across methods, zones and rates."""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from commerce.domain import logger
from commerce.shared.snapshots import ShippingOption
from commerce.shipping.method import ShippingMethod, ShippingZone
from commerce.shipping.rate import ShippingRate


def calculate_shipping_options(country, order_value, weight):
    """Priced shipping options for a destination country, cheapest first.

    Rates that cannot serve the order (e.g. below their minimum order value)
    are skipped rather than failing the whole calculation.
    """
    zones = [
        zone
        for zone in current_domain.repository_for(ShippingZone)._dao.query.filter(active=True).limit(None).all().items
        if zone.covers(country)
    ]
    if not zones:
        return []

    zone_ids = {str(zone.id) for zone in zones}
    method_repo = current_domain.repository_for(ShippingMethod)
    rates = current_domain.repository_for(ShippingRate)._dao.query.filter(active=True).limit(None).all().items

    options = []
    for rate in rates:
        if str(rate.shipping_zone_id) not in zone_ids:
            continue

        method = method_repo.get(rate.shipping_method_id)
        if not method.active:
            continue

        try:
            cost = rate.calculate_shipping_cost(order_value, weight)
        except ValidationError as exc:
            logger.debug("Shipping rate skipped", shipping_rate_id=str(rate.id), reason=str(exc.messages))
            continue

        options.append(
            ShippingOption(
                shipping_rate_id=str(rate.id),
                shipping_method_id=str(method.id),
                name=method.name,
                description=method.description or "",
                estimated_delivery_days=method.estimated_delivery_days or 0,
                cost=cost,
                free_shipping=cost == 0,
            )
        )

    return sorted(options, key=lambda option: option.cost)


def find_shipping_option(shipping_rate_id, country, order_value, weight):
    """The option for ``shipping_rate_id`` if it can serve this order, else None."""
    return next(
        (
            option
            for option in calculate_shipping_options(country, order_value, weight)
            if option.shipping_rate_id == str(shipping_rate_id)
        ),
        None,
    )
