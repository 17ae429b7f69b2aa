"""ShippingRate aggregate: tiered shipping cost for a method within a zone.

Cost rules, in order:

1. A free-shipping threshold, when set and met, makes shipping free.
2. An order below ``min_order_value`` cannot use this rate.
3. Otherwise cost is ``base_rate`` plus the first matching weight tier and
   the first matching value tier (bounds inclusive).

Tiers of the same kind may not overlap, so "first match" is deterministic.
"""

from protean import atomic_change
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer

from commerce.domain import commerce
from commerce.shared.clock import utc_now
from commerce.shipping.events import ShippingRateCreated, ShippingRateUpdated


@commerce.entity(part_of="ShippingRate")
class WeightBasedRate:
    min_weight = Float(required=True, min_value=0.0)
    max_weight = Float(required=True, min_value=0.0)
    rate = Integer(required=True, min_value=0)
    position = Integer(default=0)

    def contains(self, weight):
        return self.min_weight <= weight <= self.max_weight


@commerce.entity(part_of="ShippingRate")
class ValueBasedRate:
    min_order_value = Integer(required=True, min_value=0)
    max_order_value = Integer(required=True, min_value=0)
    rate = Integer(required=True, min_value=0)
    position = Integer(default=0)

    def contains(self, order_value):
        return self.min_order_value <= order_value <= self.max_order_value


@commerce.aggregate
class ShippingRate:
    shipping_method_id = Identifier(required=True)
    shipping_zone_id = Identifier(required=True)
    base_rate = Integer(default=0, min_value=0)
    min_order_value = Integer(default=0, min_value=0)
    free_shipping_threshold = Integer()
    weight_based_rates = HasMany(WeightBasedRate)
    value_based_rates = HasMany(ValueBasedRate)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, shipping_method_id, shipping_zone_id, base_rate, min_order_value=0):
        if not shipping_method_id:
            raise ValidationError({"shipping_method_id": ["shipping method ID cannot be empty"]})
        if not shipping_zone_id:
            raise ValidationError({"shipping_zone_id": ["shipping zone ID cannot be empty"]})
        if base_rate < 0:
            raise ValidationError({"base_rate": ["base rate cannot be negative"]})
        if min_order_value < 0:
            raise ValidationError({"min_order_value": ["minimum order value cannot be negative"]})

        now = utc_now()
        rate = cls(
            shipping_method_id=shipping_method_id,
            shipping_zone_id=shipping_zone_id,
            base_rate=base_rate,
            min_order_value=min_order_value,
            active=True,
            created_at=now,
            updated_at=now,
        )
        rate.raise_(
            ShippingRateCreated(
                shipping_rate_id=str(rate.id),
                shipping_method_id=str(shipping_method_id),
                shipping_zone_id=str(shipping_zone_id),
                base_rate=base_rate,
                min_order_value=min_order_value,
            )
        )
        return rate

    def update(self, base_rate, min_order_value):
        if base_rate < 0:
            raise ValidationError({"base_rate": ["base rate cannot be negative"]})
        if min_order_value < 0:
            raise ValidationError({"min_order_value": ["minimum order value cannot be negative"]})

        with atomic_change(self):
            self.base_rate = base_rate
            self.min_order_value = min_order_value
            self.updated_at = utc_now()

        self.raise_(
            ShippingRateUpdated(
                shipping_rate_id=str(self.id),
                base_rate=base_rate,
                min_order_value=min_order_value,
            )
        )

    def set_free_shipping_threshold(self, threshold):
        """Set the order value above which shipping is free. ``None`` clears it; negatives are ignored."""
        if threshold is not None and threshold < 0:
            return
        self.free_shipping_threshold = threshold
        self.updated_at = utc_now()

    def add_weight_based_rate(self, min_weight, max_weight, rate):
        if min_weight < 0 or max_weight < min_weight:
            raise ValidationError({"weight_based_rates": ["invalid weight range"]})
        if rate < 0:
            raise ValidationError({"weight_based_rates": ["rate cannot be negative"]})
        for tier in self.weight_based_rates:
            if min_weight <= tier.max_weight and tier.min_weight <= max_weight:
                raise ValidationError({"weight_based_rates": ["weight range overlaps an existing tier"]})

        tier = WeightBasedRate(
            min_weight=min_weight,
            max_weight=max_weight,
            rate=rate,
            position=len(self.weight_based_rates),
        )
        self.add_weight_based_rates(tier)
        self.updated_at = utc_now()
        return tier

    def add_value_based_rate(self, min_order_value, max_order_value, rate):
        if min_order_value < 0 or max_order_value < min_order_value:
            raise ValidationError({"value_based_rates": ["invalid order value range"]})
        if rate < 0:
            raise ValidationError({"value_based_rates": ["rate cannot be negative"]})
        for tier in self.value_based_rates:
            if min_order_value <= tier.max_order_value and tier.min_order_value <= max_order_value:
                raise ValidationError({"value_based_rates": ["order value range overlaps an existing tier"]})

        tier = ValueBasedRate(
            min_order_value=min_order_value,
            max_order_value=max_order_value,
            rate=rate,
            position=len(self.value_based_rates),
        )
        self.add_value_based_rates(tier)
        self.updated_at = utc_now()
        return tier

    def calculate_shipping_cost(self, order_value, weight):
        """Shipping cost in cents for an order of ``order_value`` cents weighing ``weight``."""
        if self.free_shipping_threshold is not None and order_value >= self.free_shipping_threshold:
            return 0

        if order_value < self.min_order_value:
            raise ValidationError({"order_value": ["order value does not meet minimum requirement"]})

        cost = self.base_rate

        weight_tier = next(
            (t for t in sorted(self.weight_based_rates, key=lambda t: t.position) if t.contains(weight)),
            None,
        )
        if weight_tier is not None:
            cost += weight_tier.rate

        value_tier = next(
            (t for t in sorted(self.value_based_rates, key=lambda t: t.position) if t.contains(order_value)),
            None,
        )
        if value_tier is not None:
            cost += value_tier.rate

        return cost

    def activate(self):
        self.active = True
        self.updated_at = utc_now()

    def deactivate(self):
        self.active = False
        self.updated_at = utc_now()
