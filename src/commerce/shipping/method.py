"""ShippingMethod and ShippingZone aggregates.

A method is a carrier service ("Standard", "Express"); a zone is the set of
countries a rate applies to. ShippingRate links one of each.
"""

from protean.exceptions import ValidationError
from protean.fields import Boolean, Integer, List, String, Text

from commerce.domain import commerce


@commerce.aggregate
class ShippingMethod:
    name = String(required=True, max_length=255)
    description = Text()
    estimated_delivery_days = Integer(default=0, min_value=0)
    active = Boolean(default=True)

    @classmethod
    def create(cls, name, description="", estimated_delivery_days=0):
        if not name:
            raise ValidationError({"name": ["shipping method name cannot be empty"]})
        return cls(name=name, description=description, estimated_delivery_days=estimated_delivery_days)

    def activate(self):
        self.active = True

    def deactivate(self):
        self.active = False


@commerce.aggregate
class ShippingZone:
    name = String(required=True, max_length=255)
    description = Text()
    countries = List(content_type=String, default=list)
    active = Boolean(default=True)

    @classmethod
    def create(cls, name, countries, description=""):
        if not name:
            raise ValidationError({"name": ["shipping zone name cannot be empty"]})
        return cls(name=name, description=description, countries=[c.strip().upper() for c in countries or []])

    def covers(self, country):
        """Whether the zone ships to ``country``. A zone without countries covers everywhere."""
        if not self.countries:
            return True
        return bool(country) and country.strip().upper() in self.countries

    def activate(self):
        self.active = True

    def deactivate(self):
        self.active = False
