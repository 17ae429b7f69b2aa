"""Domain events for the Discount aggregate."""

from protean.fields import Float, Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="Discount")
class DiscountCreated:
    """A discount code was created."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    method = String(required=True)
    value = Float(required=True)


@commerce.event(part_of="Discount")
class DiscountActivated:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)


@commerce.event(part_of="Discount")
class DiscountDeactivated:
    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)


@commerce.event(part_of="Discount")
class DiscountUsed:
    """A discount was redeemed by a completed checkout."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    current_usage = Integer(required=True)
