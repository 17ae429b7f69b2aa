"""Domain events for the Currency aggregate."""

from protean.fields import Boolean, Float, String

from commerce.domain import commerce


@commerce.event(part_of="Currency")
class CurrencyAdded:
    """A currency became available for pricing and checkout."""

    __version__ = 1

    code = String(required=True, max_length=3)
    name = String(required=True)
    symbol = String(required=True)
    exchange_rate = Float(required=True)
    is_default = Boolean(default=False)


@commerce.event(part_of="Currency")
class CurrencyEnabled:
    __version__ = 1

    code = String(required=True, max_length=3)


@commerce.event(part_of="Currency")
class CurrencyDisabled:
    __version__ = 1

    code = String(required=True, max_length=3)


@commerce.event(part_of="Currency")
class DefaultCurrencyChanged:
    """A currency was promoted to be the store default."""

    __version__ = 1

    code = String(required=True, max_length=3)


@commerce.event(part_of="Currency")
class ExchangeRateUpdated:
    __version__ = 1

    code = String(required=True, max_length=3)
    previous_rate = Float(required=True)
    new_rate = Float(required=True)
