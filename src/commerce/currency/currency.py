"""Currency aggregate: exchange rates and the single default currency.

Rates are expressed against a common base unit. Conversion goes through the
base: ``amount / from.rate * to.rate``, rounded to the nearest cent.
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String

from commerce.currency.events import (
    CurrencyAdded,
    CurrencyDisabled,
    CurrencyEnabled,
    DefaultCurrencyChanged,
    ExchangeRateUpdated,
)
from commerce.domain import commerce
from commerce.shared.clock import utc_now
from commerce.shared.money import convert


@commerce.aggregate
class Currency:
    code = String(identifier=True, max_length=3)
    name = String(required=True, max_length=100)
    symbol = String(required=True, max_length=10)
    exchange_rate = Float(required=True)
    is_enabled = Boolean(default=True)
    is_default = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def exchange_rate_must_be_positive(self):
        if self.exchange_rate is None or self.exchange_rate <= 0:
            raise ValidationError({"exchange_rate": ["exchange rate must be greater than zero"]})

    @invariant.post
    def code_must_be_three_uppercase_letters(self):
        if not self.code or len(self.code) != 3 or not self.code.isalpha() or self.code != self.code.upper():
            raise ValidationError({"code": ["currency code must be three uppercase letters"]})

    @invariant.post
    def default_currency_must_be_enabled(self):
        if self.is_default and not self.is_enabled:
            raise ValidationError({"is_enabled": ["the default currency must be enabled"]})

    @classmethod
    def create(cls, code, name, symbol, exchange_rate, is_enabled=True, is_default=False):
        if not code:
            raise ValidationError({"code": ["currency code cannot be empty"]})
        if not name:
            raise ValidationError({"name": ["currency name cannot be empty"]})
        if not symbol:
            raise ValidationError({"symbol": ["currency symbol cannot be empty"]})

        now = utc_now()
        currency = cls(
            code=code.strip().upper(),
            name=name,
            symbol=symbol,
            exchange_rate=exchange_rate,
            is_enabled=is_enabled or is_default,
            is_default=is_default,
            created_at=now,
            updated_at=now,
        )
        currency.raise_(
            CurrencyAdded(
                code=currency.code,
                name=name,
                symbol=symbol,
                exchange_rate=exchange_rate,
                is_default=currency.is_default,
            )
        )
        return currency

    def enable(self):
        if self.is_enabled:
            return
        self.is_enabled = True
        self.updated_at = utc_now()
        self.raise_(CurrencyEnabled(code=self.code))

    def disable(self):
        if self.is_default:
            raise ValidationError({"is_enabled": ["cannot disable the default currency"]})
        if not self.is_enabled:
            return
        self.is_enabled = False
        self.updated_at = utc_now()
        self.raise_(CurrencyDisabled(code=self.code))

    def set_as_default(self):
        """Make this the default currency. The default is always enabled."""
        with atomic_change(self):
            self.is_default = True
            self.is_enabled = True
            self.updated_at = utc_now()
        self.raise_(DefaultCurrencyChanged(code=self.code))

    def unset_default(self):
        self.is_default = False
        self.updated_at = utc_now()

    def update_exchange_rate(self, exchange_rate):
        if exchange_rate is None or exchange_rate <= 0:
            raise ValidationError({"exchange_rate": ["exchange rate must be greater than zero"]})

        previous_rate = self.exchange_rate
        self.exchange_rate = exchange_rate
        self.updated_at = utc_now()
        self.raise_(
            ExchangeRateUpdated(
                code=self.code,
                previous_rate=previous_rate,
                new_rate=exchange_rate,
            )
        )

    def convert_amount(self, amount, to_currency):
        """Convert ``amount`` cents from this currency into ``to_currency``."""
        if to_currency is None or to_currency.code == self.code:
            return amount
        return convert(amount, self.exchange_rate, to_currency.exchange_rate)
