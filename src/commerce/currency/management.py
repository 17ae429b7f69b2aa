"""Currency management: commands and handler.

Exactly one currency is the default at any time. Promoting a currency
demotes the previous default in the same unit of work.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, String
from protean.utils.globals import current_domain

from commerce.currency.currency import Currency
from commerce.domain import commerce, logger


@commerce.command(part_of="Currency")
class AddCurrency:
    code = String(required=True, max_length=3)
    name = String(required=True, max_length=100)
    symbol = String(required=True, max_length=10)
    exchange_rate = Float(required=True)
    is_enabled = Boolean(default=True)
    is_default = Boolean(default=False)


@commerce.command(part_of="Currency")
class UpdateExchangeRate:
    code = String(required=True, max_length=3)
    exchange_rate = Float(required=True)


@commerce.command(part_of="Currency")
class EnableCurrency:
    code = String(required=True, max_length=3)


@commerce.command(part_of="Currency")
class DisableCurrency:
    code = String(required=True, max_length=3)


@commerce.command(part_of="Currency")
class SetDefaultCurrency:
    code = String(required=True, max_length=3)


def _demote_other_defaults(repo, code):
    for other in repo._dao.query.filter(is_default=True).limit(None).all().items:
        if other.code != code:
            other.unset_default()
            repo.add(other)


@commerce.command_handler(part_of=Currency)
class ManageCurrencyHandler:
    @handle(AddCurrency)
    def add_currency(self, command):
        repo = current_domain.repository_for(Currency)
        code = command.code.upper()
        try:
            repo.get(code)
        except ObjectNotFoundError:
            pass
        else:
            raise ValidationError({"code": [f"Currency {code} already exists"]})

        currency = Currency.create(
            code=code,
            name=command.name,
            symbol=command.symbol,
            exchange_rate=command.exchange_rate,
            is_enabled=command.is_enabled,
            is_default=command.is_default,
        )
        if currency.is_default:
            _demote_other_defaults(repo, code)
        repo.add(currency)

        logger.info("Currency added", code=code, is_default=currency.is_default)
        return code

    @handle(UpdateExchangeRate)
    def update_exchange_rate(self, command):
        repo = current_domain.repository_for(Currency)
        currency = repo.get(command.code.upper())
        currency.update_exchange_rate(command.exchange_rate)
        repo.add(currency)

    @handle(EnableCurrency)
    def enable_currency(self, command):
        repo = current_domain.repository_for(Currency)
        currency = repo.get(command.code.upper())
        currency.enable()
        repo.add(currency)

    @handle(DisableCurrency)
    def disable_currency(self, command):
        repo = current_domain.repository_for(Currency)
        currency = repo.get(command.code.upper())
        currency.disable()
        repo.add(currency)

    @handle(SetDefaultCurrency)
    def set_default_currency(self, command):
        repo = current_domain.repository_for(Currency)
        code = command.code.upper()
        currency = repo.get(code)
        _demote_other_defaults(repo, code)
        currency.set_as_default()
        repo.add(currency)

        logger.info("Default currency changed", code=code)
