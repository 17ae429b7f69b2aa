"""Tests for the Currency aggregate."""

import pytest
from commerce.currency.currency import Currency
from commerce.currency.events import CurrencyDisabled, DefaultCurrencyChanged, ExchangeRateUpdated
from protean.exceptions import ValidationError


def _usd(**overrides):
    defaults = {"code": "USD", "name": "US Dollar", "symbol": "$", "exchange_rate": 1.0}
    defaults.update(overrides)
    return Currency.create(**defaults)


def _eur(**overrides):
    defaults = {"code": "EUR", "name": "Euro", "symbol": "€", "exchange_rate": 0.85}
    defaults.update(overrides)
    return Currency.create(**defaults)


class TestCurrencyCreation:
    def test_code_is_uppercased(self):
        currency = _usd(code="usd")
        assert currency.code == "USD"

    def test_new_currency_is_enabled(self):
        assert _usd().is_enabled is True

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            _usd(name="")

    def test_empty_code_rejected(self):
        with pytest.raises(ValidationError):
            _usd(code="")

    def test_default_currency_is_forced_enabled(self):
        currency = _usd(is_enabled=False, is_default=True)
        assert currency.is_enabled is True


class TestExchangeRate:
    def test_update_rate(self):
        currency = _eur()
        currency._events.clear()
        currency.update_exchange_rate(0.9)
        assert currency.exchange_rate == 0.9
        assert isinstance(currency._events[-1], ExchangeRateUpdated)

    def test_zero_rate_rejected(self):
        with pytest.raises(ValidationError):
            _eur().update_exchange_rate(0)

    def test_negative_rate_rejected_on_assignment(self):
        currency = _eur()
        with pytest.raises(ValidationError):
            currency.exchange_rate = -1.0


class TestEnableDisable:
    def test_disable(self):
        currency = _eur()
        currency._events.clear()
        currency.disable()
        assert currency.is_enabled is False
        assert isinstance(currency._events[-1], CurrencyDisabled)

    def test_cannot_disable_default(self):
        currency = _usd(is_default=True)
        with pytest.raises(ValidationError) as exc:
            currency.disable()
        assert "cannot disable the default currency" in str(exc.value)

    def test_set_as_default_enables(self):
        currency = _eur(is_enabled=False)
        currency.set_as_default()
        assert currency.is_default is True
        assert currency.is_enabled is True
        assert isinstance(currency._events[-1], DefaultCurrencyChanged)


class TestConvertAmount:
    def test_usd_to_eur(self):
        assert _usd().convert_amount(10000, _eur()) == 8500

    def test_eur_to_usd_round_trip(self):
        assert _eur().convert_amount(8500, _usd()) == 10000

    def test_same_currency_is_unchanged(self):
        usd = _usd()
        assert usd.convert_amount(1234, usd) == 1234
