"""Tests for environment-driven settings."""

from commerce.config import Settings, StripeSettings, load_settings


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "DEFAULT_CURRENCY",
            "PAYMENT_PROVIDERS_ENABLED",
            "CHECKOUT_EXPIRY_HOURS",
            "STRIPE_ENABLED",
            "MOBILEPAY_ENABLED",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.default_currency == "USD"
        assert settings.checkout_expiry_hours == 24
        assert settings.enabled_providers == ("mock",)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "eur")
        monkeypatch.setenv("CHECKOUT_EXPIRY_HOURS", "48")
        monkeypatch.setenv("PAYMENT_PROVIDERS_ENABLED", "Mock, Stripe")
        monkeypatch.setenv("STRIPE_ENABLED", "true")
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")

        settings = load_settings()

        assert settings.default_currency == "EUR"
        assert settings.checkout_expiry_hours == 48
        assert settings.payment_providers == ("mock", "stripe")
        assert settings.stripe.secret_key == "sk_test_123"
        assert settings.enabled_providers == ("mock", "stripe")


class TestEnabledProviders:
    def test_mock_is_always_enabled(self):
        assert Settings(payment_providers=()).enabled_providers == ("mock",)

    def test_enabled_but_unlisted_provider_is_skipped(self):
        settings = Settings(payment_providers=("mock",), stripe=StripeSettings(enabled=True))
        assert settings.enabled_providers == ("mock",)
