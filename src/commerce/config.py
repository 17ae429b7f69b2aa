"""Environment-driven settings for the commerce engine."""

import os
from dataclasses import dataclass, field

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class StripeSettings:
    enabled: bool = False
    secret_key: str = ""
    webhook_secret: str = ""
    payment_description: str = "Commerce order"


@dataclass(frozen=True)
class MobilePaySettings:
    enabled: bool = False
    merchant_serial_number: str = ""
    subscription_key: str = ""
    client_id: str = ""
    client_secret: str = ""
    webhook_url: str = ""
    return_url: str = ""
    test_mode: bool = True


@dataclass(frozen=True)
class Settings:
    default_currency: str = "USD"
    payment_providers: tuple[str, ...] = ("mock",)
    checkout_expiry_hours: int = 24
    stripe: StripeSettings = field(default_factory=StripeSettings)
    mobilepay: MobilePaySettings = field(default_factory=MobilePaySettings)

    @property
    def enabled_providers(self) -> tuple[str, ...]:
        """Providers to register: mock always, the others when listed and enabled."""
        enabled = ["mock"]
        if "stripe" in self.payment_providers and self.stripe.enabled:
            enabled.append("stripe")
        if "mobilepay" in self.payment_providers and self.mobilepay.enabled:
            enabled.append("mobilepay")
        return tuple(enabled)


def load_settings() -> Settings:
    """Build settings from the process environment."""
    return_url = os.getenv("RETURN_URL", "")
    return Settings(
        default_currency=os.getenv("DEFAULT_CURRENCY", "USD").upper(),
        payment_providers=_env_list("PAYMENT_PROVIDERS_ENABLED", "mock,stripe,mobilepay"),
        checkout_expiry_hours=int(os.getenv("CHECKOUT_EXPIRY_HOURS", "24")),
        stripe=StripeSettings(
            enabled=_env_bool("STRIPE_ENABLED", False),
            secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
            webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
            payment_description=os.getenv("STRIPE_PAYMENT_DESCRIPTION", "Commerce order"),
        ),
        mobilepay=MobilePaySettings(
            enabled=_env_bool("MOBILEPAY_ENABLED", False),
            merchant_serial_number=os.getenv("MOBILEPAY_MERCHANT_SERIAL_NUMBER", ""),
            subscription_key=os.getenv("MOBILEPAY_SUBSCRIPTION_KEY", ""),
            client_id=os.getenv("MOBILEPAY_CLIENT_ID", ""),
            client_secret=os.getenv("MOBILEPAY_CLIENT_SECRET", ""),
            webhook_url=os.getenv("MOBILEPAY_WEBHOOK_URL", ""),
            return_url=return_url,
            test_mode=_env_bool("MOBILEPAY_TEST_MODE", True),
        ),
    )
