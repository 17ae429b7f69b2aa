"""Payment gateway factory.

build_payment_service() assembles a MultiProviderPaymentService from
settings:
- MockPaymentProvider, always registered, for development and testing
- StripePaymentProvider and MobilePayPaymentProvider when enabled (stubs)
"""

from commerce.config import Settings, load_settings
from commerce.gateway.mobilepay_adapter import MobilePayPaymentProvider
from commerce.gateway.mock_adapter import MockPaymentProvider
from commerce.gateway.orchestrator import MultiProviderPaymentService
from commerce.gateway.port import ProviderType
from commerce.gateway.stripe_adapter import StripePaymentProvider

WEBHOOK_EVENTS = [
    "payment.authorized",
    "payment.captured",
    "payment.cancelled",
    "payment.refunded",
    "payment.failed",
]


def build_payment_service(settings: Settings | None = None) -> MultiProviderPaymentService:
    """Return a payment service with the providers enabled in settings."""
    settings = settings or load_settings()
    service = MultiProviderPaymentService()

    enabled = settings.enabled_providers
    if "mock" in enabled:
        service.register(ProviderType.MOCK, MockPaymentProvider())
    if "stripe" in enabled:
        service.register(ProviderType.STRIPE, StripePaymentProvider(settings.stripe))
    if "mobilepay" in enabled:
        service.register(ProviderType.MOBILEPAY, MobilePayPaymentProvider(settings.mobilepay))

    if settings.mobilepay.webhook_url:
        service.register_webhooks(settings.mobilepay.webhook_url, WEBHOOK_EVENTS)
    return service
