"""Multi-provider payment orchestration.

Routes each payment operation to the adapter registered for the requested
provider and stamps the provider onto successful results.
"""

from dataclasses import replace

from commerce.domain import logger
from commerce.gateway.port import (
    PaymentProvider,
    PaymentRequest,
    PaymentResult,
    ProviderInfo,
    ProviderNotAvailableError,
    ProviderType,
)


def _stamp(result: PaymentResult, provider_type: ProviderType) -> PaymentResult:
    return replace(result, provider=provider_type) if result.success else result


class MultiProviderPaymentService:
    def __init__(self, providers: dict[ProviderType, PaymentProvider] | None = None) -> None:
        self._providers: dict[ProviderType, PaymentProvider] = dict(providers or {})

    def register(self, provider_type: ProviderType, provider: PaymentProvider) -> None:
        self._providers[provider_type] = provider

    def provider(self, provider_type: ProviderType | str) -> PaymentProvider:
        """Return the adapter for a provider, or raise ProviderNotAvailableError."""
        try:
            key = ProviderType(provider_type)
        except ValueError:
            raise ProviderNotAvailableError(provider_type) from None

        adapter = self._providers.get(key)
        if adapter is None:
            raise ProviderNotAvailableError(key.value)
        return adapter

    def available_providers(self) -> list[ProviderInfo]:
        return [info for adapter in self._providers.values() for info in adapter.available_providers()]

    def available_providers_for_currency(self, currency: str) -> list[ProviderInfo]:
        return [info for info in self.available_providers() if info.supports_currency(currency)]

    def process_payment(self, request: PaymentRequest) -> PaymentResult:
        adapter = self.provider(request.payment_provider)
        logger.info(
            "Processing payment",
            order_id=request.order_id,
            provider=request.payment_provider.value,
            amount=request.amount,
            currency=request.currency,
        )
        result = adapter.process_payment(request)
        if not result.success:
            logger.warning(
                "Payment processing failed",
                order_id=request.order_id,
                provider=request.payment_provider.value,
                reason=result.message,
            )
        return _stamp(result, request.payment_provider)

    def verify_payment(self, provider_type: ProviderType | str, transaction_id: str) -> bool:
        return self.provider(provider_type).verify_payment(transaction_id)

    def capture_payment(
        self, provider_type: ProviderType | str, transaction_id: str, currency: str, amount: int
    ) -> PaymentResult:
        adapter = self.provider(provider_type)
        logger.info(
            "Capturing payment",
            provider=ProviderType(provider_type).value,
            transaction_id=transaction_id,
            amount=amount,
        )
        result = adapter.capture_payment(transaction_id, currency, amount)
        return _stamp(result, ProviderType(provider_type))

    def refund_payment(
        self, provider_type: ProviderType | str, transaction_id: str, currency: str, amount: int
    ) -> PaymentResult:
        adapter = self.provider(provider_type)
        logger.info(
            "Refunding payment",
            provider=ProviderType(provider_type).value,
            transaction_id=transaction_id,
            amount=amount,
        )
        result = adapter.refund_payment(transaction_id, currency, amount)
        return _stamp(result, ProviderType(provider_type))

    def cancel_payment(self, provider_type: ProviderType | str, transaction_id: str) -> PaymentResult:
        adapter = self.provider(provider_type)
        logger.info("Cancelling payment", provider=ProviderType(provider_type).value, transaction_id=transaction_id)
        result = adapter.cancel_payment(transaction_id)
        return _stamp(result, ProviderType(provider_type))

    def force_approve_payment(self, provider_type: ProviderType | str, transaction_id: str, phone_number: str) -> None:
        self.provider(provider_type).force_approve_payment(transaction_id, phone_number)

    def register_webhooks(self, url: str, events: list[str]) -> dict[ProviderType, str]:
        """Register a webhook with every provider that supports one.

        A provider that fails to register is logged and skipped.
        """
        registered = {}
        for provider_type, adapter in self._providers.items():
            try:
                webhook_id = adapter.register_webhook(url, events)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Webhook registration failed", provider=provider_type.value, error=str(exc))
                continue
            if webhook_id:
                registered[provider_type] = webhook_id
        return registered
