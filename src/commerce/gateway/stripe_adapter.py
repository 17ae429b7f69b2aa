"""Stripe payment provider adapter (production stub).

This is a placeholder for the real Stripe SDK integration. In production
this would use the stripe-python SDK to create and confirm PaymentIntents,
capture and cancel them, and issue refunds.
"""

from commerce.config import StripeSettings
from commerce.gateway.port import (
    PaymentMethod,
    PaymentProvider,
    PaymentProviderError,
    PaymentRequest,
    PaymentResult,
    ProviderInfo,
    ProviderType,
)


class StripePaymentProvider(PaymentProvider):
    """Production Stripe adapter. Not yet implemented."""

    def __init__(self, settings: StripeSettings) -> None:
        self.settings = settings

    def info(self) -> ProviderInfo:
        return ProviderInfo(
            type=ProviderType.STRIPE,
            name="Credit Card",
            description="Pay with Visa, Mastercard or American Express",
            methods=(PaymentMethod.CREDIT_CARD,),
            enabled=self.settings.enabled,
        )

    def process_payment(self, request: PaymentRequest) -> PaymentResult:
        raise PaymentProviderError(
            "StripePaymentProvider.process_payment() is not yet implemented. Create a PaymentIntent here."
        )

    def verify_payment(self, transaction_id: str) -> bool:
        raise PaymentProviderError("StripePaymentProvider.verify_payment() is not yet implemented.")

    def capture_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        raise PaymentProviderError("StripePaymentProvider.capture_payment() is not yet implemented.")

    def refund_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        raise PaymentProviderError("StripePaymentProvider.refund_payment() is not yet implemented.")

    def cancel_payment(self, transaction_id: str) -> PaymentResult:
        raise PaymentProviderError("StripePaymentProvider.cancel_payment() is not yet implemented.")

    def force_approve_payment(self, transaction_id: str, phone_number: str) -> None:
        raise PaymentProviderError("Stripe payments cannot be force-approved.")
