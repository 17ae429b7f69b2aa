"""MobilePay (Vipps ePayment) provider adapter (production stub).

Placeholder for the ePayment API integration. Payments are wallet based:
the customer approves them in the app after being redirected, and the
outcome arrives by webhook.
"""

from commerce.config import MobilePaySettings
from commerce.gateway.port import (
    PaymentMethod,
    PaymentProvider,
    PaymentProviderError,
    PaymentRequest,
    PaymentResult,
    ProviderInfo,
    ProviderType,
)


class MobilePayPaymentProvider(PaymentProvider):
    """Production MobilePay adapter. Not yet implemented."""

    SUPPORTED_CURRENCIES = ("DKK", "NOK", "EUR")

    def __init__(self, settings: MobilePaySettings) -> None:
        self.settings = settings

    def info(self) -> ProviderInfo:
        return ProviderInfo(
            type=ProviderType.MOBILEPAY,
            name="MobilePay",
            description="Pay with the MobilePay app",
            methods=(PaymentMethod.WALLET,),
            enabled=self.settings.enabled,
            supported_currencies=self.SUPPORTED_CURRENCIES,
        )

    def process_payment(self, request: PaymentRequest) -> PaymentResult:
        raise PaymentProviderError(
            "MobilePayPaymentProvider.process_payment() is not yet implemented. Create an ePayment here."
        )

    def verify_payment(self, transaction_id: str) -> bool:
        raise PaymentProviderError("MobilePayPaymentProvider.verify_payment() is not yet implemented.")

    def capture_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        raise PaymentProviderError("MobilePayPaymentProvider.capture_payment() is not yet implemented.")

    def refund_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        raise PaymentProviderError("MobilePayPaymentProvider.refund_payment() is not yet implemented.")

    def cancel_payment(self, transaction_id: str) -> PaymentResult:
        raise PaymentProviderError("MobilePayPaymentProvider.cancel_payment() is not yet implemented.")

    def force_approve_payment(self, transaction_id: str, phone_number: str) -> None:
        raise PaymentProviderError(
            "MobilePayPaymentProvider.force_approve_payment() is not yet implemented. "
            "Call the test-environment approve endpoint here."
        )
