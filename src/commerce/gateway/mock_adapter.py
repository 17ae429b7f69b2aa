"""Configurable mock payment provider for development and testing.

Simulates a provider without any external calls. It can be configured at
runtime to succeed, fail, or require a customer action (redirect), and it
records every call it receives.
"""

from uuid import uuid4

from commerce.gateway.port import (
    PaymentMethod,
    PaymentProvider,
    PaymentProviderError,
    PaymentRequest,
    PaymentResult,
    ProviderInfo,
    ProviderType,
)


class MockPaymentProvider(PaymentProvider):
    """Configurable mock payment provider."""

    SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "NOK", "DKK")

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.requires_action: bool = False
        self.calls: list[dict] = []
        self.webhooks: dict[str, str] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        requires_action: bool = False,
    ) -> None:
        """Configure provider behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.requires_action = requires_action

    def info(self) -> ProviderInfo:
        return ProviderInfo(
            type=ProviderType.MOCK,
            name="Test Payment",
            description="Test payment provider for development",
            methods=(PaymentMethod.CREDIT_CARD,),
            supported_currencies=self.SUPPORTED_CURRENCIES,
        )

    def process_payment(self, request: PaymentRequest) -> PaymentResult:
        self.calls.append(
            {
                "method": "process_payment",
                "order_id": request.order_id,
                "amount": request.amount,
                "currency": request.currency,
                "payment_method": request.payment_method.value,
            }
        )

        if request.payment_method != PaymentMethod.CREDIT_CARD:
            return PaymentResult(
                success=False,
                message=f"unsupported payment method: {request.payment_method.value}",
            )
        if request.card_details is None:
            raise PaymentProviderError("card details are required for credit card payments")

        if not self.should_succeed:
            return PaymentResult(success=False, message=self.failure_reason)

        transaction_id = f"mock_txn_{uuid4().hex[:12]}"
        if self.requires_action:
            return PaymentResult(
                success=True,
                transaction_id=transaction_id,
                message="Customer action required",
                requires_action=True,
                action_url=f"https://payments.example.test/authorize/{transaction_id}",
            )
        return PaymentResult(success=True, transaction_id=transaction_id, message="Payment authorized")

    def verify_payment(self, transaction_id: str) -> bool:
        self._require_transaction_id(transaction_id)
        self.calls.append({"method": "verify_payment", "transaction_id": transaction_id})
        return self.should_succeed

    def capture_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        self._require_transaction_id(transaction_id)
        if amount <= 0:
            raise PaymentProviderError("capture amount must be greater than zero")
        self.calls.append(
            {"method": "capture_payment", "transaction_id": transaction_id, "currency": currency, "amount": amount}
        )

        if not self.should_succeed:
            return PaymentResult(success=False, transaction_id=transaction_id, message=self.failure_reason)
        return PaymentResult(success=True, transaction_id=transaction_id, message="Payment captured")

    def refund_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        self._require_transaction_id(transaction_id)
        if amount <= 0:
            raise PaymentProviderError("refund amount must be greater than zero")
        self.calls.append(
            {"method": "refund_payment", "transaction_id": transaction_id, "currency": currency, "amount": amount}
        )

        if not self.should_succeed:
            return PaymentResult(success=False, transaction_id=transaction_id, message=self.failure_reason)
        return PaymentResult(
            success=True,
            transaction_id=f"mock_ref_{uuid4().hex[:12]}",
            message="Payment refunded",
        )

    def cancel_payment(self, transaction_id: str) -> PaymentResult:
        self._require_transaction_id(transaction_id)
        self.calls.append({"method": "cancel_payment", "transaction_id": transaction_id})

        if not self.should_succeed:
            return PaymentResult(success=False, transaction_id=transaction_id, message=self.failure_reason)
        return PaymentResult(success=True, transaction_id=transaction_id, message="Payment cancelled")

    def force_approve_payment(self, transaction_id: str, phone_number: str) -> None:
        self._require_transaction_id(transaction_id)
        self.calls.append(
            {"method": "force_approve_payment", "transaction_id": transaction_id, "phone_number": phone_number}
        )

    def register_webhook(self, url: str, events: list[str]) -> str | None:
        webhook_id = f"mock_wh_{uuid4().hex[:8]}"
        self.webhooks[webhook_id] = url
        return webhook_id

    def delete_webhook(self, webhook_id: str) -> None:
        self.webhooks.pop(webhook_id, None)

    @staticmethod
    def _require_transaction_id(transaction_id: str) -> None:
        if not transaction_id:
            raise PaymentProviderError("transaction ID is required")
