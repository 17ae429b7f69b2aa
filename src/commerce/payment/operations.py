"""Payment operations: drive provider calls and record their outcome.

Each operation checks the order's state, calls the provider through the
payment service, writes a ledger entry for the outcome (failures included,
with the provider's reason in metadata), and then moves the order's payment
status through commands. Failed captures and refunds raise after their
ledger entry is recorded.
"""

import json
from uuid import uuid4

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from commerce.domain import logger
from commerce.gateway.port import (
    PaymentMethod,
    PaymentProviderError,
    PaymentRequest,
    PaymentResult,
    ProviderType,
)
from commerce.order.order import Order, OrderStatus, PaymentStatus
from commerce.order.status import SetOrderPaymentDetails, UpdateOrderPaymentStatus
from commerce.payment.recording import RecordPaymentTransaction
from commerce.payment.transaction import PaymentTransaction, TransactionStatus, TransactionType


class PaymentOperations:
    """Application service for provider-driven payment operations."""

    def __init__(self, service):
        self.service = service

    def initiate_payment(
        self,
        order_id,
        payment_method,
        provider,
        card_details=None,
        phone_number=None,
        customer_email=None,
    ):
        order = current_domain.repository_for(Order).get(order_id)
        if order.payment_status != PaymentStatus.PENDING.value:
            raise ValidationError({"payment_status": [f"payment is already {order.payment_status}"]})

        self.service.provider(provider)
        provider_type = ProviderType(provider)
        method = PaymentMethod(payment_method)

        request = PaymentRequest(
            order_id=str(order.id),
            order_number=order.order_number,
            amount=order.final_amount,
            currency=order.currency,
            payment_method=method,
            payment_provider=provider_type,
            card_details=card_details,
            phone_number=phone_number,
            customer_email=customer_email or (order.customer_details.email if order.customer_details else None),
        )
        result = self._call(provider_type, lambda: self.service.process_payment(request))

        if not result.success:
            status = TransactionStatus.FAILED
        elif result.requires_action:
            status = TransactionStatus.PENDING
        else:
            status = TransactionStatus.SUCCESSFUL

        self._record(order, TransactionType.AUTHORIZE, status, order.final_amount, provider_type, result)
        current_domain.process(
            SetOrderPaymentDetails(
                order_id=str(order.id),
                payment_id=result.transaction_id,
                payment_provider=provider_type.value,
                payment_method=method.value,
                action_url=result.action_url,
            ),
            asynchronous=False,
        )

        if status == TransactionStatus.SUCCESSFUL:
            self._move_payment(order, PaymentStatus.AUTHORIZED)
        elif status == TransactionStatus.FAILED:
            self._move_payment(order, PaymentStatus.FAILED)
        else:
            logger.info("Payment awaiting customer action", order_id=str(order.id), action_url=result.action_url)
        return result

    def capture_payment(self, order_id, amount=None):
        order = current_domain.repository_for(Order).get(order_id)
        if order.payment_status != PaymentStatus.AUTHORIZED.value:
            raise ValidationError({"payment_status": ["payment must be authorized before it can be captured"]})
        if order.status != OrderStatus.SHIPPED.value:
            raise ValidationError({"status": ["order must be shipped before payment can be captured"]})

        amount = order.final_amount if amount is None else amount
        if amount <= 0 or amount > order.final_amount:
            raise ValidationError({"amount": [f"capture amount must be between 1 and {order.final_amount}"]})
        self._require_payment_id(order)

        provider_type = ProviderType(order.payment_provider)
        result = self._call(
            provider_type,
            lambda: self.service.capture_payment(provider_type, order.payment_id, order.currency, amount),
        )
        if not result.success:
            self._record(order, TransactionType.CAPTURE, TransactionStatus.FAILED, amount, provider_type, result)
            raise ValidationError({"payment": [f"capture failed: {result.message}"]})

        self._record(order, TransactionType.CAPTURE, TransactionStatus.SUCCESSFUL, amount, provider_type, result)
        self._move_payment(order, PaymentStatus.CAPTURED)
        return result

    def cancel_payment(self, order_id):
        order = current_domain.repository_for(Order).get(order_id)
        if order.payment_status != PaymentStatus.AUTHORIZED.value:
            raise ValidationError({"payment_status": ["only authorized payments can be cancelled"]})
        self._require_payment_id(order)

        provider_type = ProviderType(order.payment_provider)
        result = self._call(provider_type, lambda: self.service.cancel_payment(provider_type, order.payment_id))
        amount = current_domain.repository_for(PaymentTransaction).authorized_total(order.id) or order.final_amount
        if not result.success:
            self._record(order, TransactionType.CANCEL, TransactionStatus.FAILED, amount, provider_type, result)
            raise ValidationError({"payment": [f"cancellation failed: {result.message}"]})

        self._record(order, TransactionType.CANCEL, TransactionStatus.SUCCESSFUL, amount, provider_type, result)
        self._move_payment(order, PaymentStatus.CANCELLED)
        return result

    def refund_payment(self, order_id, amount=None):
        order = current_domain.repository_for(Order).get(order_id)
        if order.payment_status != PaymentStatus.CAPTURED.value:
            raise ValidationError({"payment_status": ["only captured payments can be refunded"]})
        self._require_payment_id(order)

        ledger = current_domain.repository_for(PaymentTransaction)
        refundable = ledger.captured_total(order.id) - ledger.refunded_total(order.id)
        amount = refundable if amount is None else amount
        if amount <= 0 or amount > refundable:
            raise ValidationError({"amount": [f"refund amount must be between 1 and {refundable}"]})

        provider_type = ProviderType(order.payment_provider)
        result = self._call(
            provider_type,
            lambda: self.service.refund_payment(provider_type, order.payment_id, order.currency, amount),
        )
        if not result.success:
            self._record(order, TransactionType.REFUND, TransactionStatus.FAILED, amount, provider_type, result)
            raise ValidationError({"payment": [f"refund failed: {result.message}"]})

        self._record(order, TransactionType.REFUND, TransactionStatus.SUCCESSFUL, amount, provider_type, result)
        if amount == refundable:
            self._move_payment(order, PaymentStatus.REFUNDED)
        else:
            logger.info(
                "Partial refund recorded",
                order_id=str(order.id),
                refunded=amount,
                remaining=refundable - amount,
            )
        return result

    def force_approve_payment(self, order_id, phone_number):
        """Approve a payment awaiting customer action (test environments only)."""
        order = current_domain.repository_for(Order).get(order_id)
        self._require_payment_id(order)
        self.service.force_approve_payment(order.payment_provider, order.payment_id, phone_number)
        logger.info("Payment force-approved", order_id=str(order.id), provider=order.payment_provider)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _call(provider_type, operation):
        try:
            return operation()
        except PaymentProviderError as exc:
            return PaymentResult(success=False, message=str(exc))

    @staticmethod
    def _require_payment_id(order):
        if not order.payment_id:
            raise ValidationError({"payment_id": ["order has no payment to operate on"]})

    @staticmethod
    def _record(order, transaction_type, status, amount, provider_type, result):
        metadata = {"message": result.message} if result.message else {}
        if status == TransactionStatus.FAILED:
            metadata["error"] = result.message or "unknown error"
        # One ledger entry per attempt
        idempotency_key = f"{order.id}:{transaction_type.value}:{uuid4().hex}"
        return current_domain.process(
            RecordPaymentTransaction(
                order_id=str(order.id),
                transaction_type=transaction_type.value,
                status=status.value,
                amount=amount,
                currency=order.currency,
                provider=provider_type.value,
                external_id=result.transaction_id,
                idempotency_key=idempotency_key,
                metadata=json.dumps(metadata),
            ),
            asynchronous=False,
        )

    @staticmethod
    def _move_payment(order, payment_status):
        current_domain.process(
            UpdateOrderPaymentStatus(order_id=str(order.id), payment_status=payment_status.value),
            asynchronous=False,
        )
