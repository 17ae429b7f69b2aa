"""Payment webhook ingestion: record the provider event and move the order.

Signature verification happens at the provider integration boundary; this
handler receives an already-authenticated event. Redelivered events are
absorbed by the ledger, and order payment status moves that have already
happened are skipped rather than treated as errors.
"""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.order.order import Order, PaymentStatus
from commerce.payment.recording import record_transaction
from commerce.payment.transaction import PaymentTransaction, TransactionStatus, TransactionType


@commerce.command(part_of="PaymentTransaction")
class ProcessPaymentWebhook:
    order_id = Identifier(required=True)
    provider = String(required=True, max_length=50)
    transaction_type = String(required=True, max_length=20)
    status = String(required=True, max_length=20)
    amount = Integer(required=True)
    currency = String(required=True, max_length=3)
    external_id = String(max_length=255)
    idempotency_key = String(max_length=255)
    raw_payload = Text()  # Provider request body, kept for audit


def payment_status_for(transaction, order):
    """The order payment status a transaction implies, or None for no change."""
    transaction_type = TransactionType(transaction.transaction_type)
    status = TransactionStatus(transaction.status)

    if status == TransactionStatus.FAILED:
        return PaymentStatus.FAILED if transaction_type == TransactionType.AUTHORIZE else None
    if status != TransactionStatus.SUCCESSFUL:
        return None

    if transaction_type == TransactionType.AUTHORIZE:
        return PaymentStatus.AUTHORIZED
    if transaction_type == TransactionType.CAPTURE:
        return PaymentStatus.CAPTURED
    if transaction_type == TransactionType.CANCEL:
        return PaymentStatus.CANCELLED

    # Refunds only mark the order refunded once nothing captured remains
    others = [
        t
        for t in current_domain.repository_for(PaymentTransaction).find_for_order(order.id)
        if str(t.id) != str(transaction.id)
    ]
    captured = sum(t.captured_amount or 0 for t in others)
    authorized = sum(t.authorized_amount or 0 for t in others)
    refunded = sum(t.refunded_amount or 0 for t in others) + transaction.refunded_amount
    if refunded >= (captured or authorized or order.final_amount):
        return PaymentStatus.REFUNDED
    return None


@commerce.command_handler(part_of=PaymentTransaction)
class PaymentWebhookHandler:
    @handle(ProcessPaymentWebhook)
    def process_payment_webhook(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        transaction, changed = record_transaction(
            order_id=command.order_id,
            transaction_type=command.transaction_type,
            status=command.status,
            amount=command.amount,
            currency=command.currency,
            provider=command.provider,
            external_id=command.external_id,
            idempotency_key=command.idempotency_key,
            metadata={"source": "webhook"},
            raw_response=command.raw_payload,
        )
        if not changed:
            return str(transaction.id)

        target = payment_status_for(transaction, order)
        if target is None:
            return str(transaction.id)

        if not order.can_transition_payment_to(target.value):
            logger.info(
                "Order payment status not moved by webhook",
                order_id=str(order.id),
                payment_status=order.payment_status,
                implied_status=target.value,
            )
            return str(transaction.id)

        if not order.payment_provider:
            order.set_payment_provider(command.provider)
        if command.external_id and not order.payment_id:
            order.set_payment_id(command.external_id)
        order.update_payment_status(target.value)
        order_repo.add(order)

        logger.info(
            "Order payment status moved by webhook",
            order_id=str(order.id),
            payment_status=order.payment_status,
            status=order.status,
            payment_transaction_id=str(transaction.id),
        )
        return str(transaction.id)
