"""Ledger ingestion: recording payment events idempotently.

Providers deliver events at least once. An event is a duplicate when its
idempotency key matches a recorded transaction, or (without a key) when the
order, type and external id match. Duplicates with the same amount are
absorbed; a duplicate with a different amount is a conflict.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.payment.transaction import PaymentTransaction, TransactionStatus
from commerce.sequence.sequence import next_sequence_value

# Status moves a redelivered event may apply; anything else is a stale redelivery
_FORWARD_MOVES = {
    TransactionStatus.PENDING.value: {TransactionStatus.SUCCESSFUL.value, TransactionStatus.FAILED.value},
    TransactionStatus.SUCCESSFUL.value: {TransactionStatus.FAILED.value},
    TransactionStatus.FAILED.value: {TransactionStatus.SUCCESSFUL.value},
}


@commerce.command(part_of="PaymentTransaction")
class RecordPaymentTransaction:
    order_id = Identifier(required=True)
    transaction_type = String(required=True, max_length=20)
    status = String(required=True, max_length=20)
    amount = Integer(required=True)
    currency = String(required=True, max_length=3)
    provider = String(required=True, max_length=50)
    external_id = String(max_length=255)
    idempotency_key = String(max_length=255)
    metadata = Text()  # JSON object
    raw_response = Text()


@commerce.command(part_of="PaymentTransaction")
class UpdateTransactionStatus:
    payment_transaction_id = Identifier(required=True)
    status = String(required=True, max_length=20)


def record_transaction(
    order_id,
    transaction_type,
    status,
    amount,
    currency,
    provider,
    external_id=None,
    idempotency_key=None,
    metadata=None,
    raw_response=None,
):
    """Record a payment event, absorbing redeliveries.

    Returns ``(transaction, changed)`` where ``changed`` is False when the
    event had already been applied in full.
    """
    repo = current_domain.repository_for(PaymentTransaction)

    if idempotency_key:
        existing = repo.find_by_idempotency_key(idempotency_key)
    else:
        existing = repo.find_by_external_id(order_id, transaction_type, external_id)
    if existing is not None:
        return existing, _apply_redelivery(repo, existing, order_id, transaction_type, status, amount)

    transaction = PaymentTransaction.create(
        order_id=order_id,
        transaction_type=transaction_type,
        status=status,
        amount=amount,
        currency=currency,
        provider=provider,
        external_id=external_id,
        idempotency_key=idempotency_key,
    )
    for key, value in (metadata or {}).items():
        transaction.add_metadata(key, value)
    if raw_response:
        transaction.set_raw_response(raw_response)

    year = transaction.created_at.year
    transaction.assign_transaction_id(next_sequence_value(f"txn-{transaction_type}-{year}"), year)
    repo.add(transaction)

    logger.info(
        "Payment transaction recorded",
        payment_transaction_id=str(transaction.id),
        transaction_id=transaction.transaction_id,
        order_id=str(order_id),
        transaction_type=transaction_type,
        status=status,
        amount=amount,
        provider=provider,
    )
    return transaction, True


def _apply_redelivery(repo, existing, order_id, transaction_type, status, amount):
    if (
        existing.amount != amount
        or str(existing.order_id) != str(order_id)
        or existing.transaction_type != transaction_type
    ):
        logger.error(
            "Conflicting payment event",
            payment_transaction_id=str(existing.id),
            idempotency_key=existing.idempotency_key,
            recorded_amount=existing.amount,
            received_amount=amount,
        )
        raise ValidationError(
            {"idempotency_key": [f"Payment event conflicts with recorded transaction {existing.display_name()}"]}
        )

    if status in _FORWARD_MOVES.get(existing.status, set()):
        existing.update_status(status)
        repo.add(existing)
        return True

    logger.info(
        "Duplicate payment event ignored",
        payment_transaction_id=str(existing.id),
        status=existing.status,
        received_status=status,
    )
    return False


@commerce.command_handler(part_of=PaymentTransaction)
class PaymentLedgerHandler:
    @handle(RecordPaymentTransaction)
    def record_payment_transaction(self, command):
        transaction, _ = record_transaction(
            order_id=command.order_id,
            transaction_type=command.transaction_type,
            status=command.status,
            amount=command.amount,
            currency=command.currency,
            provider=command.provider,
            external_id=command.external_id,
            idempotency_key=command.idempotency_key,
            metadata=json.loads(command.metadata) if command.metadata else None,
            raw_response=command.raw_response,
        )
        return str(transaction.id)

    @handle(UpdateTransactionStatus)
    def update_transaction_status(self, command):
        repo = current_domain.repository_for(PaymentTransaction)
        transaction = repo.get(command.payment_transaction_id)
        transaction.update_status(command.status)
        repo.add(transaction)
