"""PaymentTransaction aggregate: one entry in the payment ledger.

Every provider interaction (authorization, capture, refund, cancellation),
successful or not, is recorded as its own transaction. ``amount`` is what
the event was for and never changes. The running balance fields
(``authorized_amount``, ``captured_amount``, ``refunded_amount``) carry
``amount`` in the field matching the transaction type only while the
transaction is successful, so summing them across an order's transactions
gives what is currently authorized, captured and refunded.
"""

import json
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from commerce.domain import commerce
from commerce.payment.events import PaymentTransactionRecorded, PaymentTransactionStatusChanged
from commerce.shared.clock import utc_now


class TransactionType(Enum):
    AUTHORIZE = "authorize"
    CAPTURE = "capture"
    REFUND = "refund"
    CANCEL = "cancel"


class TransactionStatus(Enum):
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


# Transaction type -> running balance field it feeds
_BALANCE_FIELDS = {
    TransactionType.AUTHORIZE: "authorized_amount",
    TransactionType.CAPTURE: "captured_amount",
    TransactionType.REFUND: "refunded_amount",
}

_DISPLAY_CODES = {
    TransactionType.AUTHORIZE: "AUTH",
    TransactionType.CAPTURE: "CAPT",
    TransactionType.REFUND: "REFUND",
    TransactionType.CANCEL: "CANCEL",
}

_TYPE_DISPLAY_NAMES = {
    TransactionType.AUTHORIZE: "Authorization",
    TransactionType.CAPTURE: "Capture",
    TransactionType.REFUND: "Refund",
    TransactionType.CANCEL: "Cancellation",
}


@commerce.aggregate
class PaymentTransaction:
    transaction_id = String(max_length=50)  # Display id, assigned when persisted
    order_id = Identifier(required=True)
    external_id = String(max_length=255)
    idempotency_key = String(max_length=255)
    transaction_type = String(required=True, choices=TransactionType)
    status = String(required=True, choices=TransactionStatus)
    amount = Integer(required=True)
    currency = String(required=True, max_length=3)
    provider = String(required=True, max_length=50)
    authorized_amount = Integer(default=0)
    captured_amount = Integer(default=0)
    refunded_amount = Integer(default=0)
    raw_response = Text()
    metadata = Text()  # JSON object of string keys and values
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def running_balances_follow_status(self):
        for transaction_type, field in _BALANCE_FIELDS.items():
            expected = self._expected_balance(transaction_type)
            if getattr(self, field) != expected:
                raise ValidationError({field: ["Running balance does not match transaction status"]})

    def _expected_balance(self, transaction_type):
        if self.status == TransactionStatus.SUCCESSFUL.value and self.transaction_type == transaction_type.value:
            return self.amount
        return 0

    def _sync_running_balances(self):
        for transaction_type, field in _BALANCE_FIELDS.items():
            setattr(self, field, self._expected_balance(transaction_type))

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id,
        transaction_type,
        status,
        amount,
        currency,
        provider,
        external_id=None,
        idempotency_key=None,
    ):
        if not order_id:
            raise ValidationError({"order_id": ["order ID cannot be empty"]})
        if not transaction_type:
            raise ValidationError({"transaction_type": ["transaction type cannot be empty"]})
        if transaction_type not in {t.value for t in TransactionType}:
            raise ValidationError({"transaction_type": [f"invalid transaction type: {transaction_type}"]})
        if not status:
            raise ValidationError({"status": ["status cannot be empty"]})
        if status not in {s.value for s in TransactionStatus}:
            raise ValidationError({"status": [f"invalid transaction status: {status}"]})
        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["amount must be greater than zero"]})
        if not currency:
            raise ValidationError({"currency": ["currency cannot be empty"]})
        if not provider:
            raise ValidationError({"provider": ["provider cannot be empty"]})

        successful = status == TransactionStatus.SUCCESSFUL.value
        balance_field = _BALANCE_FIELDS.get(TransactionType(transaction_type))
        balances = {field: 0 for field in _BALANCE_FIELDS.values()}
        if successful and balance_field:
            balances[balance_field] = amount

        now = utc_now()
        transaction = cls(
            order_id=order_id,
            external_id=external_id or None,
            idempotency_key=idempotency_key or None,
            transaction_type=transaction_type,
            status=status,
            amount=amount,
            currency=currency.upper(),
            provider=provider,
            metadata=json.dumps({}),
            created_at=now,
            updated_at=now,
            **balances,
        )
        transaction.raise_(
            PaymentTransactionRecorded(
                payment_transaction_id=str(transaction.id),
                order_id=str(order_id),
                transaction_type=transaction_type,
                status=status,
                amount=amount,
                currency=transaction.currency,
                provider=provider,
                external_id=external_id or None,
            )
        )
        return transaction

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def update_status(self, status):
        """Move to ``status``, keeping the running balance fields in step."""
        if status not in {s.value for s in TransactionStatus}:
            raise ValidationError({"status": [f"invalid transaction status: {status}"]})
        target = TransactionStatus(status)
        if target.value == self.status:
            return

        previous = self.status
        with atomic_change(self):
            self.status = target.value
            self._sync_running_balances()
            self.updated_at = utc_now()

        self.raise_(
            PaymentTransactionStatusChanged(
                payment_transaction_id=str(self.id),
                order_id=str(self.order_id),
                transaction_type=self.transaction_type,
                previous_status=previous,
                new_status=target.value,
                amount=self.amount,
            )
        )

    def is_successful(self):
        return self.status == TransactionStatus.SUCCESSFUL.value

    # -------------------------------------------------------------------
    # Provider details
    # -------------------------------------------------------------------
    def add_metadata(self, key, value):
        data = json.loads(self.metadata) if self.metadata else {}
        data[key] = value
        self.metadata = json.dumps(data)
        self.updated_at = utc_now()

    def get_metadata(self):
        return json.loads(self.metadata) if self.metadata else {}

    def set_external_id(self, external_id):
        self.external_id = external_id
        self.updated_at = utc_now()

    def set_raw_response(self, raw_response):
        self.raw_response = raw_response
        self.updated_at = utc_now()

    # -------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------
    def assign_transaction_id(self, sequence, year=None):
        """Assign the ``TXN-CAPT-2026-001`` style display id."""
        code = _DISPLAY_CODES[TransactionType(self.transaction_type)]
        year = year or (self.created_at or utc_now()).year
        self.transaction_id = f"TXN-{code}-{year}-{sequence:03d}"

    def display_name(self):
        return self.transaction_id or self.external_id or str(self.id)

    def type_display_name(self):
        return _TYPE_DISPLAY_NAMES[TransactionType(self.transaction_type)]
