"""Repository for the payment ledger, with the queries reconciliation needs."""

from commerce.domain import commerce
from commerce.payment.transaction import PaymentTransaction, TransactionStatus


@commerce.repository(part_of=PaymentTransaction)
class PaymentTransactionRepository:
    def find_by_idempotency_key(self, idempotency_key):
        if not idempotency_key:
            return None
        matches = self._dao.query.filter(idempotency_key=idempotency_key).all().items
        return matches[0] if matches else None

    def find_by_external_id(self, order_id, transaction_type, external_id):
        if not external_id:
            return None
        matches = (
            self._dao.query.filter(
                order_id=str(order_id),
                transaction_type=transaction_type,
                external_id=external_id,
            )
            .all()
            .items
        )
        return matches[0] if matches else None

    def find_for_order(self, order_id):
        """All transactions for an order, oldest first."""
        items = self._dao.query.filter(order_id=str(order_id)).limit(None).all().items
        return sorted(items, key=lambda t: t.created_at)

    def find_for_order_and_type(self, order_id, transaction_type):
        return [t for t in self.find_for_order(order_id) if t.transaction_type == transaction_type]

    def find_latest(self, order_id, transaction_type, status=None):
        matches = [
            t for t in self.find_for_order_and_type(order_id, transaction_type) if status is None or t.status == status
        ]
        return matches[-1] if matches else None

    def count_successful(self, order_id, transaction_type):
        return sum(
            1
            for t in self.find_for_order_and_type(order_id, transaction_type)
            if t.status == TransactionStatus.SUCCESSFUL.value
        )

    def authorized_total(self, order_id):
        return sum(t.authorized_amount or 0 for t in self.find_for_order(order_id))

    def captured_total(self, order_id):
        return sum(t.captured_amount or 0 for t in self.find_for_order(order_id))

    def refunded_total(self, order_id):
        return sum(t.refunded_amount or 0 for t in self.find_for_order(order_id))
