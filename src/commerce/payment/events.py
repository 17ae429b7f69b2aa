"""Domain events for the PaymentTransaction aggregate."""

from protean.fields import Identifier, Integer, String

from commerce.domain import commerce


@commerce.event(part_of="PaymentTransaction")
class PaymentTransactionRecorded:
    """A payment provider interaction was written to the ledger."""

    __version__ = 1

    payment_transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_type = String(required=True)
    status = String(required=True)
    amount = Integer(required=True)
    currency = String(required=True)
    provider = String(required=True)
    external_id = String()


@commerce.event(part_of="PaymentTransaction")
class PaymentTransactionStatusChanged:
    __version__ = 1

    payment_transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_type = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    amount = Integer(required=True)
