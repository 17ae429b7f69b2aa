"""Checkout management: session lookup, addresses, customer details and expiry."""

import json
from datetime import timedelta

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.checkout.checkout import Checkout, CheckoutStatus
from commerce.config import load_settings
from commerce.domain import commerce, logger
from commerce.shared.address import Address, CustomerDetails


@commerce.command(part_of="Checkout")
class StartCheckout:
    session_id = String(required=True, max_length=255)
    user_id = Identifier()
    currency = String(max_length=3)  # Defaults to the configured store currency


@commerce.command(part_of="Checkout")
class SetShippingAddress:
    checkout_id = Identifier(required=True)
    address = Text(required=True)  # JSON: {street1, street2, city, state, postal_code, country}


@commerce.command(part_of="Checkout")
class SetBillingAddress:
    checkout_id = Identifier(required=True)
    address = Text(required=True)  # JSON


@commerce.command(part_of="Checkout")
class SetCustomerDetails:
    checkout_id = Identifier(required=True)
    email = String(max_length=254)
    phone = String(max_length=50)
    full_name = String(max_length=255)


@commerce.command(part_of="Checkout")
class SetCheckoutPaymentProvider:
    checkout_id = Identifier(required=True)
    payment_provider = String(required=True, max_length=50)


@commerce.command(part_of="Checkout")
class ExtendCheckoutExpiry:
    checkout_id = Identifier(required=True)
    hours = Integer(required=True, min_value=1)


@commerce.command(part_of="Checkout")
class ClearCheckout:
    checkout_id = Identifier(required=True)


def find_active_checkout(session_id):
    """The live (active, not deleted) checkout for a session, or None."""
    matches = (
        current_domain.repository_for(Checkout)
        ._dao.query.filter(session_id=session_id, status=CheckoutStatus.ACTIVE.value, deleted_at__isnull=True)
        .all()
        .items
    )
    return matches[0] if matches else None


@commerce.command_handler(part_of=Checkout)
class ManageCheckoutHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        """Return the session's active checkout, starting a new one if needed."""
        repo = current_domain.repository_for(Checkout)

        existing = find_active_checkout(command.session_id)
        if existing is not None:
            if not existing.is_expired():
                return str(existing.id)
            existing.mark_as_expired()
            repo.add(existing)

        settings = load_settings()
        checkout = Checkout.create(
            session_id=command.session_id,
            currency=command.currency or settings.default_currency,
            user_id=command.user_id,
            ttl=timedelta(hours=settings.checkout_expiry_hours),
        )
        repo.add(checkout)

        logger.info(
            "Checkout started",
            checkout_id=str(checkout.id),
            session_id=command.session_id,
            currency=checkout.currency,
        )
        return str(checkout.id)

    @handle(SetShippingAddress)
    def set_shipping_address(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.set_shipping_address(Address(**json.loads(command.address)))
        repo.add(checkout)

    @handle(SetBillingAddress)
    def set_billing_address(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.set_billing_address(Address(**json.loads(command.address)))
        repo.add(checkout)

    @handle(SetCustomerDetails)
    def set_customer_details(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.set_customer_details(
            CustomerDetails(email=command.email, phone=command.phone, full_name=command.full_name)
        )
        repo.add(checkout)

    @handle(SetCheckoutPaymentProvider)
    def set_checkout_payment_provider(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.set_payment_provider(command.payment_provider)
        repo.add(checkout)

    @handle(ExtendCheckoutExpiry)
    def extend_checkout_expiry(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.extend_expiry(timedelta(hours=command.hours))
        repo.add(checkout)

    @handle(ClearCheckout)
    def clear_checkout(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.clear()
        repo.add(checkout)
