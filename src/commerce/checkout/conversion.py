"""Checkout completion: converts a ready checkout into an Order.

Completion re-prices any applied discount against the final basket (the
discount may have expired or the basket changed since it was applied),
creates and numbers the order, marks the checkout completed and records
one redemption of the discount.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from commerce.checkout.checkout import Checkout
from commerce.discount.discount import Discount
from commerce.discount.pricing import category_resolver_from_json
from commerce.domain import commerce, logger
from commerce.order.creation import place_order


@commerce.command(part_of="Checkout")
class CompleteCheckout:
    checkout_id = Identifier(required=True)
    product_categories = Text()  # JSON: {product_id: [category_id, ...]} for category discounts


def _assert_ready_for_order(checkout):
    errors = {}
    if not checkout.items:
        errors["items"] = ["checkout has no items"]
    if checkout.shipping_address is None or not checkout.shipping_address.is_deliverable():
        errors["shipping_address"] = ["shipping address is required"]
    if checkout.billing_address is None or not checkout.billing_address.is_deliverable():
        errors["billing_address"] = ["billing address is required"]
    details = checkout.customer_details
    if details is None or not details.email or not details.full_name:
        errors["customer_details"] = ["customer email and full name are required"]
    if checkout.shipping_option is None:
        errors["shipping_option"] = ["shipping method is required"]
    if errors:
        raise ValidationError(errors)


def _reprice_discount(checkout, categories):
    """Recompute the applied discount; returns the Discount to redeem, or None."""
    if checkout.applied_discount is None:
        return None

    repo = current_domain.repository_for(Discount)
    try:
        discount = repo.get(checkout.applied_discount.discount_id)
    except ObjectNotFoundError:
        discount = None

    if discount is None or not discount.is_applicable_to_order(checkout.priced_view(), categories):
        logger.warning(
            "Discount dropped at checkout completion",
            checkout_id=str(checkout.id),
            discount_code=checkout.applied_discount.discount_code,
        )
        checkout.apply_discount(None)
        return None

    checkout.apply_discount(discount, categories)
    return discount


@commerce.command_handler(part_of=Checkout)
class CompleteCheckoutHandler:
    @handle(CompleteCheckout)
    def complete_checkout(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)

        if checkout.is_deleted():
            raise ValidationError({"deleted_at": ["checkout has been deleted"]})
        if checkout.is_expired():
            raise ValidationError({"expires_at": ["checkout has expired"]})
        _assert_ready_for_order(checkout)

        discount = _reprice_discount(checkout, category_resolver_from_json(command.product_categories))

        order = checkout.to_order()
        place_order(order)

        checkout.mark_as_completed(str(order.id))
        repo.add(checkout)

        if discount is not None:
            discount.increment_usage()
            current_domain.repository_for(Discount).add(discount)

        logger.info(
            "Checkout completed",
            checkout_id=str(checkout.id),
            order_id=str(order.id),
            order_number=order.order_number,
            final_amount=order.final_amount,
        )
        return str(order.id)
