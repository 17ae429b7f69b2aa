"""Checkout pricing: discount codes, shipping selection and currency changes."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.checkout.checkout import Checkout
from commerce.currency.currency import Currency
from commerce.discount.management import find_discount_by_code
from commerce.discount.pricing import category_resolver_from_json
from commerce.domain import commerce, logger
from commerce.shipping.options import find_shipping_option


@commerce.command(part_of="Checkout")
class ApplyDiscountCode:
    checkout_id = Identifier(required=True)
    discount_code = String(required=True, max_length=100)
    product_categories = Text()  # JSON: {product_id: [category_id, ...]} from the catalog


@commerce.command(part_of="Checkout")
class RemoveDiscountCode:
    checkout_id = Identifier(required=True)


@commerce.command(part_of="Checkout")
class SelectShippingMethod:
    checkout_id = Identifier(required=True)
    shipping_rate_id = Identifier()  # Omit to clear the selection


@commerce.command(part_of="Checkout")
class ChangeCheckoutCurrency:
    checkout_id = Identifier(required=True)
    currency = String(required=True, max_length=3)


def _load_currency(code):
    try:
        return current_domain.repository_for(Currency).get(code.upper())
    except ObjectNotFoundError:
        raise ValidationError({"currency": [f"Currency {code.upper()} is not supported"]}) from None


@commerce.command_handler(part_of=Checkout)
class CheckoutPricingHandler:
    @handle(ApplyDiscountCode)
    def apply_discount_code(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)

        discount = find_discount_by_code(command.discount_code)
        if discount is None:
            raise ValidationError({"discount_code": ["Invalid discount code"]})
        if not discount.is_valid():
            raise ValidationError({"discount_code": ["discount is invalid or inactive"]})

        categories = category_resolver_from_json(command.product_categories)
        if not discount.is_applicable_to_order(checkout.priced_view(), categories):
            raise ValidationError({"discount_code": ["discount is not applicable to this checkout"]})

        checkout.apply_discount(discount, categories)
        repo.add(checkout)

        logger.info(
            "Discount applied to checkout",
            checkout_id=str(checkout.id),
            discount_code=discount.code,
            discount_amount=checkout.discount_amount,
        )

    @handle(RemoveDiscountCode)
    def remove_discount_code(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.apply_discount(None)
        repo.add(checkout)

    @handle(SelectShippingMethod)
    def select_shipping_method(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)

        if not command.shipping_rate_id:
            checkout.set_shipping_method(None)
            repo.add(checkout)
            return

        if not checkout.has_shipping_info() or not checkout.shipping_address.country:
            raise ValidationError({"shipping_address": ["shipping address is required to select shipping"]})

        option = find_shipping_option(
            command.shipping_rate_id,
            checkout.shipping_address.country,
            checkout.total_amount,
            checkout.total_weight,
        )
        if option is None:
            raise ValidationError({"shipping_rate_id": ["shipping method not available for this checkout"]})

        checkout.set_shipping_method(option)
        repo.add(checkout)

    @handle(ChangeCheckoutCurrency)
    def change_checkout_currency(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)

        to_currency = _load_currency(command.currency)
        if not to_currency.is_enabled:
            raise ValidationError({"currency": [f"Currency {to_currency.code} is not enabled"]})
        from_currency = _load_currency(checkout.currency)

        checkout.set_currency(to_currency.code, from_currency, to_currency)
        repo.add(checkout)
