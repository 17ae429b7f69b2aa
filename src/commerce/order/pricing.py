"""Order pricing adjustments: discount and shipping commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.discount.management import find_discount_by_code
from commerce.discount.pricing import category_resolver_from_json
from commerce.domain import commerce
from commerce.order.order import Order
from commerce.shipping.options import find_shipping_option


@commerce.command(part_of="Order")
class ApplyOrderDiscount:
    order_id = Identifier(required=True)
    discount_code = String(required=True, max_length=100)
    product_categories = Text()  # JSON: {product_id: [category_id, ...]} from the catalog


@commerce.command(part_of="Order")
class RemoveOrderDiscount:
    order_id = Identifier(required=True)


@commerce.command(part_of="Order")
class SetOrderShippingMethod:
    order_id = Identifier(required=True)
    shipping_rate_id = Identifier(required=True)


@commerce.command_handler(part_of=Order)
class OrderPricingHandler:
    @handle(ApplyOrderDiscount)
    def apply_order_discount(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        discount = find_discount_by_code(command.discount_code)
        if discount is None:
            raise ValidationError({"discount_code": ["Invalid discount code"]})

        order.apply_discount(discount, category_resolver_from_json(command.product_categories))
        repo.add(order)

    @handle(RemoveOrderDiscount)
    def remove_order_discount(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.remove_discount()
        repo.add(order)

    @handle(SetOrderShippingMethod)
    def set_order_shipping_method(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.shipping_address is None or not order.shipping_address.country:
            raise ValidationError({"shipping_address": ["shipping address is required to select shipping"]})

        option = find_shipping_option(
            command.shipping_rate_id,
            order.shipping_address.country,
            order.total_amount,
            order.calculate_total_weight(),
        )
        if option is None:
            raise ValidationError({"shipping_rate_id": ["shipping method not available for this order"]})

        order.set_shipping_method(option)
        repo.add(order)
