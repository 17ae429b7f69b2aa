"""Checkout item management: commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from commerce.checkout.checkout import Checkout
from commerce.domain import commerce


@commerce.command(part_of="Checkout")
class AddCheckoutItem:
    checkout_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)
    price = Integer(required=True)  # Unit price in cents
    weight = Float(default=0.0)
    product_name = String(max_length=255)
    variant_name = String(max_length=255)
    sku = String(max_length=100)


@commerce.command(part_of="Checkout")
class UpdateCheckoutItem:
    checkout_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)


@commerce.command(part_of="Checkout")
class RemoveCheckoutItem:
    checkout_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()


@commerce.command_handler(part_of=Checkout)
class ManageCheckoutItemsHandler:
    @handle(AddCheckoutItem)
    def add_checkout_item(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.add_item(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
            price=command.price,
            weight=command.weight,
            product_name=command.product_name,
            variant_name=command.variant_name,
            sku=command.sku,
        )
        repo.add(checkout)

    @handle(UpdateCheckoutItem)
    def update_checkout_item(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.update_item(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
        )
        repo.add(checkout)

    @handle(RemoveCheckoutItem)
    def remove_checkout_item(self, command):
        repo = current_domain.repository_for(Checkout)
        checkout = repo.get(command.checkout_id)
        checkout.remove_item(product_id=command.product_id, variant_id=command.variant_id)
        repo.add(checkout)
