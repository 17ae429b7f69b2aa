"""Discount management: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from commerce.discount.discount import Discount
from commerce.domain import commerce, logger


@commerce.command(part_of="Discount")
class CreateDiscount:
    code = String(required=True, max_length=100)
    discount_type = String(required=True)
    method = String(required=True)
    value = Float(required=True)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    min_order_value = Integer(default=0)
    max_discount_value = Integer(default=0)
    product_ids = Text()  # JSON array of product ids
    category_ids = Text()  # JSON array of category ids
    usage_limit = Integer(default=0)


@commerce.command(part_of="Discount")
class ActivateDiscount:
    discount_id = Identifier(required=True)


@commerce.command(part_of="Discount")
class DeactivateDiscount:
    discount_id = Identifier(required=True)


def find_discount_by_code(code):
    """Return the discount with the given code (case-insensitive), or None."""
    repo = current_domain.repository_for(Discount)
    matches = repo._dao.query.filter(code=code.strip().upper()).all().items
    return matches[0] if matches else None


@commerce.command_handler(part_of=Discount)
class ManageDiscountHandler:
    @handle(CreateDiscount)
    def create_discount(self, command):
        if find_discount_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Discount code {command.code.upper()} already exists"]})

        discount = Discount.create(
            code=command.code,
            discount_type=command.discount_type,
            method=command.method,
            value=command.value,
            start_date=command.start_date,
            end_date=command.end_date,
            min_order_value=command.min_order_value,
            max_discount_value=command.max_discount_value,
            product_ids=json.loads(command.product_ids) if command.product_ids else [],
            category_ids=json.loads(command.category_ids) if command.category_ids else [],
            usage_limit=command.usage_limit,
        )
        current_domain.repository_for(Discount).add(discount)

        logger.info("Discount created", discount_id=str(discount.id), code=discount.code)
        return str(discount.id)

    @handle(ActivateDiscount)
    def activate_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)
        discount.activate()
        repo.add(discount)

    @handle(DeactivateDiscount)
    def deactivate_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)
        discount.deactivate()
        repo.add(discount)
