"""Discount aggregate and the discount calculation engine.

Basket discounts apply to the whole order total. Product discounts apply to
the order lines whose product is listed, or whose product belongs to a listed
category (resolved through a CategoryResolver).

Fixed values are configured in whole currency units; percentages in
percent. The computed amount is capped at ``max_discount_value`` (0 means
uncapped) and never exceeds the order total.
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, List, String

from commerce.discount.events import (
    DiscountActivated,
    DiscountCreated,
    DiscountDeactivated,
    DiscountUsed,
)
from commerce.domain import commerce
from commerce.shared.clock import as_utc, utc_now
from commerce.shared.money import apply_percentage, to_cents


class DiscountType(Enum):
    BASKET = "basket"
    PRODUCT = "product"


class DiscountMethod(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


@commerce.aggregate
class Discount:
    code = String(required=True, max_length=100, unique=True)
    discount_type = String(required=True, choices=DiscountType)
    method = String(required=True, choices=DiscountMethod)
    value = Float(required=True)
    min_order_value = Integer(default=0, min_value=0)
    max_discount_value = Integer(default=0, min_value=0)
    product_ids = List(content_type=String, default=list)
    category_ids = List(content_type=String, default=list)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    usage_limit = Integer(default=0, min_value=0)
    current_usage = Integer(default=0, min_value=0)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def value_must_be_positive(self):
        if self.value is None or self.value <= 0:
            raise ValidationError({"value": ["discount value must be greater than zero"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.method == DiscountMethod.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["percentage discount cannot exceed 100%"]})

    @invariant.post
    def product_discount_needs_targets(self):
        if self.discount_type == DiscountType.PRODUCT.value and not (self.product_ids or self.category_ids):
            raise ValidationError(
                {"product_ids": ["product discount must specify at least one product or category"]}
            )

    @invariant.post
    def end_date_not_before_start_date(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": ["end date cannot be before start date"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        method,
        value,
        start_date,
        end_date,
        min_order_value=0,
        max_discount_value=0,
        product_ids=None,
        category_ids=None,
        usage_limit=0,
    ):
        if not code or not code.strip():
            raise ValidationError({"code": ["discount code cannot be empty"]})

        now = utc_now()
        discount = cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            method=method,
            value=value,
            min_order_value=min_order_value,
            max_discount_value=max_discount_value,
            product_ids=[str(p) for p in product_ids or []],
            category_ids=[str(c) for c in category_ids or []],
            start_date=start_date,
            end_date=end_date,
            usage_limit=usage_limit,
            current_usage=0,
            active=True,
            created_at=now,
            updated_at=now,
        )
        discount.raise_(
            DiscountCreated(
                discount_id=str(discount.id),
                code=discount.code,
                discount_type=discount_type,
                method=method,
                value=value,
            )
        )
        return discount

    # -------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------
    def is_valid(self, now=None):
        """Active, inside ``[start_date, end_date)`` and under the usage limit."""
        now = now or utc_now()
        if not self.active:
            return False
        if now < as_utc(self.start_date) or now >= as_utc(self.end_date):
            return False
        return self.usage_limit == 0 or self.current_usage < self.usage_limit

    def is_applicable_to_order(self, order, categories=None, now=None):
        """Whether the discount applies to a PricedOrder."""
        if not self.is_valid(now):
            return False
        if self.min_order_value > 0 and order.total_amount < self.min_order_value:
            return False
        if self.discount_type == DiscountType.BASKET.value:
            return True
        return any(self._line_matches(line, categories) for line in order.lines)

    def _line_matches(self, line, categories):
        if line.product_id in self.product_ids:
            return True
        if not self.category_ids:
            return False
        if categories is None:
            raise ValidationError({"category_ids": ["a category resolver is required for category discounts"]})
        return bool(categories.categories_for(line.product_id) & set(self.category_ids))

    # -------------------------------------------------------------------
    # Calculation
    # -------------------------------------------------------------------
    def calculate_discount(self, order, categories=None, now=None):
        """Discount amount in cents for a PricedOrder (0 when not applicable)."""
        if not self.is_applicable_to_order(order, categories, now):
            return 0

        if self.discount_type == DiscountType.BASKET.value:
            if self.method == DiscountMethod.FIXED.value:
                amount = to_cents(self.value)
            else:
                amount = apply_percentage(order.total_amount, self.value)
        else:
            amount = 0
            for line in order.lines:
                if not self._line_matches(line, categories):
                    continue
                if self.method == DiscountMethod.FIXED.value:
                    # Once per matching line, not per unit
                    amount += min(to_cents(self.value), line.subtotal)
                else:
                    amount += apply_percentage(line.subtotal, self.value)

        if self.max_discount_value > 0:
            amount = min(amount, self.max_discount_value)
        return max(min(amount, order.total_amount), 0)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def increment_usage(self):
        self.current_usage += 1
        self.updated_at = utc_now()
        self.raise_(
            DiscountUsed(
                discount_id=str(self.id),
                code=self.code,
                current_usage=self.current_usage,
            )
        )

    def activate(self):
        if self.active:
            return
        self.active = True
        self.updated_at = utc_now()
        self.raise_(DiscountActivated(discount_id=str(self.id), code=self.code))

    def deactivate(self):
        if not self.active:
            return
        self.active = False
        self.updated_at = utc_now()
        self.raise_(DiscountDeactivated(discount_id=str(self.id), code=self.code))
