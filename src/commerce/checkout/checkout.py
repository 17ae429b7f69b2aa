"""Checkout aggregate (CQRS): the mutable pre-order cart tied to a session.

A checkout accumulates items, addresses, customer details, a shipping option
and at most one discount, and is converted into an Order on completion.
Totals are derived: every item, shipping or discount change recomputes

    final_amount = max(total_amount + shipping_cost - discount_amount, 0)

Lifecycle: active → completed | abandoned | expired. Only active checkouts
can be changed. Abandonment, expiry and cleanup are decided by the pure
predicates below and applied by a periodic sweep.
"""

from datetime import timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from commerce.checkout.events import (
    CheckoutAbandoned,
    CheckoutCompleted,
    CheckoutCurrencyChanged,
    CheckoutDiscountApplied,
    CheckoutDiscountRemoved,
    CheckoutExpired,
    CheckoutItemAdded,
    CheckoutItemRemoved,
    CheckoutItemUpdated,
    CheckoutShippingSelected,
    CheckoutStarted,
)
from commerce.discount.pricing import PricedOrder
from commerce.domain import commerce
from commerce.shared.address import Address, CustomerDetails
from commerce.shared.clock import as_utc, utc_now
from commerce.shared.snapshots import AppliedDiscount, ShippingOption

CHECKOUT_TTL = timedelta(hours=24)
ABANDON_AFTER = timedelta(minutes=15)
DELETE_EMPTY_AFTER = timedelta(hours=24)
DELETE_ABANDONED_AFTER = timedelta(days=7)


class CheckoutStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    EXPIRED = "expired"


@commerce.entity(part_of="Checkout")
class CheckoutItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(max_length=255)
    variant_name = String(max_length=255)
    sku = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=0)
    subtotal = Integer(default=0)
    weight = Float(default=0.0)

    def matches(self, product_id, variant_id=None):
        """Same product, and same variant when one is given."""
        if str(self.product_id) != str(product_id):
            return False
        return not variant_id or str(self.variant_id) == str(variant_id)


@commerce.aggregate
class Checkout:
    session_id = String(required=True, max_length=255)
    user_id = Identifier()  # None for guest checkouts
    status = String(choices=CheckoutStatus, default=CheckoutStatus.ACTIVE.value)
    items = HasMany(CheckoutItem)
    currency = String(required=True, max_length=3)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    customer_details = ValueObject(CustomerDetails)
    shipping_option = ValueObject(ShippingOption)
    applied_discount = ValueObject(AppliedDiscount)
    discount_code = String(max_length=100)
    payment_provider = String(max_length=50)
    total_amount = Integer(default=0)
    shipping_cost = Integer(default=0)
    discount_amount = Integer(default=0)
    final_amount = Integer(default=0)
    total_weight = Float(default=0.0)
    last_activity_at = DateTime()
    expires_at = DateTime()
    completed_at = DateTime()
    converted_order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()
    deleted_at = DateTime()

    @invariant.post
    def final_amount_must_match_totals(self):
        expected = max((self.total_amount or 0) + (self.shipping_cost or 0) - (self.discount_amount or 0), 0)
        if self.final_amount != expected:
            raise ValidationError({"final_amount": ["Final amount must equal total plus shipping minus discount"]})

    @invariant.post
    def completed_checkout_must_reference_order(self):
        if self.status == CheckoutStatus.COMPLETED.value and not self.converted_order_id:
            raise ValidationError({"converted_order_id": ["A completed checkout must reference its order"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, session_id, currency, user_id=None, ttl=CHECKOUT_TTL):
        if not session_id:
            raise ValidationError({"session_id": ["session ID cannot be empty"]})
        if not currency:
            raise ValidationError({"currency": ["currency cannot be empty"]})

        now = utc_now()
        checkout = cls(
            session_id=session_id,
            user_id=user_id,
            status=CheckoutStatus.ACTIVE.value,
            currency=currency.upper(),
            last_activity_at=now,
            expires_at=now + ttl,
            created_at=now,
            updated_at=now,
        )
        checkout.raise_(
            CheckoutStarted(
                checkout_id=str(checkout.id),
                session_id=session_id,
                user_id=str(user_id) if user_id else None,
                currency=checkout.currency,
                expires_at=checkout.expires_at,
            )
        )
        return checkout

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_active(self, action):
        if self.is_deleted():
            raise ValidationError({"deleted_at": [f"Cannot {action} a deleted checkout"]})
        if CheckoutStatus(self.status) != CheckoutStatus.ACTIVE:
            raise ValidationError({"status": [f"Cannot {action} a checkout that is {self.status}"]})

    def _touch(self):
        now = utc_now()
        self.last_activity_at = now
        self.updated_at = now

    def _recalculate_totals(self):
        total_amount = 0
        total_weight = 0.0
        for item in self.items:
            subtotal = item.price * item.quantity
            if item.subtotal != subtotal:
                item.subtotal = subtotal
            total_amount += subtotal
            total_weight += (item.weight or 0.0) * item.quantity

        self.total_amount = total_amount
        self.total_weight = total_weight
        self.final_amount = max(total_amount + (self.shipping_cost or 0) - (self.discount_amount or 0), 0)

    def _find_item(self, product_id, variant_id=None):
        return next((i for i in self.items if i.matches(product_id, variant_id)), None)

    def priced_view(self):
        return PricedOrder.from_items(self.items)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(
        self,
        product_id,
        variant_id,
        quantity,
        price,
        weight=0.0,
        product_name=None,
        variant_name=None,
        sku=None,
    ):
        """Add a product variant, or increase its quantity if already present."""
        self._assert_active("add items to")
        if not product_id:
            raise ValidationError({"product_id": ["product ID cannot be empty"]})
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["quantity must be greater than zero"]})
        if price is None or price < 0:
            raise ValidationError({"price": ["price cannot be negative"]})

        existing = next(
            (i for i in self.items if str(i.product_id) == str(product_id) and str(i.variant_id) == str(variant_id)),
            None,
        )

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
            else:
                self.add_items(
                    CheckoutItem(
                        product_id=product_id,
                        variant_id=variant_id,
                        product_name=product_name,
                        variant_name=variant_name,
                        sku=sku,
                        quantity=quantity,
                        price=price,
                        subtotal=price * quantity,
                        weight=weight or 0.0,
                    )
                )
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CheckoutItemAdded(
                checkout_id=str(self.id),
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                quantity=quantity,
                price=price,
            )
        )

    def update_item(self, product_id, variant_id, quantity):
        """Set the quantity of an existing line."""
        self._assert_active("update items in")
        if not product_id:
            raise ValidationError({"product_id": ["product ID cannot be empty"]})
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["quantity must be greater than zero"]})

        item = self._find_item(product_id, variant_id)
        if item is None:
            raise ValidationError({"product_id": ["product not found in checkout"]})

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = quantity
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CheckoutItemUpdated(
                checkout_id=str(self.id),
                product_id=str(product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id, variant_id=None):
        self._assert_active("remove items from")
        if not product_id:
            raise ValidationError({"product_id": ["product ID cannot be empty"]})

        item = self._find_item(product_id, variant_id)
        if item is None:
            raise ValidationError({"product_id": ["product not found in checkout"]})

        with atomic_change(self):
            self.remove_items(item)
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CheckoutItemRemoved(
                checkout_id=str(self.id),
                product_id=str(product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
            )
        )

    def clear(self):
        """Remove all items and any applied discount."""
        self._assert_active("clear")
        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self.applied_discount = None
            self.discount_code = None
            self.discount_amount = 0
            self._recalculate_totals()
            self._touch()

    def total_items(self):
        return sum(item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Customer, addresses and payment
    # -------------------------------------------------------------------
    def set_shipping_address(self, address):
        self._assert_active("change the shipping address of")
        self.shipping_address = address
        self._touch()

    def set_billing_address(self, address):
        self._assert_active("change the billing address of")
        self.billing_address = address
        self._touch()

    def set_customer_details(self, details):
        self._assert_active("change customer details of")
        self.customer_details = details
        self._touch()

    def set_payment_provider(self, provider):
        self._assert_active("change the payment provider of")
        self.payment_provider = provider
        self._touch()

    def has_customer_info(self):
        return self.customer_details is not None and self.customer_details.has_any()

    def has_shipping_info(self):
        return self.shipping_address is not None and self.shipping_address.has_any()

    def has_customer_or_shipping_info(self):
        return self.has_customer_info() or self.has_shipping_info()

    def is_empty(self):
        return not self.items and not self.has_customer_or_shipping_info()

    # -------------------------------------------------------------------
    # Shipping, discount and currency
    # -------------------------------------------------------------------
    def set_shipping_method(self, option):
        """Select a shipping option, or clear the selection with ``None``."""
        self._assert_active("select shipping for")
        with atomic_change(self):
            self.shipping_option = option
            self.shipping_cost = option.cost if option is not None else 0
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CheckoutShippingSelected(
                checkout_id=str(self.id),
                shipping_rate_id=str(option.shipping_rate_id) if option is not None else None,
                shipping_cost=self.shipping_cost,
            )
        )

    def apply_discount(self, discount, categories=None):
        """Apply a Discount aggregate against the current items, or remove it with ``None``."""
        self._assert_active("apply a discount to")

        if discount is None:
            had_discount = self.applied_discount is not None or bool(self.discount_amount)
            with atomic_change(self):
                self.applied_discount = None
                self.discount_code = None
                self.discount_amount = 0
                self._recalculate_totals()
                self._touch()
            if had_discount:
                self.raise_(CheckoutDiscountRemoved(checkout_id=str(self.id)))
            return

        amount = discount.calculate_discount(self.priced_view(), categories)
        with atomic_change(self):
            self.discount_code = discount.code
            self.discount_amount = amount
            self.applied_discount = AppliedDiscount(
                discount_id=str(discount.id),
                discount_code=discount.code,
                discount_amount=amount,
            )
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CheckoutDiscountApplied(
                checkout_id=str(self.id),
                discount_id=str(discount.id),
                discount_code=discount.code,
                discount_amount=amount,
            )
        )

    def set_currency(self, new_currency, from_currency, to_currency):
        """Switch currency, converting item prices, shipping cost and discount."""
        self._assert_active("change the currency of")
        new_currency = new_currency.upper()
        if self.currency == new_currency:
            return

        previous_currency = self.currency
        with atomic_change(self):
            for item in self.items:
                item.price = from_currency.convert_amount(item.price, to_currency)

            self.shipping_cost = from_currency.convert_amount(self.shipping_cost or 0, to_currency)
            if self.shipping_option is not None:
                self.shipping_option = ShippingOption(
                    shipping_rate_id=self.shipping_option.shipping_rate_id,
                    shipping_method_id=self.shipping_option.shipping_method_id,
                    name=self.shipping_option.name,
                    description=self.shipping_option.description,
                    estimated_delivery_days=self.shipping_option.estimated_delivery_days,
                    cost=self.shipping_cost,
                    free_shipping=self.shipping_cost == 0,
                )

            self.discount_amount = from_currency.convert_amount(self.discount_amount or 0, to_currency)
            if self.applied_discount is not None:
                self.applied_discount = AppliedDiscount(
                    discount_id=self.applied_discount.discount_id,
                    discount_code=self.applied_discount.discount_code,
                    discount_amount=self.discount_amount,
                )

            self.currency = new_currency
            self._recalculate_totals()
            self._touch()

        self.raise_(
            CheckoutCurrencyChanged(
                checkout_id=str(self.id),
                previous_currency=previous_currency,
                new_currency=new_currency,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_as_completed(self, order_id):
        self._assert_active("complete")
        now = utc_now()
        with atomic_change(self):
            self.status = CheckoutStatus.COMPLETED.value
            self.converted_order_id = order_id
            self.completed_at = now
            self.last_activity_at = now
            self.updated_at = now

        self.raise_(
            CheckoutCompleted(
                checkout_id=str(self.id),
                order_id=str(order_id),
                final_amount=self.final_amount,
                completed_at=now,
            )
        )

    def mark_as_abandoned(self):
        self._assert_active("abandon")
        now = utc_now()
        self.status = CheckoutStatus.ABANDONED.value
        self.last_activity_at = now
        self.updated_at = now

        self.raise_(CheckoutAbandoned(checkout_id=str(self.id), session_id=self.session_id, abandoned_at=now))

    def mark_as_expired(self):
        if CheckoutStatus(self.status) not in (CheckoutStatus.ACTIVE, CheckoutStatus.ABANDONED):
            raise ValidationError({"status": [f"Cannot expire a checkout that is {self.status}"]})

        now = utc_now()
        self.status = CheckoutStatus.EXPIRED.value
        self.last_activity_at = now
        self.updated_at = now

        self.raise_(CheckoutExpired(checkout_id=str(self.id), session_id=self.session_id, expired_at=now))

    def mark_as_deleted(self):
        self.deleted_at = utc_now()

    def is_deleted(self):
        return self.deleted_at is not None

    def is_expired(self, now=None):
        return (now or utc_now()) > as_utc(self.expires_at)

    def extend_expiry(self, duration):
        self._assert_active("extend")
        now = utc_now()
        self.expires_at = now + duration
        self.last_activity_at = now
        self.updated_at = now

    def should_be_abandoned(self, now=None):
        """Active, has customer or shipping details, and idle for 15 minutes."""
        if CheckoutStatus(self.status) != CheckoutStatus.ACTIVE:
            return False
        if not self.has_customer_or_shipping_info():
            return False
        return as_utc(self.last_activity_at) < (now or utc_now()) - ABANDON_AFTER

    def should_be_deleted(self, now=None):
        """Anonymous and idle for a day, abandoned for a week, or expired."""
        now = now or utc_now()
        if not self.has_customer_or_shipping_info():
            return as_utc(self.last_activity_at) < now - DELETE_EMPTY_AFTER
        if self.status == CheckoutStatus.ABANDONED.value:
            return as_utc(self.updated_at) < now - DELETE_ABANDONED_AFTER
        return self.status == CheckoutStatus.EXPIRED.value

    # -------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------
    def to_order(self):
        """Build an Order snapshot of this checkout. The checkout itself is unchanged."""
        from commerce.order.order import Order

        items = [
            {
                "product_id": item.product_id,
                "variant_id": item.variant_id,
                "product_name": item.product_name,
                "variant_name": item.variant_name,
                "sku": item.sku,
                "quantity": item.quantity,
                "price": item.price,
                "weight": item.weight,
            }
            for item in self.items
        ]
        kwargs = dict(
            items=items,
            currency=self.currency,
            shipping_address=self.shipping_address,
            billing_address=self.billing_address,
            customer_details=self.customer_details,
            checkout_session_id=self.session_id,
        )
        if self.user_id:
            order = Order.create(user_id=self.user_id, **kwargs)
        else:
            order = Order.create_guest(**kwargs)

        if self.shipping_option is not None:
            order.set_shipping_method(self.shipping_option)
        order.carry_discount(self.applied_discount)
        return order
