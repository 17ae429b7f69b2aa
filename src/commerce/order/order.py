"""Order aggregate: an immutable purchase snapshot with two coupled state machines.

Fulfilment status:
    pending → paid → shipped → completed
    pending/paid/shipped → cancelled

Payment status:
    pending → authorized → captured → refunded
    pending → failed
    authorized → refunded/cancelled

A payment status change can move the order status along (authorization pays
a pending order, capture completes a shipped one, failure or cancellation
cancels it). These side effects only fire when the order is in the expected
state; otherwise the payment status changes alone.

Money is held in integer cents. ``final_amount`` is always recomputed in full
as ``total_amount + shipping_cost - discount_amount``.
"""

from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from commerce.discount.pricing import PricedOrder
from commerce.domain import commerce
from commerce.order.events import (
    OrderCreated,
    OrderDiscountApplied,
    OrderDiscountRemoved,
    OrderNumberAssigned,
    OrderPaymentStatusChanged,
    OrderShippingMethodSet,
    OrderStatusChanged,
)
from commerce.shared.address import Address, CustomerDetails
from commerce.shared.clock import utc_now
from commerce.shared.snapshots import AppliedDiscount, ShippingOption


# ---------------------------------------------------------------------------
# Enums and transition tables
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"
    FAILED = "failed"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.COMPLETED: set(),  # Terminal
}

_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.AUTHORIZED, PaymentStatus.FAILED},
    PaymentStatus.AUTHORIZED: {PaymentStatus.CAPTURED, PaymentStatus.REFUNDED, PaymentStatus.CANCELLED},
    PaymentStatus.CAPTURED: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),  # Terminal
    PaymentStatus.CANCELLED: set(),  # Terminal
    PaymentStatus.FAILED: set(),  # Terminal
}

# (new payment status) -> (order statuses that react, resulting order status)
_PAYMENT_SIDE_EFFECTS = {
    PaymentStatus.AUTHORIZED: ({OrderStatus.PENDING}, OrderStatus.PAID),
    PaymentStatus.FAILED: ({OrderStatus.PENDING}, OrderStatus.CANCELLED),
    PaymentStatus.CAPTURED: ({OrderStatus.SHIPPED}, OrderStatus.COMPLETED),
    PaymentStatus.CANCELLED: ({OrderStatus.PENDING, OrderStatus.PAID}, OrderStatus.CANCELLED),
}

_CLOSING_STATUSES = {OrderStatus.CANCELLED, OrderStatus.COMPLETED}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@commerce.entity(part_of="Order")
class OrderItem:
    """A purchased line, copied from the catalog at order time."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(max_length=255)
    variant_name = String(max_length=255)
    sku = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=1)
    subtotal = Integer(required=True)
    weight = Float(default=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@commerce.aggregate
class Order:
    order_number = String(max_length=50)
    user_id = Identifier()  # None for guest orders
    is_guest_order = Boolean(default=False)
    checkout_session_id = String(max_length=255)
    currency = String(required=True, max_length=3)
    items = HasMany(OrderItem)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    total_amount = Integer(default=0)
    shipping_cost = Integer(default=0)
    discount_amount = Integer(default=0)
    final_amount = Integer(default=0)
    total_weight = Float(default=0.0)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    customer_details = ValueObject(CustomerDetails)
    applied_discount = ValueObject(AppliedDiscount)
    shipping_option = ValueObject(ShippingOption)
    payment_id = String(max_length=255)
    payment_provider = String(max_length=50)
    payment_method = String(max_length=50)
    tracking_code = String(max_length=255)
    action_url = String(max_length=1000)
    created_at = DateTime()
    updated_at = DateTime()
    completed_at = DateTime()

    @invariant.post
    def line_subtotals_must_match_price_and_quantity(self):
        for item in self.items:
            if item.subtotal != item.price * item.quantity:
                raise ValidationError({"items": ["Item subtotal must equal price times quantity"]})

    @invariant.post
    def total_must_equal_sum_of_lines(self):
        if self.items and self.total_amount != sum(item.subtotal for item in self.items):
            raise ValidationError({"total_amount": ["Total amount must equal the sum of item subtotals"]})

    @invariant.post
    def final_amount_must_be_consistent(self):
        expected = (self.total_amount or 0) + (self.shipping_cost or 0) - (self.discount_amount or 0)
        if self.final_amount != expected:
            raise ValidationError({"final_amount": ["Final amount must equal total plus shipping minus discount"]})

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id,
        items,
        currency,
        shipping_address=None,
        billing_address=None,
        customer_details=None,
        checkout_session_id=None,
    ):
        """Create an order for an authenticated user.

        Args:
            items: list of dicts with product_id, quantity and price (cents);
                optional variant_id, product_name, variant_name, sku, weight.
        """
        if not user_id:
            raise ValidationError({"user_id": ["user ID cannot be empty"]})
        return cls._build(
            user_id=user_id,
            is_guest=False,
            items=items,
            currency=currency,
            shipping_address=shipping_address,
            billing_address=billing_address,
            customer_details=customer_details,
            checkout_session_id=checkout_session_id,
        )

    @classmethod
    def create_guest(
        cls,
        items,
        currency,
        shipping_address=None,
        billing_address=None,
        customer_details=None,
        checkout_session_id=None,
    ):
        """Create an order for a customer who has no account."""
        return cls._build(
            user_id=None,
            is_guest=True,
            items=items,
            currency=currency,
            shipping_address=shipping_address,
            billing_address=billing_address,
            customer_details=customer_details,
            checkout_session_id=checkout_session_id,
        )

    @classmethod
    def _build(
        cls,
        user_id,
        is_guest,
        items,
        currency,
        shipping_address,
        billing_address,
        customer_details,
        checkout_session_id,
    ):
        if not items:
            raise ValidationError({"items": ["order must have at least one item"]})
        if not currency:
            raise ValidationError({"currency": ["currency cannot be empty"]})
        for item in items:
            if item.get("quantity") is None or item["quantity"] <= 0:
                raise ValidationError({"items": ["item quantity must be greater than zero"]})
            if item.get("price") is None or item["price"] <= 0:
                raise ValidationError({"items": ["item price must be greater than zero"]})

        order_items = [
            OrderItem(
                product_id=item["product_id"],
                variant_id=item.get("variant_id"),
                product_name=item.get("product_name"),
                variant_name=item.get("variant_name"),
                sku=item.get("sku"),
                quantity=item["quantity"],
                price=item["price"],
                subtotal=item["price"] * item["quantity"],
                weight=item.get("weight") or 0.0,
            )
            for item in items
        ]
        total_amount = sum(item.subtotal for item in order_items)
        total_weight = sum((item.weight or 0.0) * item.quantity for item in order_items)

        now = utc_now()
        prefix = "GS" if is_guest else "ORD"
        order = cls(
            order_number=f"{prefix}-{now:%Y%m%d}-TEMP",
            user_id=user_id,
            is_guest_order=is_guest,
            checkout_session_id=checkout_session_id,
            currency=currency.upper(),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            total_amount=total_amount,
            shipping_cost=0,
            discount_amount=0,
            final_amount=total_amount,
            total_weight=total_weight,
            shipping_address=shipping_address,
            billing_address=billing_address,
            customer_details=customer_details,
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            for item in order_items:
                order.add_items(item)

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id) if user_id else None,
                is_guest_order=is_guest,
                currency=order.currency,
                total_amount=total_amount,
                item_count=len(order_items),
                created_at=now,
            )
        )
        return order

    def assign_order_number(self, sequence):
        """Replace the temporary number with the final ``ORD-YYYYMMDD-000123`` form."""
        created = self.created_at or utc_now()
        self.order_number = f"ORD-{created:%Y%m%d}-{sequence:06d}"
        self.raise_(OrderNumberAssigned(order_id=str(self.id), order_number=self.order_number))

    # -------------------------------------------------------------------
    # Fulfilment status
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def can_transition_to(self, target_status):
        return OrderStatus(target_status) in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def update_status(self, status):
        try:
            target = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"invalid order status: {status}"]}) from None
        self._assert_can_transition(target)
        self._move_to(target)

    def _move_to(self, target):
        previous = self.status
        now = utc_now()
        with atomic_change(self):
            self.status = target.value
            self.updated_at = now
            if target in _CLOSING_STATUSES:
                self.completed_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment status
    # -------------------------------------------------------------------
    def _assert_can_transition_payment(self, target_status):
        current = PaymentStatus(self.payment_status)
        if target_status not in _VALID_PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot transition payment from {current.value} to {target_status.value}"]}
            )

    def can_transition_payment_to(self, payment_status):
        target = PaymentStatus(payment_status)
        return target in _VALID_PAYMENT_TRANSITIONS.get(PaymentStatus(self.payment_status), set())

    def update_payment_status(self, payment_status):
        """Move the payment status and apply any coupled order status change."""
        try:
            target = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"invalid payment status: {payment_status}"]}) from None
        self._assert_can_transition_payment(target)

        previous = self.payment_status
        now = utc_now()
        self.payment_status = target.value
        self.updated_at = now

        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                previous_payment_status=previous,
                new_payment_status=target.value,
                changed_at=now,
            )
        )

        side_effect = _PAYMENT_SIDE_EFFECTS.get(target)
        if side_effect is None:
            return
        guard, order_target = side_effect
        if OrderStatus(self.status) in guard:
            self._move_to(order_target)

    def is_captured(self):
        return self.payment_status == PaymentStatus.CAPTURED.value

    def is_refunded(self):
        return self.payment_status == PaymentStatus.REFUNDED.value

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def priced_view(self):
        return PricedOrder.from_items(self.items)

    def _recalculate_final_amount(self):
        self.final_amount = self.total_amount + self.shipping_cost - self.discount_amount

    def apply_discount(self, discount, categories=None):
        """Apply a Discount aggregate, replacing any discount already applied."""
        if discount is None or not discount.is_valid():
            raise ValidationError({"discount": ["discount is invalid or inactive"]})

        amount = discount.calculate_discount(self.priced_view(), categories)
        if amount <= 0:
            raise ValidationError({"discount": ["discount is not applicable to this order"]})

        self._set_discount(
            AppliedDiscount(discount_id=str(discount.id), discount_code=discount.code, discount_amount=amount)
        )

    def carry_discount(self, applied_discount):
        """Carry over a discount already computed elsewhere (e.g. on the checkout)."""
        if applied_discount is None:
            return
        self._set_discount(applied_discount)

    def _set_discount(self, applied_discount):
        with atomic_change(self):
            self.applied_discount = applied_discount
            self.discount_amount = applied_discount.discount_amount
            self._recalculate_final_amount()
            self.updated_at = utc_now()

        self.raise_(
            OrderDiscountApplied(
                order_id=str(self.id),
                discount_id=str(applied_discount.discount_id),
                discount_code=applied_discount.discount_code,
                discount_amount=applied_discount.discount_amount,
            )
        )

    def remove_discount(self):
        if self.applied_discount is None and not self.discount_amount:
            return

        with atomic_change(self):
            self.applied_discount = None
            self.discount_amount = 0
            self._recalculate_final_amount()
            self.updated_at = utc_now()

        self.raise_(OrderDiscountRemoved(order_id=str(self.id)))

    def set_shipping_method(self, option):
        if option is None:
            raise ValidationError({"shipping_option": ["shipping option cannot be empty"]})

        with atomic_change(self):
            self.shipping_option = option
            self.shipping_cost = option.cost
            self._recalculate_final_amount()
            self.updated_at = utc_now()

        self.raise_(
            OrderShippingMethodSet(
                order_id=str(self.id),
                shipping_rate_id=str(option.shipping_rate_id),
                shipping_method_id=str(option.shipping_method_id),
                shipping_cost=option.cost,
            )
        )

    def calculate_total_weight(self):
        return sum((item.weight or 0.0) * item.quantity for item in self.items)

    # -------------------------------------------------------------------
    # Payment and fulfilment references
    # -------------------------------------------------------------------
    def _set_reference(self, field, value, label):
        if not value:
            raise ValidationError({field: [f"{label} cannot be empty"]})
        setattr(self, field, value)
        self.updated_at = utc_now()

    def set_payment_id(self, payment_id):
        self._set_reference("payment_id", payment_id, "payment ID")

    def set_payment_provider(self, provider):
        self._set_reference("payment_provider", provider, "payment provider")

    def set_payment_method(self, method):
        self._set_reference("payment_method", method, "payment method")

    def set_tracking_code(self, tracking_code):
        self._set_reference("tracking_code", tracking_code, "tracking code")

    def set_action_url(self, action_url):
        self._set_reference("action_url", action_url, "action URL")
