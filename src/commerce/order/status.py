"""Order status management: commands and handler for both state machines."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.domain import commerce, logger
from commerce.order.order import Order, OrderStatus, PaymentStatus


@commerce.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)


@commerce.command(part_of="Order")
class UpdateOrderPaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)


@commerce.command(part_of="Order")
class SetOrderTrackingCode:
    order_id = Identifier(required=True)
    tracking_code = String(required=True, max_length=255)


@commerce.command(part_of="Order")
class SetOrderPaymentDetails:
    order_id = Identifier(required=True)
    payment_id = String(max_length=255)
    payment_provider = String(max_length=50)
    payment_method = String(max_length=50)
    action_url = String(max_length=2048)


@commerce.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.update_status(command.status)
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )

    @handle(UpdateOrderPaymentStatus)
    def update_order_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.payment_status
        order.update_payment_status(command.payment_status)
        repo.add(order)

        logger.info(
            "Order payment status updated",
            order_id=str(order.id),
            previous_payment_status=previous,
            new_payment_status=order.payment_status,
            status=order.status,
        )

    @handle(SetOrderTrackingCode)
    def set_order_tracking_code(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.set_tracking_code(command.tracking_code)
        repo.add(order)

    @handle(SetOrderPaymentDetails)
    def set_order_payment_details(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.payment_id:
            order.set_payment_id(command.payment_id)
        if command.payment_provider:
            order.set_payment_provider(command.payment_provider)
        if command.payment_method:
            order.set_payment_method(command.payment_method)
        if command.action_url:
            order.set_action_url(command.action_url)
        repo.add(order)
