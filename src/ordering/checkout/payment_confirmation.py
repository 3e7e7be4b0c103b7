"""Out-of-band payment confirmation.

Orders paid through the gateway are written ``pending`` with the gateway's
transaction code. Once the customer has finished paying, this asks the
gateway for the transaction status and marks the order paid.
"""

import structlog
from protean.utils.globals import current_domain

from ordering.order.order import Order, OrderStatus
from payments.gateway.port import PaymentGateway
from payments.orchestrator import PaymentOrchestrator

logger = structlog.get_logger(__name__)


async def confirm_gateway_payment(order_id: str, gateway: PaymentGateway | None = None) -> bool:
    """Return True when the order is paid after the check, False otherwise."""
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)

    if order.is_paid:
        return True
    if order.status != OrderStatus.PENDING.value or not order.payment_ref:
        logger.info("Order has no gateway payment to confirm", order_id=order_id, status=order.status)
        return False

    status = await PaymentOrchestrator(gateway=gateway).poll_status(order.payment_ref)
    if not status.is_successful:
        logger.info("Gateway payment not settled yet", order_id=order_id, gateway_status=status.status)
        return False

    order.confirm_payment(status.transaction_code or order.payment_ref)
    repo.add(order)
    logger.info("Gateway payment confirmed", order_id=order_id, payment_ref=order.payment_ref)
    return True
