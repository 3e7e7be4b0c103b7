"""Payment orchestrator: drives one gateway transaction for a submission.

State machine::

    IDLE → INITIATING → REDIRECT    customer must finish paying on the gateway
                      → COMPLETED   gateway answered with a transaction code
                      → FAILED      refusal, empty answer, or transport error

Connectivity is checked right before the gateway is called; an offline
device fails fast without any network traffic.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from ordering.checkout.errors import ConnectivityError, GatewayError
from ordering.config import checkout_failure_url, checkout_success_url
from payments.gateway import get_gateway
from payments.gateway.port import GatewayRequestError, PaymentGateway, TransactionStatus

logger = structlog.get_logger(__name__)


class PaymentState(Enum):
    IDLE = "idle"
    INITIATING = "initiating"
    REDIRECT = "redirect"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentOutcome:
    state: PaymentState
    payment_ref: str | None = None
    redirect_url: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.state is PaymentState.REDIRECT


def _always_online() -> bool:
    return True


class PaymentOrchestrator:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        is_online: Callable[[], bool] = _always_online,
        success_url: str | None = None,
        failure_url: str | None = None,
    ):
        self.gateway = gateway or get_gateway()
        self.is_online = is_online
        self.success_url = success_url or checkout_success_url()
        self.failure_url = failure_url or checkout_failure_url()
        self.state = PaymentState.IDLE

    async def pay(self, amount: float, description: str) -> PaymentOutcome:
        if self.state is not PaymentState.IDLE:
            raise RuntimeError(f"Payment already {self.state.value}")

        if not self.is_online():
            self.state = PaymentState.FAILED
            logger.warning("Payment aborted, device offline", amount=amount)
            raise ConnectivityError()

        self.state = PaymentState.INITIATING
        try:
            result = await self.gateway.init_transaction(
                amount=amount,
                description=description,
                success_url=self.success_url,
                failure_url=self.failure_url,
            )
        except GatewayRequestError as exc:
            self.state = PaymentState.FAILED
            logger.error("Gateway transaction failed", amount=amount, error=exc.message)
            raise GatewayError(exc.message, status_code=exc.status_code) from exc

        if result.payment_url:
            self.state = PaymentState.REDIRECT
            logger.info("Gateway requested redirect", amount=amount, transaction_code=result.code)
            return PaymentOutcome(state=self.state, payment_ref=result.code, redirect_url=result.payment_url)

        if result.code:
            self.state = PaymentState.COMPLETED
            logger.info("Gateway transaction accepted", amount=amount, transaction_code=result.code)
            return PaymentOutcome(state=self.state, payment_ref=result.code)

        self.state = PaymentState.FAILED
        logger.error("Gateway answered without payment URL or code", amount=amount)
        raise GatewayError()

    async def poll_status(self, transaction_code: str) -> TransactionStatus:
        """Current gateway status of a transaction. Used by out-of-band reconciliation."""
        try:
            return await self.gateway.get_transaction_status(transaction_code)
        except GatewayRequestError as exc:
            raise GatewayError(exc.message, status_code=exc.status_code) from exc
