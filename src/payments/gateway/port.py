"""Payment gateway port (abstract interface).

Defines the contract every gateway adapter implements. The checkout code only
depends on this module, so the in-memory FakeGateway (dev/test) and the
FlashpayGateway HTTP adapter (production) are interchangeable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

SUCCESSFUL_STATUSES = frozenset({"success", "succeeded", "successful", "completed", "paid"})


class GatewayRequestError(Exception):
    """The gateway refused the request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class TransactionInit:
    """Result of opening a gateway transaction.

    ``payment_url`` means the customer must be redirected to finish paying.
    A ``code`` alone means the transaction was accepted inline.
    """

    payment_url: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class TransactionStatus:
    status: str
    transaction_code: str

    @property
    def is_successful(self) -> bool:
        return self.status.lower() in SUCCESSFUL_STATUSES


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def init_transaction(
        self,
        amount: float,
        description: str,
        success_url: str,
        failure_url: str,
    ) -> TransactionInit:
        """Open a transaction for ``amount``. Raises GatewayRequestError on refusal."""
        ...

    @abstractmethod
    async def get_transaction_status(self, transaction_code: str) -> TransactionStatus:
        """Look up the current status of a transaction."""
        ...
