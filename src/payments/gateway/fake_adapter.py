"""Configurable fake payment gateway for development and testing.

Simulates the gateway proxy without any external calls. It can be set up at
runtime to answer with a redirect URL, an inline transaction code, or an
error, which covers every branch the orchestrator takes.
"""

from uuid import uuid4

from payments.gateway.port import GatewayRequestError, PaymentGateway, TransactionInit, TransactionStatus


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.mode: str = "code"
        self.failure_reason: str = "Transaction refusée"
        self.statuses: dict[str, str] = {}
        self.calls: list[dict] = []

    def configure(self, mode: str = "code", failure_reason: str = "Transaction refusée") -> None:
        """Configure gateway behavior at runtime.

        ``mode`` is one of ``"code"``, ``"redirect"``, ``"empty"`` or ``"fail"``.
        """
        if mode not in ("code", "redirect", "empty", "fail"):
            raise ValueError(f"Unknown fake gateway mode: {mode}")
        self.mode = mode
        self.failure_reason = failure_reason

    def set_status(self, transaction_code: str, status: str) -> None:
        self.statuses[transaction_code] = status

    async def init_transaction(
        self,
        amount: float,
        description: str,
        success_url: str,
        failure_url: str,
    ) -> TransactionInit:
        self.calls.append(
            {
                "action": "initTrx",
                "amount": amount,
                "description": description,
                "successUrl": success_url,
                "failureUrl": failure_url,
            }
        )

        if self.mode == "fail":
            raise GatewayRequestError(self.failure_reason, status_code=402)

        code = f"fake_trx_{uuid4().hex[:12]}"
        self.statuses.setdefault(code, "pending")
        if self.mode == "redirect":
            return TransactionInit(payment_url=f"https://pay.example.test/checkout/{code}", code=code)
        if self.mode == "empty":
            return TransactionInit()
        return TransactionInit(code=code)

    async def get_transaction_status(self, transaction_code: str) -> TransactionStatus:
        self.calls.append({"action": "getTrxStatus", "transactionCode": transaction_code})
        if transaction_code not in self.statuses:
            raise GatewayRequestError(f"Transaction inconnue: {transaction_code}", status_code=404)
        return TransactionStatus(status=self.statuses[transaction_code], transaction_code=transaction_code)
