"""Flashpay gateway adapter: talks to the payment proxy over HTTP.

Both operations are a JSON ``POST`` to the same endpoint, told apart by the
``action`` field. Non-2xx answers carry ``{"error": "..."}``; when they don't,
a generic message built from the status code is used instead.
"""

import httpx
import structlog
from pydantic import ValidationError as PayloadError

from payments.gateway.port import GatewayRequestError, PaymentGateway, TransactionInit, TransactionStatus
from payments.gateway.schemas import (
    GatewayErrorResponse,
    InitTransactionRequest,
    InitTransactionResponse,
    TransactionStatusRequest,
    TransactionStatusResponse,
)

logger = structlog.get_logger(__name__)


def _error_message(response: httpx.Response) -> str | None:
    """The gateway's own `error` text, if the body carries one."""
    try:
        return GatewayErrorResponse.model_validate(response.json()).error
    except (ValueError, PayloadError):
        return None


class FlashpayGateway(PaymentGateway):
    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def _post(self, payload: dict) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.base_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Payment gateway unreachable", action=payload.get("action"), error=str(exc))
            raise GatewayRequestError(f"Passerelle de paiement injoignable: {exc}") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "Payment gateway refused request",
                action=payload.get("action"),
                status_code=response.status_code,
                error=message,
            )
            raise GatewayRequestError(
                message or f"Erreur HTTP {response.status_code} de la passerelle de paiement",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayRequestError("Réponse illisible de la passerelle de paiement", response.status_code) from exc

    async def init_transaction(
        self,
        amount: float,
        description: str,
        success_url: str,
        failure_url: str,
    ) -> TransactionInit:
        request = InitTransactionRequest(
            amount=amount,
            description=description,
            success_url=success_url,
            failure_url=failure_url,
        )
        body = await self._post(request.model_dump(by_alias=True))
        try:
            parsed = InitTransactionResponse.model_validate(body)
        except PayloadError as exc:
            raise GatewayRequestError("Réponse inattendue de la passerelle de paiement") from exc
        return TransactionInit(payment_url=parsed.payment_url, code=parsed.code)

    async def get_transaction_status(self, transaction_code: str) -> TransactionStatus:
        request = TransactionStatusRequest(transaction_code=transaction_code)
        body = await self._post(request.model_dump(by_alias=True))
        try:
            parsed = TransactionStatusResponse.model_validate(body)
        except PayloadError as exc:
            raise GatewayRequestError("Réponse inattendue de la passerelle de paiement") from exc
        return TransactionStatus(status=parsed.status, transaction_code=parsed.transaction_code)
