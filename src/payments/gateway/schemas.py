"""Pydantic schemas for the gateway proxy's JSON payloads.

These are external contracts (anti-corruption layer) and stay separate
from the TransactionInit/TransactionStatus results the rest of the code sees.
"""

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class InitTransactionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str = "initTrx"
    amount: float = Field(gt=0)
    description: str
    success_url: str = Field(alias="successUrl")
    failure_url: str = Field(alias="failureUrl")


class TransactionStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str = "getTrxStatus"
    transaction_code: str = Field(alias="transactionCode")


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class InitTransactionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    payment_url: str | None = None
    code: str | None = None


class TransactionStatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    transaction_code: str


class GatewayErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: str | None = None
