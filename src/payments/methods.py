"""Payment methods offered at checkout.

A method either settles through the mobile-money gateway or is settled
outside the engine (cash handed to the courier).
"""

from dataclasses import dataclass

MOBILE_PAYMENT = "payemnt_mobile"
CASH_ON_DELIVERY = "cash_delivery"


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    name: str
    description: str
    gateway_based: bool


PAYMENT_METHODS = {
    MOBILE_PAYMENT: PaymentMethod(
        id=MOBILE_PAYMENT,
        name="Paiement Mobile",
        description="via Orange Money ou MTN Mobile Money",
        gateway_based=True,
    ),
    CASH_ON_DELIVERY: PaymentMethod(
        id=CASH_ON_DELIVERY,
        name="Cash à la Livraison",
        description="Payer en espèces lors de la livraison",
        gateway_based=False,
    ),
}


def is_gateway_based(method_id: str | None) -> bool:
    method = PAYMENT_METHODS.get(method_id or "")
    return bool(method and method.gateway_based)


def is_cash_on_delivery(method_id: str | None) -> bool:
    return method_id == CASH_ON_DELIVERY
