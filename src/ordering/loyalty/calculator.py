"""Loyalty points arithmetic: earning rates and redemption caps.

Points are worth CREDIT_PER_POINT in currency. An order earns points only
when its subtotal reaches LOYALTY_THRESHOLD; the first eligible order of an
account earns at FIRST_RATE, later ones at NORMAL_RATE.

Computations go through Decimal so that a rate applied to a round subtotal
never floors to one point less than expected.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

LOYALTY_THRESHOLD = 5000
FIRST_RATE = Decimal("0.10")
NORMAL_RATE = Decimal("0.05")
CREDIT_PER_POINT = 100


@dataclass(frozen=True)
class Redemption:
    points_to_use: int = 0
    reduction: float = 0.0

    @property
    def applied(self) -> bool:
        return self.points_to_use > 0


NO_REDEMPTION = Redemption()


def _decimal(amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float) and not math.isfinite(amount):
        return Decimal(0)
    return Decimal(str(amount))


def earning_rate(eligible_history_count: int) -> Decimal:
    return FIRST_RATE if eligible_history_count == 0 else NORMAL_RATE


def points_earned(subtotal, eligible_history_count: int) -> int:
    """Points an order earns, floored to whole points."""
    amount = _decimal(subtotal)
    if amount < LOYALTY_THRESHOLD:
        return 0

    points = amount * earning_rate(eligible_history_count) / CREDIT_PER_POINT
    return int(points.to_integral_value(rounding=ROUND_FLOOR))


def resolve_redemption(wants_redemption: bool, balance: int, payable) -> Redemption:
    """Decide how many points to spend against a payable amount.

    Rounds up so that an amount which is not a multiple of the point value can
    still be cleared entirely, and never spends more than the balance.
    """
    if not wants_redemption or balance <= 0:
        return NO_REDEMPTION

    amount = _decimal(payable)
    if amount <= 0:
        return NO_REDEMPTION

    needed = int((amount / CREDIT_PER_POINT).to_integral_value(rounding=ROUND_CEILING))
    points_to_use = min(balance, needed)
    return Redemption(points_to_use=points_to_use, reduction=float(points_to_use * CREDIT_PER_POINT))


def final_total(subtotal, delivery_fee, reduction) -> float:
    """Amount left to pay once points are applied; never negative."""
    return max(0.0, float(_decimal(subtotal) + _decimal(delivery_fee) - _decimal(reduction)))


def is_loyalty_eligible(subtotal) -> bool:
    return _decimal(subtotal) >= LOYALTY_THRESHOLD
