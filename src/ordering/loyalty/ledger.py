"""Ledger transaction aggregate: append-only audit trail of points movements.

One transaction is written per redemption (direction "usage") and one per
order that earns points (direction "grant"). Both start out pending; a grant
is approved by an administrator once the order has been honoured, which is
when the earned points reach the balance.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering
from ordering.loyalty.events import LedgerTransactionApproved, LedgerTransactionRecorded


class LedgerDirection(Enum):
    USAGE = "usage"
    GRANT = "grant"


class LedgerStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"


def _short_ref(order_id) -> str:
    return str(order_id)[-6:]


@ordering.aggregate
class LedgerTransaction:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    points_amount = Integer(required=True, min_value=1)
    direction = String(choices=LedgerDirection, required=True)
    status = String(choices=LedgerStatus, default=LedgerStatus.PENDING.value)
    message = String(max_length=500)
    timestamp = DateTime()
    approved_at = DateTime()

    @classmethod
    def _record(cls, user_id, order_id, points_amount, direction, message):
        now = datetime.now(UTC)
        transaction = cls(
            user_id=user_id,
            order_id=order_id,
            points_amount=points_amount,
            direction=direction.value,
            status=LedgerStatus.PENDING.value,
            message=message,
            timestamp=now,
        )
        transaction.raise_(
            LedgerTransactionRecorded(
                transaction_id=str(transaction.id),
                user_id=str(user_id),
                order_id=str(order_id),
                direction=direction.value,
                points_amount=points_amount,
                recorded_at=now,
            )
        )
        return transaction

    @classmethod
    def record_usage(cls, user_id, order_id, points_amount):
        return cls._record(
            user_id,
            order_id,
            points_amount,
            LedgerDirection.USAGE,
            f"Points used for order #{_short_ref(order_id)}",
        )

    @classmethod
    def record_grant(cls, user_id, order_id, points_amount):
        return cls._record(
            user_id,
            order_id,
            points_amount,
            LedgerDirection.GRANT,
            f"Points earned for order #{_short_ref(order_id)}",
        )

    def approve(self):
        if self.direction != LedgerDirection.GRANT.value:
            raise ValidationError({"direction": ["Only grant transactions can be approved"]})
        if self.status != LedgerStatus.PENDING.value:
            raise ValidationError({"status": [f"Cannot approve a transaction in {self.status} status"]})

        now = datetime.now(UTC)
        self.status = LedgerStatus.APPROVED.value
        self.approved_at = now

        self.raise_(
            LedgerTransactionApproved(
                transaction_id=str(self.id),
                user_id=str(self.user_id),
                points_amount=self.points_amount,
                approved_at=now,
            )
        )
