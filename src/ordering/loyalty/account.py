"""Loyalty account aggregate: the per-account points balance.

The balance is the only mutable state shared between submissions. Spending
points is a compare-and-swap: the caller states the balance it based its
redemption on, and the write is refused when the balance has moved since.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering
from ordering.loyalty.events import (
    LoyaltyAccountOpened,
    PointsCredited,
    PointsRedeemed,
    PushTokenPurged,
)


class BalanceConflictError(Exception):
    """The balance changed between the redemption decision and the write."""

    def __init__(self, account_id, expected_balance, actual_balance):
        self.account_id = account_id
        self.expected_balance = expected_balance
        self.actual_balance = actual_balance
        super().__init__(
            f"Balance of account {account_id} is {actual_balance}, expected {expected_balance}"
        )


@ordering.aggregate
class LoyaltyAccount:
    account_id = Identifier(identifier=True, required=True)
    points_balance = Integer(default=0)
    push_token = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def balance_cannot_be_negative(self):
        if self.points_balance is not None and self.points_balance < 0:
            raise ValidationError({"points_balance": ["Points balance cannot be negative"]})

    @classmethod
    def open(cls, account_id, push_token=None):
        now = datetime.now(UTC)
        account = cls(
            account_id=account_id,
            points_balance=0,
            push_token=push_token,
            created_at=now,
            updated_at=now,
        )
        account.raise_(LoyaltyAccountOpened(account_id=str(account_id), opened_at=now))
        return account

    def redeem(self, points, expected_balance):
        """Spend points, provided the balance still equals ``expected_balance``."""
        if points <= 0:
            raise ValidationError({"points": ["Points to redeem must be positive"]})
        if self.points_balance != expected_balance:
            raise BalanceConflictError(self.account_id, expected_balance, self.points_balance)
        if points > self.points_balance:
            raise ValidationError({"points": ["Cannot redeem more points than the balance holds"]})

        now = datetime.now(UTC)
        previous = self.points_balance
        self.points_balance = previous - points
        self.updated_at = now

        self.raise_(
            PointsRedeemed(
                account_id=str(self.account_id),
                points=points,
                previous_balance=previous,
                new_balance=self.points_balance,
                redeemed_at=now,
            )
        )

    def credit(self, points):
        if points <= 0:
            raise ValidationError({"points": ["Points to credit must be positive"]})

        now = datetime.now(UTC)
        self.points_balance = (self.points_balance or 0) + points
        self.updated_at = now

        self.raise_(
            PointsCredited(
                account_id=str(self.account_id),
                points=points,
                new_balance=self.points_balance,
                credited_at=now,
            )
        )

    def register_push_token(self, token):
        self.push_token = token
        self.updated_at = datetime.now(UTC)

    def purge_push_token(self):
        now = datetime.now(UTC)
        self.push_token = None
        self.updated_at = now
        self.raise_(PushTokenPurged(account_id=str(self.account_id), purged_at=now))
