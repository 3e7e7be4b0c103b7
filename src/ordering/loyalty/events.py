"""Domain events for loyalty accounts and the points ledger."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="LoyaltyAccount")
class LoyaltyAccountOpened:
    """An account was opened lazily on its first authenticated submission."""

    __version__ = 1

    account_id = Identifier(required=True)
    opened_at = DateTime(required=True)


@ordering.event(part_of="LoyaltyAccount")
class PointsRedeemed:
    """Points were taken off an account balance to pay for an order."""

    __version__ = 1

    account_id = Identifier(required=True)
    points = Integer(required=True)
    previous_balance = Integer(required=True)
    new_balance = Integer(required=True)
    redeemed_at = DateTime(required=True)


@ordering.event(part_of="LoyaltyAccount")
class PointsCredited:
    """Earned points were added to an account balance after approval."""

    __version__ = 1

    account_id = Identifier(required=True)
    points = Integer(required=True)
    new_balance = Integer(required=True)
    credited_at = DateTime(required=True)


@ordering.event(part_of="LoyaltyAccount")
class PushTokenPurged:
    """The relay reported the account's push token as invalid."""

    __version__ = 1

    account_id = Identifier(required=True)
    purged_at = DateTime(required=True)


@ordering.event(part_of="LedgerTransaction")
class LedgerTransactionRecorded:
    __version__ = 1

    transaction_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    direction = String(required=True)
    points_amount = Integer(required=True)
    recorded_at = DateTime(required=True)


@ordering.event(part_of="LedgerTransaction")
class LedgerTransactionApproved:
    __version__ = 1

    transaction_id = Identifier(required=True)
    user_id = Identifier(required=True)
    points_amount = Integer(required=True)
    approved_at = DateTime(required=True)
