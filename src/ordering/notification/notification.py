"""Order notification aggregate: the record the push relay drains.

Checkout writes one record per new order for the restaurant staff. The relay
later delivers it to the recipient's device and records the outcome.

State Machine:
    PENDING → DELIVERED
    PENDING → FAILED → (retry) → PENDING
    PENDING → SKIPPED   (recipient has no device on file)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


class NotificationKind(Enum):
    NEW_ORDER = "new_order"


class DeliveryStatus(Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
    SKIPPED = "skipped"


_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.DELIVERED, DeliveryStatus.FAILED, DeliveryStatus.SKIPPED},
    DeliveryStatus.FAILED: {DeliveryStatus.PENDING},
    DeliveryStatus.DELIVERED: set(),
    DeliveryStatus.SKIPPED: set(),
}

DEFAULT_RESTAURANT_ID = "default_restaurant_id"


def new_order_message(order_id, points_used=0, points_reduction=0.0) -> str:
    message = f"Nouvelle commande #{str(order_id)[:6]} reçue"
    if points_used > 0:
        reduction = f"{points_reduction:,.0f}".replace(",", " ")
        message += f" ({points_used} points utilisés, réduction de {reduction} FCFA)"
    return message


@ordering.aggregate
class OrderNotification:
    order_id = Identifier(required=True)
    recipient_id = Identifier(required=True)
    user_id = Identifier()
    restaurant_id = Identifier()
    kind = String(choices=NotificationKind, default=NotificationKind.NEW_ORDER.value)
    old_status = String(max_length=50)
    new_status = String(max_length=50)
    title = String(max_length=200)
    message = Text(required=True)
    item_names = Text()
    read = Boolean(default=False)

    delivery_status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    failure_reason = Text()
    attempts = Integer(default=0)
    timestamp = DateTime()
    delivered_at = DateTime()

    @classmethod
    def for_new_order(cls, order_id, user_id, restaurant_id, status, item_names, points_used=0, points_reduction=0.0):
        restaurant = restaurant_id or DEFAULT_RESTAURANT_ID
        return cls(
            order_id=order_id,
            recipient_id=restaurant,
            user_id=user_id or "unknown",
            restaurant_id=restaurant,
            kind=NotificationKind.NEW_ORDER.value,
            old_status=None,
            new_status=status,
            title="Nouvelle commande",
            message=new_order_message(order_id, points_used, points_reduction),
            item_names=item_names,
            read=False,
            delivery_status=DeliveryStatus.PENDING.value,
            attempts=0,
            timestamp=datetime.now(UTC),
        )

    def _assert_can_transition(self, target):
        current = DeliveryStatus(self.delivery_status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"delivery_status": [f"Cannot transition from {current.value} to {target.value}"]})

    def mark_delivered(self):
        self._assert_can_transition(DeliveryStatus.DELIVERED)
        now = datetime.now(UTC)
        self.delivery_status = DeliveryStatus.DELIVERED.value
        self.attempts = (self.attempts or 0) + 1
        self.delivered_at = now

    def mark_failed(self, reason):
        self._assert_can_transition(DeliveryStatus.FAILED)
        self.delivery_status = DeliveryStatus.FAILED.value
        self.attempts = (self.attempts or 0) + 1
        self.failure_reason = reason

    def mark_skipped(self, reason):
        self._assert_can_transition(DeliveryStatus.SKIPPED)
        self.delivery_status = DeliveryStatus.SKIPPED.value
        self.failure_reason = reason

    def retry(self):
        self._assert_can_transition(DeliveryStatus.PENDING)
        self.delivery_status = DeliveryStatus.PENDING.value
        self.failure_reason = None
