"""Notification relay drain: delivers pending order notifications as push messages.

Runs outside checkout. Each pending record is delivered to the device token
held on its recipient's account. A token the relay reports as unregistered
is purged from the account so that later drains stop trying it.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from notifications.channel import get_push_channel
from notifications.channel.push_port import PushOutcome, PushPort
from ordering.loyalty.account import LoyaltyAccount
from ordering.notification.notification import DeliveryStatus, OrderNotification

logger = structlog.get_logger(__name__)


class NotificationRelay:
    def __init__(self, push: PushPort | None = None):
        self.push = push or get_push_channel()

    def _pending(self):
        repo = current_domain.repository_for(OrderNotification)
        return repo._dao.query.filter(delivery_status=DeliveryStatus.PENDING.value).all().items

    async def drain(self) -> dict[str, int]:
        """Deliver every pending notification once. Returns counts per outcome."""
        counts = {status.value: 0 for status in DeliveryStatus if status is not DeliveryStatus.PENDING}
        for notification in self._pending():
            status = await self.deliver(notification)
            counts[status.value] += 1
        return counts

    async def deliver(self, notification: OrderNotification) -> DeliveryStatus:
        notification_repo = current_domain.repository_for(OrderNotification)
        account_repo = current_domain.repository_for(LoyaltyAccount)

        try:
            account = account_repo.get(str(notification.recipient_id))
        except ObjectNotFoundError:
            account = None

        token = account.push_token if account else None
        if not token:
            notification.mark_skipped("No push token on file")
            notification_repo.add(notification)
            logger.info(
                "Notification skipped, recipient has no push token",
                notification_id=str(notification.id),
                recipient_id=str(notification.recipient_id),
            )
            return DeliveryStatus.SKIPPED

        result = await self.push.deliver(
            token=token,
            title=notification.title or "",
            body=notification.message,
            data={"order_id": str(notification.order_id), "type": notification.kind},
        )

        if result.outcome is PushOutcome.OK:
            notification.mark_delivered()
        elif result.outcome is PushOutcome.INVALID_TOKEN:
            account.purge_push_token()
            account_repo.add(account)
            notification.mark_failed("invalid token")
            logger.warning(
                "Push token rejected by relay, purged from account",
                notification_id=str(notification.id),
                recipient_id=str(notification.recipient_id),
            )
        else:
            notification.mark_failed(result.error or "Push delivery failed")
            logger.error(
                "Push delivery failed",
                notification_id=str(notification.id),
                error=result.error,
            )

        notification_repo.add(notification)
        return DeliveryStatus(notification.delivery_status)
