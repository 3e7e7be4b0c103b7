"""Checkout store: every read and write a submission performs.

``CheckoutStore`` is the port the coordinator awaits on. The default
adapter, ``RepositoryCheckoutStore``, goes through Protean repositories of
the active domain; a remote backend only needs another adapter.
"""

from abc import ABC, abstractmethod

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.add_on import AddOnGroup
from ordering.catalogue.delivery_area import DeliveryArea
from ordering.loyalty.account import LoyaltyAccount
from ordering.loyalty.calculator import LOYALTY_THRESHOLD
from ordering.loyalty.ledger import LedgerTransaction
from ordering.notification.notification import OrderNotification
from ordering.order.order import Order
from ordering.pricing.calculator import AddOnCatalogEntry, catalog_by_id


class CheckoutStore(ABC):
    @abstractmethod
    async def fetch_delivery_areas(self) -> list[DeliveryArea]: ...

    @abstractmethod
    async def fetch_add_on_catalog(self) -> dict[str, AddOnCatalogEntry]: ...

    @abstractmethod
    async def get_or_open_account(self, account_id: str) -> LoyaltyAccount: ...

    @abstractmethod
    async def count_eligible_orders(self, user_id: str) -> int:
        """Orders of ``user_id`` that qualified for loyalty earning."""

    @abstractmethod
    async def save_order(self, order: Order) -> str:
        """Persist a new order and return its id."""

    @abstractmethod
    async def redeem_points(self, account_id: str, points: int, expected_balance: int) -> int:
        """Decrement the balance if it still equals ``expected_balance``. Returns the new balance."""

    @abstractmethod
    async def save_notification(self, notification: OrderNotification) -> None: ...

    @abstractmethod
    async def save_ledger_transaction(self, transaction: LedgerTransaction) -> None: ...


class RepositoryCheckoutStore(CheckoutStore):
    async def fetch_delivery_areas(self) -> list[DeliveryArea]:
        repo = current_domain.repository_for(DeliveryArea)
        return list(repo._dao.query.all().items)

    async def fetch_add_on_catalog(self) -> dict[str, AddOnCatalogEntry]:
        repo = current_domain.repository_for(AddOnGroup)
        return catalog_by_id(group.to_catalog_entry() for group in repo._dao.query.all().items)

    async def get_or_open_account(self, account_id: str) -> LoyaltyAccount:
        repo = current_domain.repository_for(LoyaltyAccount)
        try:
            return repo.get(account_id)
        except ObjectNotFoundError:
            account = LoyaltyAccount.open(account_id)
            repo.add(account)
            return account

    async def count_eligible_orders(self, user_id: str) -> int:
        repo = current_domain.repository_for(Order)
        eligible = repo._dao.query.filter(user_id=user_id, loyalty_eligible=True, total__gte=LOYALTY_THRESHOLD)
        return eligible.all().total

    async def save_order(self, order: Order) -> str:
        current_domain.repository_for(Order).add(order)
        return str(order.id)

    async def redeem_points(self, account_id: str, points: int, expected_balance: int) -> int:
        repo = current_domain.repository_for(LoyaltyAccount)
        account = repo.get(account_id)
        account.redeem(points, expected_balance)
        repo.add(account)
        return account.points_balance

    async def save_notification(self, notification: OrderNotification) -> None:
        current_domain.repository_for(OrderNotification).add(notification)

    async def save_ledger_transaction(self, transaction: LedgerTransaction) -> None:
        current_domain.repository_for(LedgerTransaction).add(transaction)
