"""Loyalty crediting: approve a pending grant and move the points to the balance."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.loyalty.account import LoyaltyAccount
from ordering.loyalty.ledger import LedgerTransaction


@ordering.command(part_of="LedgerTransaction")
class CreditLoyaltyPoints:
    """Approve a pending grant transaction and credit its points."""

    transaction_id = Identifier(required=True)


@ordering.command_handler(part_of=LedgerTransaction)
class CreditLoyaltyPointsHandler:
    @handle(CreditLoyaltyPoints)
    def credit_points(self, command):
        ledger_repo = current_domain.repository_for(LedgerTransaction)
        account_repo = current_domain.repository_for(LoyaltyAccount)

        transaction = ledger_repo.get(command.transaction_id)
        transaction.approve()

        try:
            account = account_repo.get(str(transaction.user_id))
        except ObjectNotFoundError:
            account = LoyaltyAccount.open(account_id=str(transaction.user_id))
        account.credit(transaction.points_amount)

        ledger_repo.add(transaction)
        account_repo.add(account)
        return account.points_balance
