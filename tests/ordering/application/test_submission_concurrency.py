"""Application tests for duplicate and concurrent submissions."""

import asyncio

import pytest
from ordering.checkout.coordinator import SubmissionStage
from ordering.loyalty.ledger import LedgerDirection, LedgerTransaction
from ordering.order.order import Order
from protean import current_domain


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


@pytest.mark.asyncio
class TestDuplicateSubmissions:
    async def test_in_flight_duplicate_joins_first_attempt(self, coordinator, make_request):
        request = make_request()

        first, second = await asyncio.gather(
            coordinator.submit(request, account_id="acc-001"),
            coordinator.submit(request, account_id="acc-001"),
        )

        assert first.order_id == second.order_id
        assert len(_orders()) == 1

    async def test_completed_submission_is_not_repeated(self, coordinator, gateway, make_request):
        request = make_request(payment="mobile", submission_key="tap-1")

        first = await coordinator.submit(request, account_id="acc-001")
        second = await coordinator.submit(request, account_id="acc-001")

        assert second is first
        assert len(_orders()) == 1
        assert len(gateway.calls) == 1

    async def test_reordering_same_cart_later_creates_new_order(self, coordinator, make_request):
        cleared = []

        first = await coordinator.submit(make_request(), account_id="acc-001", clear_cart=lambda: cleared.append(1))
        second = await coordinator.submit(make_request(), account_id="acc-001", clear_cart=lambda: cleared.append(2))

        assert first.order_id != second.order_id
        assert len(_orders()) == 2
        assert cleared == [1, 2]

    async def test_completed_results_are_bounded(self, coordinator, make_request, monkeypatch):
        monkeypatch.setattr("ordering.checkout.coordinator.COMPLETED_RESULTS_LIMIT", 2)

        for key in ("k1", "k2", "k3"):
            await coordinator.submit(make_request(submission_key=key), account_id="acc-001")

        assert list(coordinator._completed) == ["k2", "k3"]

    async def test_account_locks_are_released(self, coordinator, make_request):
        await asyncio.gather(
            coordinator.submit(make_request(submission_key="a"), account_id="acc-001"),
            coordinator.submit(make_request(submission_key="b"), account_id="acc-001"),
        )

        assert coordinator._account_locks == {}
        assert coordinator._lock_holders == {}

    async def test_explicit_key_identifies_submission(self, coordinator, make_request):
        await coordinator.submit(make_request(submission_key="tap-1"), account_id="acc-001")
        await coordinator.submit(make_request(submission_key="tap-1", area="Mvog-Ada"), account_id="acc-001")

        assert len(_orders()) == 1

    async def test_redirect_can_be_retried(self, coordinator, gateway, make_request):
        gateway.configure(mode="redirect")
        request = make_request(payment="mobile")

        first = await coordinator.submit(request, account_id="acc-001")
        second = await coordinator.submit(request, account_id="acc-001")

        assert first.is_redirect and second.is_redirect
        assert len(gateway.calls) == 2
        assert _orders() == []

    async def test_failed_submission_can_be_retried(self, coordinator, gateway, make_request):
        from ordering.checkout.errors import GatewayError

        request = make_request(payment="mobile")
        gateway.configure(mode="fail")
        with pytest.raises(GatewayError):
            await coordinator.submit(request, account_id="acc-001")

        gateway.configure(mode="code")
        result = await coordinator.submit(request, account_id="acc-001")

        assert result.stage is SubmissionStage.DONE


@pytest.mark.asyncio
class TestSameAccountSubmissions:
    async def test_redemptions_are_serialized(self, coordinator, make_request, make_account, balance_of):
        make_account("acc-001", balance=100)

        first, second = await asyncio.gather(
            coordinator.submit(make_request(use_points=True, submission_key="a"), account_id="acc-001"),
            coordinator.submit(make_request(use_points=True, submission_key="b"), account_id="acc-001"),
        )

        assert first.draft.redemption.points_to_use == 75
        assert second.draft.redemption.points_to_use == 25
        assert first.warnings == [] and second.warnings == []
        assert balance_of("acc-001") == 0

    async def test_every_redemption_is_in_ledger(self, coordinator, make_request, make_account):
        make_account("acc-001", balance=100)

        await asyncio.gather(
            coordinator.submit(make_request(use_points=True, submission_key="a"), account_id="acc-001"),
            coordinator.submit(make_request(use_points=True, submission_key="b"), account_id="acc-001"),
        )

        repo = current_domain.repository_for(LedgerTransaction)
        usages = repo._dao.query.filter(direction=LedgerDirection.USAGE.value).all().items
        assert sorted(u.points_amount for u in usages) == [25, 75]

    async def test_different_accounts_do_not_block_each_other(self, coordinator, make_request, make_account, balance_of):
        make_account("acc-001", balance=10)
        make_account("acc-002", balance=10)

        await asyncio.gather(
            coordinator.submit(make_request(use_points=True), account_id="acc-001"),
            coordinator.submit(make_request(use_points=True), account_id="acc-002"),
        )

        assert balance_of("acc-001") == 0
        assert balance_of("acc-002") == 0
