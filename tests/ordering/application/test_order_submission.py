"""Application tests for the checkout pipeline's successful paths."""

import pytest
from ordering.checkout.coordinator import SubmissionStage
from ordering.loyalty.ledger import LedgerDirection, LedgerStatus, LedgerTransaction
from ordering.notification.notification import OrderNotification
from ordering.order.order import Order, OrderStatus
from ordering.order.request import CartLine
from protean import current_domain


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def _ledger(direction):
    repo = current_domain.repository_for(LedgerTransaction)
    return repo._dao.query.filter(direction=direction.value).all().items


def _notifications():
    return current_domain.repository_for(OrderNotification)._dao.query.all().items


@pytest.mark.asyncio
class TestCashOnDelivery:
    async def test_order_is_priced_and_persisted(self, coordinator, make_request):
        result = await coordinator.submit(make_request(), account_id="acc-001")

        assert result.stage is SubmissionStage.DONE
        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.total == 6000.0
        assert order.delivery_fee == 1500.0
        assert order.final_total == 7500.0
        assert order.status == OrderStatus.EN_ATTENTE.value
        assert order.is_paid is False
        assert order.payment_ref is None
        assert order.label == "Ndolé"
        assert order.restaurant_id == "resto-1"

    async def test_gateway_is_not_called(self, coordinator, gateway, make_request):
        await coordinator.submit(make_request(), account_id="acc-001")
        assert gateway.calls == []

    async def test_first_eligible_order_earns_first_rate(self, coordinator, make_request):
        result = await coordinator.submit(make_request(), account_id="acc-001")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.loyalty_eligible is True
        assert order.loyalty_points_pending == 6

        [grant] = _ledger(LedgerDirection.GRANT)
        assert grant.points_amount == 6
        assert grant.status == LedgerStatus.PENDING.value
        assert grant.message == f"Points earned for order #{result.order_id[-6:]}"

    async def test_later_orders_earn_normal_rate(self, coordinator, make_request):
        for key in ("first", "second"):
            await coordinator.submit(make_request(submission_key=key), account_id="acc-001")

        result = await coordinator.submit(make_request(submission_key="third"), account_id="acc-001")
        assert result.draft.points_earned == 3

    async def test_small_orders_earn_nothing(self, coordinator, make_request):
        lines = [CartLine(item_id="dish-2", display_name="Beignets", unit_price=500, quantity=2)]
        result = await coordinator.submit(make_request(lines=lines), account_id="acc-001")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.loyalty_eligible is False
        assert order.loyalty_points_pending == 0
        assert _ledger(LedgerDirection.GRANT) == []

    async def test_notification_is_recorded_for_restaurant(self, coordinator, make_request):
        result = await coordinator.submit(make_request(), account_id="acc-001")

        [notification] = _notifications()
        assert notification.recipient_id == "resto-1"
        assert notification.message == f"Nouvelle commande #{result.order_id[:6]} reçue"
        assert notification.new_status == OrderStatus.EN_ATTENTE.value
        assert notification.item_names == "Ndolé"

    async def test_cart_is_cleared(self, coordinator, make_request):
        cleared = []
        await coordinator.submit(make_request(), account_id="acc-001", clear_cart=lambda: cleared.append(True))
        assert cleared == [True]


@pytest.mark.asyncio
class TestPricingInputs:
    async def test_add_ons_are_priced_and_snapshotted(self, coordinator, make_request, sauces):
        lines = [
            CartLine(
                item_id="dish-1",
                display_name="Poisson braisé",
                unit_price=3000,
                quantity=2,
                selected_add_ons={str(sauces.id): [0, 1]},
            )
        ]
        result = await coordinator.submit(make_request(lines=lines), account_id="acc-001")

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.total == 7000.0
        add_ons = order.lines[0].add_on_list()
        assert [(a["name"], a["price"]) for a in add_ons] == [("Piment", 200.0), ("Arachide", 300.0)]

    async def test_unknown_area_uses_default_fee(self, coordinator, make_request):
        result = await coordinator.submit(make_request(area="Biyem-Assi"), account_id="acc-001")
        assert result.draft.delivery_fee == 1000.0

    async def test_passed_delivery_fee_wins(self, coordinator, make_request):
        result = await coordinator.submit(make_request(passed_delivery_fee=2000), account_id="acc-001")
        assert result.draft.delivery_fee == 2000.0

    async def test_large_cart_with_long_names_is_persisted(self, coordinator, make_request):
        lines = [
            CartLine(
                item_id=f"dish-{i}",
                display_name=f"Poulet DG grand format, plantains mûrs et légumes sautés maison n°{i}",
                unit_price=2500,
                quantity=1,
                restaurant_id="resto-1",
            )
            for i in range(30)
        ]

        result = await coordinator.submit(make_request(lines=lines), account_id="acc-001")

        assert result.stage is SubmissionStage.DONE
        order = current_domain.repository_for(Order).get(result.order_id)
        assert len(order.label) > 1000
        assert len(order.lines) == 30
        [notification] = _notifications()
        assert notification.item_names == order.label


@pytest.mark.asyncio
class TestGatewayPayment:
    async def test_inline_code_persists_pending_order(self, coordinator, gateway, make_request):
        gateway.configure(mode="code")

        result = await coordinator.submit(make_request(payment="mobile"), account_id="acc-001")

        assert result.stage is SubmissionStage.DONE
        assert result.redirect_url is None
        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.is_paid is False
        assert order.payment_ref == result.payment_ref
        assert order.payment_ref.startswith("fake_trx_")

    async def test_gateway_is_asked_for_final_total(self, coordinator, gateway, make_request):
        await coordinator.submit(make_request(payment="mobile"), account_id="acc-001")

        [call] = gateway.calls
        assert call["action"] == "initTrx"
        assert call["amount"] == 7500.0
        assert call["successUrl"].endswith("/payment/success")

    async def test_redirect_ends_without_persisting(self, coordinator, gateway, make_request):
        gateway.configure(mode="redirect")
        cleared = []

        result = await coordinator.submit(
            make_request(payment="mobile"),
            account_id="acc-001",
            clear_cart=lambda: cleared.append(True),
        )

        assert result.is_redirect
        assert result.redirect_url.startswith("https://pay.example.test/")
        assert result.order_id is None
        assert result.draft.final_total == 7500.0
        assert _orders() == []
        assert _notifications() == []
        assert cleared == []

    async def test_fully_redeemed_order_skips_gateway(self, coordinator, gateway, make_request, make_account, balance_of):
        make_account("acc-001", balance=100)

        result = await coordinator.submit(make_request(payment="mobile", use_points=True), account_id="acc-001")

        assert gateway.calls == []
        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.points_used == 75
        assert order.points_reduction == 7500.0
        assert order.final_total == 0.0
        assert order.status == OrderStatus.EN_ATTENTE.value
        assert order.is_paid is True
        assert balance_of("acc-001") == 25


@pytest.mark.asyncio
class TestPointsRedemption:
    async def test_redemption_clears_small_order(self, coordinator, make_request, make_account, balance_of):
        make_account("acc-001", balance=50)
        lines = [CartLine(item_id="dish-1", display_name="Ndolé", unit_price=3000, quantity=1)]

        result = await coordinator.submit(
            make_request(lines=lines, area="Biyem-Assi", use_points=True),
            account_id="acc-001",
        )

        order = current_domain.repository_for(Order).get(result.order_id)
        assert (order.total, order.delivery_fee) == (3000.0, 1000.0)
        assert order.points_used == 40
        assert order.points_reduction == 4000.0
        assert order.final_total == 0.0
        assert balance_of("acc-001") == 10

    async def test_usage_is_recorded_in_ledger(self, coordinator, make_request, make_account):
        make_account("acc-001", balance=20)

        result = await coordinator.submit(make_request(use_points=True), account_id="acc-001")

        [usage] = _ledger(LedgerDirection.USAGE)
        assert usage.points_amount == 20
        assert usage.order_id == result.order_id
        assert usage.message == f"Points used for order #{result.order_id[-6:]}"

    async def test_notification_discloses_redemption(self, coordinator, make_request, make_account):
        make_account("acc-001", balance=20)

        await coordinator.submit(make_request(use_points=True), account_id="acc-001")

        [notification] = _notifications()
        assert "(20 points utilisés, réduction de 2 000 FCFA)" in notification.message

    async def test_points_not_requested_leave_balance_alone(self, coordinator, make_request, make_account, balance_of):
        make_account("acc-001", balance=20)

        result = await coordinator.submit(make_request(), account_id="acc-001")

        assert result.draft.redemption.points_to_use == 0
        assert balance_of("acc-001") == 20
        assert _ledger(LedgerDirection.USAGE) == []

    async def test_first_redemption_opens_account(self, coordinator, make_request, balance_of):
        result = await coordinator.submit(make_request(use_points=True), account_id="acc-new")

        assert result.draft.redemption.points_to_use == 0
        assert balance_of("acc-new") == 0


@pytest.mark.asyncio
class TestGuestCheckout:
    async def test_guest_order_is_attributed_to_phone(self, coordinator, make_request):
        result = await coordinator.submit(make_request(guest=True))

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.user_id == "guest-699000000"
        assert order.is_guest is True
        assert order.contact.name == "Awa"

    async def test_guest_never_touches_loyalty(self, coordinator, make_request):
        from ordering.loyalty.account import LoyaltyAccount

        result = await coordinator.submit(make_request(guest=True, use_points=True))

        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.points_used == 0
        assert order.loyalty_eligible is False
        assert current_domain.repository_for(LoyaltyAccount)._dao.query.all().items == []
        assert _ledger(LedgerDirection.GRANT) == []
        assert _ledger(LedgerDirection.USAGE) == []
