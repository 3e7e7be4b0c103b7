import pytest
from ordering.catalogue.add_on import AddOnGroup
from ordering.catalogue.delivery_area import DeliveryArea
from ordering.checkout.coordinator import OrderSubmissionCoordinator
from ordering.loyalty.account import LoyaltyAccount
from ordering.order.request import CartLine, Contact, DeliveryAddress, OrderRequest, PaymentChoice
from payments.gateway.fake_adapter import FakeGateway
from protean import current_domain

MOBILE = PaymentChoice(id="payemnt_mobile", name="Paiement Mobile", description="via Orange Money ou MTN Mobile Money")
CASH = PaymentChoice(id="cash_delivery", name="Cash à la Livraison")


@pytest.fixture()
def sauces():
    group = AddOnGroup.create("Sauces", [{"name": "Piment", "price": 200}, {"name": "Arachide", "price": "300 FCFA"}])
    current_domain.repository_for(AddOnGroup).add(group)
    return group


@pytest.fixture()
def delivery_areas():
    repo = current_domain.repository_for(DeliveryArea)
    areas = [DeliveryArea.register("Bastos", 1500), DeliveryArea.register("Mvog-Ada", 800)]
    for area in areas:
        repo.add(area)
    return areas


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def coordinator(gateway, delivery_areas):
    return OrderSubmissionCoordinator(gateway=gateway)


@pytest.fixture()
def make_account():
    def _make(account_id="acc-001", balance=0, push_token=None):
        account = LoyaltyAccount.open(account_id, push_token=push_token)
        if balance:
            account.credit(balance)
        current_domain.repository_for(LoyaltyAccount).add(account)
        return account

    return _make


@pytest.fixture()
def balance_of():
    def _balance(account_id):
        return current_domain.repository_for(LoyaltyAccount).get(account_id).points_balance

    return _balance


@pytest.fixture()
def make_request():
    def _make(
        lines=None,
        area="Bastos",
        payment="cash",
        guest=False,
        use_points=False,
        passed_delivery_fee=None,
        submission_key=None,
    ):
        if lines is None:
            lines = [
                CartLine(
                    item_id="dish-1",
                    display_name="Ndolé",
                    unit_price="3000 FCFA",
                    quantity=2,
                    restaurant_id="resto-1",
                )
            ]
        return OrderRequest(
            cart_lines=lines,
            address=DeliveryAddress(
                area=area,
                complete_address="Rue 1.234, face pharmacie du Soleil",
                nickname="Maison",
                city="Yaoundé",
                phone="677000000",
            ),
            payment_method=MOBILE if payment == "mobile" else CASH,
            contact=Contact(name="Awa", phone="699000000") if guest else None,
            is_guest=guest,
            passed_delivery_fee=passed_delivery_fee,
            use_points=use_points,
            submission_key=submission_key,
        )

    return _make
