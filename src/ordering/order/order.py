"""Order aggregate (CQRS): the persisted outcome of a checkout submission.

An order is written exactly once, fully priced: line items carry their
resolved add-on prices, and the loyalty figures (points spent, reduction,
points pending) are frozen alongside the totals. The only later change is the
payment confirmation reported by the gateway.

Statuses:
    en_attente: waiting for the restaurant (cash on delivery, or nothing left to pay)
    pending: gateway transaction started, payment not yet confirmed
    confirmed: gateway transaction reported successful
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.loyalty.calculator import CREDIT_PER_POINT
from ordering.order.events import OrderPaymentConfirmed, OrderPlaced


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    EN_ATTENTE = "en_attente"
    PENDING = "pending"
    CONFIRMED = "confirmed"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order is delivered, as captured at submission time."""

    nickname = String(max_length=50)
    city = String(max_length=100)
    area = String(required=True, max_length=150)
    complete_address = Text(required=True)
    instructions = Text()
    phone = String(max_length=30)


@ordering.value_object(part_of="Order")
class PaymentMethodInfo:
    method_id = String(required=True, max_length=50)
    name = String(required=True, max_length=100)
    description = String(max_length=255)


@ordering.value_object(part_of="Order")
class ContactInfo:
    name = String(max_length=150)
    phone = String(max_length=30)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A cart line frozen into the order, add-ons resolved against the catalog."""

    item_id = Identifier(required=True)
    item_name = Text(required=True)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    add_ons = Text(default="[]")  # JSON: list of resolved add-on dicts
    line_total = Float(default=0.0)
    restaurant_id = Identifier()

    def add_on_list(self):
        return json.loads(self.add_ons or "[]")


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    is_guest = Boolean(default=False)
    contact = ValueObject(ContactInfo)
    lines = HasMany(OrderLine)
    address = ValueObject(ShippingAddress)
    payment_method = ValueObject(PaymentMethodInfo)
    restaurant_id = Identifier()
    label = Text()

    total = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    points_used = Integer(default=0, min_value=0)
    points_reduction = Float(default=0.0, min_value=0.0)
    final_total = Float(default=0.0, min_value=0.0)
    loyalty_points_pending = Integer(default=0, min_value=0)
    loyalty_eligible = Boolean(default=False)

    status = String(choices=OrderStatus, default=OrderStatus.EN_ATTENTE.value)
    is_paid = Boolean(default=False)
    payment_ref = String(max_length=255)
    timestamp = DateTime()
    paid_at = DateTime()

    @invariant.post
    def reduction_matches_points_used(self):
        if (self.points_reduction or 0.0) != (self.points_used or 0) * CREDIT_PER_POINT:
            raise ValidationError({"points_reduction": ["Reduction must equal points used times the point value"]})

    @invariant.post
    def guest_orders_carry_no_points(self):
        if self.is_guest and (self.points_used or 0) > 0:
            raise ValidationError({"points_used": ["Guest orders cannot redeem points"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        address,
        payment_method,
        pricing,
        status,
        is_paid,
        is_guest=False,
        contact=None,
        payment_ref=None,
        restaurant_id=None,
        label="",
    ):
        """Build a priced order from a validated submission.

        Args:
            lines: list of dicts with item_id, item_name, unit_price, quantity,
                   add_ons (list of resolved add-on dicts), line_total, restaurant_id.
            address: dict with area, complete_address and optional nickname,
                     city, instructions, phone.
            payment_method: dict with method_id, name, description.
            pricing: dict with total, delivery_fee, points_used, points_reduction,
                     final_total, loyalty_points_pending, loyalty_eligible.
        """
        now = datetime.now(UTC)

        order = cls(
            user_id=user_id,
            is_guest=is_guest,
            contact=ContactInfo(**contact) if contact else None,
            address=ShippingAddress(**address),
            payment_method=PaymentMethodInfo(**payment_method),
            restaurant_id=restaurant_id,
            label=label,
            total=pricing["total"],
            delivery_fee=pricing["delivery_fee"],
            points_used=pricing.get("points_used", 0),
            points_reduction=pricing.get("points_reduction", 0.0),
            final_total=pricing["final_total"],
            loyalty_points_pending=pricing.get("loyalty_points_pending", 0),
            loyalty_eligible=pricing.get("loyalty_eligible", False),
            status=status.value if isinstance(status, OrderStatus) else status,
            is_paid=is_paid,
            payment_ref=payment_ref,
            timestamp=now,
        )

        for line in lines:
            order.add_lines(
                OrderLine(
                    item_id=line["item_id"],
                    item_name=line["item_name"],
                    unit_price=line["unit_price"],
                    quantity=line["quantity"],
                    add_ons=json.dumps(line.get("add_ons", [])),
                    line_total=line.get("line_total", 0.0),
                    restaurant_id=line.get("restaurant_id"),
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                is_guest=is_guest,
                total=order.total,
                delivery_fee=order.delivery_fee,
                points_used=order.points_used,
                points_reduction=order.points_reduction,
                final_total=order.final_total,
                loyalty_points_pending=order.loyalty_points_pending,
                payment_method=order.payment_method.method_id,
                payment_ref=payment_ref,
                status=order.status,
                is_paid=is_paid,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Payment confirmation
    # -------------------------------------------------------------------
    def confirm_payment(self, payment_ref=None):
        """Mark a gateway-paid order as paid once the gateway confirms it."""
        if self.is_paid:
            raise ValidationError({"is_paid": ["Order is already paid"]})
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": [f"Cannot confirm payment of an order in {self.status} status"]})

        reference = payment_ref or self.payment_ref
        if not reference:
            raise ValidationError({"payment_ref": ["A payment reference is required"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.is_paid = True
        self.payment_ref = reference
        self.paid_at = now

        self.raise_(
            OrderPaymentConfirmed(
                order_id=str(self.id),
                payment_ref=reference,
                confirmed_at=now,
            )
        )
