"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A priced order was persisted at the end of a checkout submission."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    is_guest = Boolean(default=False)
    total = Float(required=True)
    delivery_fee = Float(required=True)
    points_used = Integer(default=0)
    points_reduction = Float(default=0.0)
    final_total = Float(required=True)
    loyalty_points_pending = Integer(default=0)
    payment_method = String(required=True)
    payment_ref = String()
    status = String(required=True)
    is_paid = Boolean(default=False)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentConfirmed:
    """The gateway reported the order's transaction as successful."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_ref = String(required=True)
    confirmed_at = DateTime(required=True)
