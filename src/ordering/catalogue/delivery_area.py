"""Delivery area aggregate: reference data read by the delivery fee resolver."""

from protean.exceptions import ValidationError
from protean.fields import Float, String

from ordering.domain import ordering


@ordering.aggregate
class DeliveryArea:
    """A named neighbourhood and the flat fee charged to deliver there."""

    name = String(required=True, max_length=150)
    fee = Float(required=True, min_value=0.0)

    @classmethod
    def register(cls, name, fee):
        if not name or not name.strip():
            raise ValidationError({"name": ["Delivery area name is required"]})
        return cls(name=name.strip(), fee=fee)
