"""Order request: the transient input to a checkout submission.

Frozen dataclasses: once a submission starts, nothing it reads can change
underneath it.
"""

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


def _freeze_add_ons(selected) -> Mapping[str, tuple[int, ...]]:
    return MappingProxyType({str(group): tuple(indices or ()) for group, indices in (selected or {}).items()})


@dataclass(frozen=True)
class CartLine:
    item_id: str
    display_name: str
    unit_price: float | str | None
    quantity: int
    selected_add_ons: Mapping[str, tuple[int, ...]] = field(default_factory=dict)
    restaurant_id: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "selected_add_ons", _freeze_add_ons(self.selected_add_ons))


@dataclass(frozen=True)
class DeliveryAddress:
    area: str | None
    complete_address: str | None
    nickname: str = ""
    city: str = ""
    instructions: str = ""
    phone: str = ""


@dataclass(frozen=True)
class PaymentChoice:
    id: str
    name: str | None
    description: str = ""


@dataclass(frozen=True)
class Contact:
    name: str | None
    phone: str | None


@dataclass(frozen=True)
class OrderRequest:
    cart_lines: tuple[CartLine, ...]
    address: DeliveryAddress | None
    payment_method: PaymentChoice | None
    contact: Contact | None = None
    is_guest: bool = False
    passed_delivery_fee: float | None = None
    use_points: bool = False
    submission_key: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "cart_lines", tuple(self.cart_lines or ()))

    @property
    def guest_id(self) -> str | None:
        if not self.is_guest or self.contact is None or not self.contact.phone:
            return None
        return f"guest-{self.contact.phone}"

    @property
    def restaurant_id(self) -> str | None:
        return next((line.restaurant_id for line in self.cart_lines if line.restaurant_id), None)

    @property
    def label(self) -> str:
        return ", ".join(line.display_name for line in self.cart_lines)

    def fingerprint(self, account_id: str | None) -> str:
        """Key that lets a duplicate tap join a submission still in flight."""
        payload = {
            "account": account_id or self.guest_id,
            "lines": [
                [line.item_id, str(line.unit_price), line.quantity, sorted((k, list(v)) for k, v in line.selected_add_ons.items())]
                for line in self.cart_lines
            ],
            "area": self.address.area if self.address else None,
            "payment": self.payment_method.id if self.payment_method else None,
            "points": self.use_points,
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True, default=str).encode()).hexdigest()[:32]
