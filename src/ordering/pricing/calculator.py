"""Cart pricing: price parsing and subtotal computation.

Prices arrive either as numbers or as display strings ("2500 FCFA"). Add-on
selections are references into the add-on catalog by group id and option
index; a reference that no longer resolves is priced at zero instead of
failing the order.

Everything in this module is pure: same cart and catalog, same result.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

UNKNOWN_GROUP_LABEL = "Option inconnue"
UNKNOWN_OPTION_LABEL = "Option supprimée"

_NON_NUMERIC = re.compile(r"[^0-9.]")


@dataclass(frozen=True)
class AddOnOption:
    name: str
    price: float | str = 0.0


@dataclass(frozen=True)
class AddOnCatalogEntry:
    """An add-on group as the calculator sees it: an ordered list of options."""

    id: str
    name: str
    options: tuple[AddOnOption, ...] = ()

    def option_at(self, index) -> AddOnOption | None:
        if not isinstance(index, int) or isinstance(index, bool):
            return None
        if index < 0 or index >= len(self.options):
            return None
        return self.options[index]


@dataclass(frozen=True)
class ResolvedAddOn:
    """An add-on selection with its catalog lookup applied."""

    group_id: str
    group_name: str
    index: int
    name: str
    price: float

    def to_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "group_name": self.group_name,
            "index": self.index,
            "name": self.name,
            "price": self.price,
        }


def price_of(value) -> float:
    """Convert a price representation to a number.

    Strings keep only digits and dots before parsing; anything that does not
    parse, and any non-finite number, is worth 0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0

    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned:
            return 0.0
        try:
            parsed = Decimal(cleaned)
        except InvalidOperation:
            return 0.0
        return float(parsed) if parsed.is_finite() else 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    return 0.0


def is_priced(value) -> bool:
    """True when the value carries a finite price, zero included."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        try:
            return bool(cleaned) and Decimal(cleaned).is_finite()
        except InvalidOperation:
            return False
    if isinstance(value, (int, float, Decimal)):
        return math.isfinite(float(value))
    return False


def resolve_add_ons(selected: Mapping[str, Iterable[int]] | None, catalog: Mapping[str, AddOnCatalogEntry]):
    """Resolve a line's add-on selections against the catalog.

    Unknown groups and indices resolve to a sentinel label priced at 0.
    """
    resolved = []
    for group_id, indices in (selected or {}).items():
        entry = catalog.get(group_id)
        for index in indices or ():
            if entry is None:
                resolved.append(ResolvedAddOn(group_id, "", index, UNKNOWN_GROUP_LABEL, 0.0))
                continue

            option = entry.option_at(index)
            if option is None:
                resolved.append(ResolvedAddOn(group_id, entry.name, index, UNKNOWN_OPTION_LABEL, 0.0))
            else:
                resolved.append(ResolvedAddOn(group_id, entry.name, index, option.name, price_of(option.price)))
    return resolved


def line_total(line, catalog: Mapping[str, AddOnCatalogEntry]) -> float:
    """Price of one cart line, add-ons charged once per unit."""
    if not is_priced(line.unit_price):
        return 0.0

    quantity = line.quantity if isinstance(line.quantity, int) and not isinstance(line.quantity, bool) else 0
    if quantity <= 0:
        return 0.0

    unit = price_of(line.unit_price)
    add_ons = math.fsum(add_on.price for add_on in resolve_add_ons(line.selected_add_ons, catalog))
    return (unit + add_ons) * quantity


def cart_subtotal(cart_lines, catalog: Mapping[str, AddOnCatalogEntry]) -> float:
    """Sum of every priced line, before delivery fee and loyalty redemption."""
    return math.fsum(line_total(line, catalog) for line in cart_lines)


def catalog_by_id(entries: Iterable[AddOnCatalogEntry]) -> dict[str, AddOnCatalogEntry]:
    return {entry.id: entry for entry in entries}
