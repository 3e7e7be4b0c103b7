"""Delivery fee resolution by delivery area."""

from collections.abc import Iterable

from ordering.pricing.calculator import price_of

DEFAULT_DELIVERY_FEE = 1000.0


def resolve_fee(area: str | None, catalog: Iterable, override=None) -> float:
    """Return the delivery fee for an area.

    A non-zero override computed upstream wins. Otherwise the area is matched
    case-insensitively against the catalog entries' names; a missing area, an
    empty catalog or an unknown area falls back to the default fee.
    """
    if override is not None and price_of(override) != 0:
        return price_of(override)

    areas = list(catalog or [])
    if not area or not areas:
        return DEFAULT_DELIVERY_FEE

    wanted = area.casefold()
    for entry in areas:
        if (entry.name or "").casefold() == wanted:
            return price_of(entry.fee)

    return DEFAULT_DELIVERY_FEE
