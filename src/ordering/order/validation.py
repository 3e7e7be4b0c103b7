"""Structural checks an order request must pass before any pricing work."""

from ordering.pricing.calculator import is_priced


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validation_errors(order) -> dict[str, list[str]]:
    """Collect field-level defects, keyed the way protean ValidationError reports them."""
    errors: dict[str, list[str]] = {}

    def add(key, message):
        errors.setdefault(key, []).append(message)

    if not order.cart_lines:
        add("cart_lines", "Le panier est vide")

    for position, line in enumerate(order.cart_lines):
        key = f"cart_lines[{position}]"
        if _blank(line.item_id):
            add(key, "Identifiant de l'article manquant")
        if _blank(line.display_name):
            add(key, "Nom de l'article manquant")
        if not is_priced(line.unit_price):
            add(key, "Prix de l'article invalide")
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            add(key, "La quantité doit être d'au moins 1")

    if order.address is None:
        add("address", "Adresse de livraison manquante")
    else:
        if _blank(order.address.area):
            add("address", "Quartier de livraison manquant")
        if _blank(order.address.complete_address):
            add("address", "Adresse complète manquante")

    if order.payment_method is None or _blank(order.payment_method.name):
        add("payment_method", "Moyen de paiement manquant")

    if order.is_guest:
        if order.contact is None or _blank(order.contact.name):
            add("contact", "Nom du contact requis pour une commande invité")
        if order.contact is None or _blank(order.contact.phone):
            add("contact", "Téléphone du contact requis pour une commande invité")

    return errors


def is_valid(order) -> bool:
    return not validation_errors(order)
