"""Checkout failures.

Every fatal failure of a submission is a ``SubmissionError`` carrying a
machine-readable ``code`` and a French ``user_message`` ready to show the
customer. ``ReconciliationWarning`` is the odd one out: it describes a
best-effort step that went wrong after the order was written, and is only
ever logged.
"""


class SubmissionError(Exception):
    code = "submission_failed"
    default_message = "Erreur lors de la commande. Veuillez réessayer."
    stage = None  # set by the coordinator when a submission is rejected
    gate = None

    def __init__(self, user_message: str | None = None, *, detail: str | None = None):
        self.user_message = user_message or self.default_message
        self.detail = detail
        super().__init__(detail or self.user_message)


class OrderValidationError(SubmissionError):
    code = "invalid_order"
    default_message = "Certaines informations de la commande sont manquantes ou invalides."

    def __init__(self, errors: dict[str, list[str]], user_message: str | None = None):
        self.errors = errors
        super().__init__(user_message, detail=f"Invalid order: {sorted(errors)}")


class ConnectivityError(SubmissionError):
    code = "offline"
    default_message = "Pas de connexion internet. Vérifiez votre connexion puis réessayez le paiement."


class GatewayError(SubmissionError):
    code = "gateway_failed"
    default_message = "Le paiement n'a pas pu être initié. Veuillez réessayer."

    def __init__(self, user_message: str | None = None, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(user_message, detail=user_message)


class PersistenceError(SubmissionError):
    default_message = "Erreur lors de l'enregistrement de la commande."
    offline_message = "Connexion perdue pendant l'enregistrement de la commande. Veuillez réessayer."

    def __init__(self, user_message: str | None = None, *, offline: bool = False, detail: str | None = None):
        self.offline = offline
        if user_message is None and offline:
            user_message = self.offline_message
        super().__init__(user_message, detail=detail)

    @property
    def code(self) -> str:
        return "persistence_offline" if self.offline else "persistence_failed"


class ReconciliationWarning(UserWarning):
    """A post-write step (points, ledger, notification) failed."""

    def __init__(self, step: str, order_id: str, error: BaseException):
        self.step = step
        self.order_id = order_id
        self.error = error
        super().__init__(f"{step} failed for order {order_id}: {error}")
