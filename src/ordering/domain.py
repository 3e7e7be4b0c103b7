"""Ordering bounded context: order finalization, loyalty ledger and delivery pricing.

Turns a cart plus a delivery address and payment method into a priced,
persisted order. Owns the loyalty accounts and their append-only ledger,
the delivery-area and add-on reference data, and the notification records
drained by the push relay.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
