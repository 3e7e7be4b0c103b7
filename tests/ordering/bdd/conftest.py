"""Shared BDD fixtures for checkout pricing scenarios."""

import pytest


@pytest.fixture()
def pricing():
    """Container for the figures a scenario builds up."""
    return {"subtotal": 0, "delivery_fee": 0, "history": 0, "balance": 0, "areas": []}
