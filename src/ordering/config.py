"""Checkout settings read from the environment.

Only values that change between deployments live here. Business constants
(loyalty rates, default delivery fee) stay next to the code that uses them.
"""

import os

DEFAULT_SUCCESS_URL = "https://mangedabord.app/payment/success"
DEFAULT_FAILURE_URL = "https://mangedabord.app/payment/failure"


def checkout_success_url() -> str:
    return os.getenv("CHECKOUT_SUCCESS_URL", DEFAULT_SUCCESS_URL)


def checkout_failure_url() -> str:
    return os.getenv("CHECKOUT_FAILURE_URL", DEFAULT_FAILURE_URL)


def gateway_url() -> str | None:
    """Base URL of the payment gateway proxy, or None to use the in-memory fake."""
    return os.getenv("FLASHPAY_GATEWAY_URL") or None


def gateway_timeout() -> float:
    return float(os.getenv("FLASHPAY_TIMEOUT_SECONDS", "15"))


def push_relay_url() -> str | None:
    """Endpoint of the push-notification relay, or None to use the in-memory fake."""
    return os.getenv("PUSH_RELAY_URL") or None
