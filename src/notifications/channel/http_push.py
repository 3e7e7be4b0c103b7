"""HTTP push relay adapter.

Posts ``{token, title, body, data}`` to the relay service. The relay answers
2xx when the message was accepted and 400 when the device token is no longer
registered; anything else is a delivery failure.
"""

import httpx
import structlog

from notifications.channel.push_port import PushOutcome, PushPort, PushResult

logger = structlog.get_logger(__name__)


class HttpPushAdapter(PushPort):
    def __init__(self, relay_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.relay_url = relay_url
        self.timeout = timeout
        self._transport = transport

    async def deliver(
        self,
        token: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> PushResult:
        payload = {"token": token, "title": title, "body": body, "data": data or {}}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.relay_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Push relay unreachable", relay_url=self.relay_url, error=str(exc))
            return PushResult(outcome=PushOutcome.ERROR, error=str(exc) or type(exc).__name__)

        if response.is_success:
            return PushResult(outcome=PushOutcome.OK)
        if response.status_code == 400:
            return PushResult(outcome=PushOutcome.INVALID_TOKEN, error=response.text or "Invalid token")
        return PushResult(outcome=PushOutcome.ERROR, error=f"Relay answered HTTP {response.status_code}")
