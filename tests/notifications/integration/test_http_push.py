"""Integration tests for the HTTP push relay adapter against a mocked relay."""

import json

import httpx
import pytest
from notifications.channel.http_push import HttpPushAdapter
from notifications.channel.push_port import PushOutcome

RELAY_URL = "https://relay.example.test/send"


def _adapter(handler):
    return HttpPushAdapter(RELAY_URL, timeout=2.0, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
class TestHttpPushAdapter:
    async def test_accepted_message(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        result = await _adapter(handler).deliver("tok-1", "Nouvelle commande", "Hello", {"order_id": "o1"})

        assert result.ok
        assert seen["body"] == {
            "token": "tok-1",
            "title": "Nouvelle commande",
            "body": "Hello",
            "data": {"order_id": "o1"},
        }

    async def test_unregistered_token(self):
        result = await _adapter(lambda request: httpx.Response(400, text="Token not registered")).deliver(
            "tok-1", "t", "b"
        )
        assert result.outcome is PushOutcome.INVALID_TOKEN

    async def test_server_error(self):
        result = await _adapter(lambda request: httpx.Response(500)).deliver("tok-1", "t", "b")
        assert result.outcome is PushOutcome.ERROR
        assert "500" in result.error

    async def test_unreachable_relay(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        result = await _adapter(handler).deliver("tok-1", "t", "b")
        assert result.outcome is PushOutcome.ERROR
