"""Fake push notification adapter: records deliveries for testing."""

from uuid import uuid4

from notifications.channel.push_port import PushOutcome, PushPort, PushResult


class FakePushAdapter(PushPort):
    """Push adapter that records notifications in memory for test assertions."""

    def __init__(self):
        self.sent_pushes: list[dict] = []
        self.invalid_tokens: set[str] = set()
        self.should_succeed = True
        self.failure_reason = "Push delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Push delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def unregister(self, token: str):
        """Make the relay report ``token`` as invalid from now on."""
        self.invalid_tokens.add(token)

    async def deliver(
        self,
        token: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> PushResult:
        if token in self.invalid_tokens:
            return PushResult(outcome=PushOutcome.INVALID_TOKEN, error="Token not registered")

        if not self.should_succeed:
            return PushResult(outcome=PushOutcome.ERROR, error=self.failure_reason)

        self.sent_pushes.append(
            {
                "message_id": f"push-{uuid4().hex[:12]}",
                "token": token,
                "title": title,
                "body": body,
                "data": data,
            }
        )
        return PushResult(outcome=PushOutcome.OK)

    def reset(self):
        """Clear sent pushes (useful between tests)."""
        self.sent_pushes.clear()
        self.invalid_tokens.clear()
        self.should_succeed = True
        self.failure_reason = "Push delivery failed"
