"""Push notification channel port: abstract interface for push delivery."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class PushOutcome(Enum):
    OK = "ok"
    INVALID_TOKEN = "invalid_token"
    ERROR = "error"


@dataclass(frozen=True)
class PushResult:
    outcome: PushOutcome
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is PushOutcome.OK


class PushPort(ABC):
    """Abstract interface for push notification relay adapters."""

    @abstractmethod
    async def deliver(
        self,
        token: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> PushResult:
        """Hand a notification to the relay.

        Returns a PushResult whose outcome distinguishes an accepted delivery,
        a device token the relay no longer recognises, and any other failure.
        """
        ...
