"""Push channel registry: pluggable push relay adapter.

Uses the fake adapter by default; the HTTP relay adapter is selected when
PUSH_RELAY_URL is set.
"""

from notifications.channel.push_port import PushPort

_current_push: PushPort | None = None


def get_push_channel() -> PushPort:
    """Return the configured push adapter (singleton)."""
    global _current_push
    if _current_push is None:
        from ordering.config import push_relay_url

        relay_url = push_relay_url()
        if relay_url:
            from notifications.channel.http_push import HttpPushAdapter

            _current_push = HttpPushAdapter(relay_url)
        else:
            from notifications.channel.fake_push import FakePushAdapter

            _current_push = FakePushAdapter()
    return _current_push


def set_push_channel(channel: PushPort) -> None:
    """Override the active push adapter (useful for tests)."""
    global _current_push
    _current_push = channel


def reset_push_channel() -> None:
    """Reset to the default adapter."""
    global _current_push
    _current_push = None
