"""Protocol for outbound notifications. The engine only needs fire-and-forget delivery."""
from typing import Any, Protocol


class Notifier(Protocol):
    """WhatsApp gateway, log sink, test recorder, etc."""

    def notify(self, payload: dict[str, Any]) -> None:
        """Deliver one message payload ({phone, message, type}). May raise; callers log and continue."""
        ...


class NullNotifier:
    """Drops every payload. Used when no messaging channel is configured."""

    def notify(self, payload: dict[str, Any]) -> None:
        return None
