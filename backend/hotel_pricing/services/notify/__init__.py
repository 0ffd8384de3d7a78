"""Outbound admin notifications (WhatsApp). The engine depends only on the Notifier protocol."""
from hotel_pricing.services.notify.base import Notifier, NullNotifier
from hotel_pricing.services.notify.messages import build_approval_message, build_resolution_message
from hotel_pricing.services.notify.whatsapp import WhatsAppNotifier

__all__ = [
    "Notifier",
    "NullNotifier",
    "WhatsAppNotifier",
    "build_approval_message",
    "build_resolution_message",
]
