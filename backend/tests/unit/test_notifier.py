import json
from datetime import datetime, timezone

import httpx
import pytest

from hotel_pricing.core.errors import NotificationError
from hotel_pricing.services.notify import WhatsAppNotifier, build_approval_message, build_resolution_message
from hotel_pricing.services.notify.messages import format_rupiah

GATEWAY = "https://wa.example.test/send"


def _notifier(handler, token="secret") -> WhatsAppNotifier:
    return WhatsAppNotifier(GATEWAY, api_token=token, transport=httpx.MockTransport(handler))


def test_posts_payload_with_bearer_token():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"sent": True})

    _notifier(handler).notify({"phone": "+62812", "message": "hi", "type": "admin"})

    [request] = requests
    assert str(request.url) == GATEWAY
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"phone": "+62812", "message": "hi", "type": "admin"}


def test_gateway_error_status_raises():
    notifier = _notifier(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(NotificationError, match="502"):
        notifier.notify({"phone": "+62812", "message": "hi"})


def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NotificationError):
        _notifier(handler).notify({"phone": "+62812", "message": "hi"})


def test_unconfigured_or_no_recipient_skips_sending():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    WhatsAppNotifier("", transport=httpx.MockTransport(handler)).notify({"phone": "+62812", "message": "hi"})
    _notifier(handler).notify({"phone": "", "message": "hi"})
    assert calls == []


def test_format_rupiah():
    assert format_rupiah(1250000) == "Rp 1.250.000"
    assert format_rupiah(550000.0) == "Rp 550.000"


def test_approval_message_contents():
    message = build_approval_message(
        hotel_name="Test Hotel",
        room_id="room-1",
        room_name="Deluxe King",
        old_price=500000,
        new_price=425000,
        occupancy_rate=20.0,
        booked_units=2,
        total_allotment=10,
    )
    assert "Hotel: Test Hotel" in message
    assert "DECREASE: 15.0%" in message
    assert "• Old: Rp 500.000" in message
    assert "• Diff: Rp 75.000" in message
    assert "• Booked: 2/10 units" in message
    assert "APPROVE room-1" in message
    assert "REJECT room-1 [reason]" in message
    assert "Expires in 30 minutes" in message


def test_resolution_message():
    message = build_resolution_message(
        room_name="Deluxe King",
        status="rejected",
        change_percentage=30.0,
        old_price=500000,
        new_price=650000,
        reason="too high",
        processed_at=datetime(2026, 3, 10, 9, 5, tzinfo=timezone.utc),
    )
    assert message.startswith("*PRICE CHANGE REJECTED*")
    assert "Change: +30.0%" in message
    assert "Reason: too high" in message
    assert "Processed at: 2026-03-10 09:05 UTC" in message
