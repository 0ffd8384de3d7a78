"""
Admin WhatsApp messages for price approvals. Prices are IDR, formatted like id-ID (Rp 1.250.000).
"""
from datetime import datetime, timezone

from hotel_pricing.core.constants import APPROVAL_EXPIRY_MINUTES


def format_rupiah(amount: float) -> str:
    return "Rp " + f"{round(amount):,}".replace(",", ".")


def build_approval_message(
    *,
    hotel_name: str,
    room_id: str,
    room_name: str,
    old_price: float,
    new_price: float,
    occupancy_rate: float,
    booked_units: int,
    total_allotment: int,
) -> str:
    """Approval request: direction and %, price details, occupancy trigger, reply keywords."""
    change_percent = (new_price - old_price) / old_price * 100 if old_price else 0.0
    direction = "INCREASE" if change_percent > 0 else "DECREASE"
    lines = [
        "*PRICE CHANGE APPROVAL NEEDED*",
        "",
        f"Hotel: {hotel_name}",
        f"Room: {room_name}",
        f"{direction}: {abs(change_percent):.1f}%",
        "",
        "Price details:",
        f"• Old: {format_rupiah(old_price)}",
        f"• New: {format_rupiah(new_price)}",
        f"• Diff: {format_rupiah(abs(new_price - old_price))}",
        "",
        "Triggered by:",
        f"• Occupancy: {occupancy_rate:.1f}%",
        f"• Booked: {booked_units}/{total_allotment} units",
        "",
        "Reply to approve:",
        f"APPROVE {room_id}",
        "",
        "Reply to reject:",
        f"REJECT {room_id} [reason]",
        "",
        f"Expires in {APPROVAL_EXPIRY_MINUTES} minutes",
        "",
        "_Auto-generated by pricing system_",
    ]
    return "\n".join(lines)


def build_resolution_message(
    *,
    room_name: str,
    status: str,
    change_percentage: float,
    old_price: float,
    new_price: float,
    reason: str | None = None,
    processed_at: datetime | None = None,
) -> str:
    """Confirmation after an approval was approved or rejected."""
    processed_at = processed_at or datetime.now(timezone.utc)
    sign = "+" if new_price >= old_price else "-"
    lines = [
        f"*PRICE CHANGE {status.upper()}*",
        "",
        f"Room: {room_name}",
        f"Change: {sign}{abs(change_percentage):.1f}%",
        f"Old Price: {format_rupiah(old_price)}",
        f"New Price: {format_rupiah(new_price)}",
    ]
    if reason:
        lines.append(f"Reason: {reason}")
    lines.append(f"Processed at: {processed_at.strftime('%Y-%m-%d %H:%M')} UTC")
    return "\n".join(lines)
