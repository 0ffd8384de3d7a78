"""
Price approvals: resolve (approve / reject), read-time expiry, expiry sweep, pending count.

Reply parsing (APPROVE <room_id> over WhatsApp) lives with the messaging integration; it ends up
calling approve_price_change / reject_price_change with the approval id.
Actions return {ok: true, ...} or {ok: false, error: ...} like the rest of the API layer.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from hotel_pricing.models.price_approval import (
    APPROVAL_APPROVED,
    APPROVAL_EXPIRED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    PriceApproval,
)
from hotel_pricing.models.pricing_adjustment_log import ADJUSTMENT_MANUAL, PricingAdjustmentLog
from hotel_pricing.models.room import Room
from hotel_pricing.services.cache import CacheKind, PriceCache
from hotel_pricing.services.notify import Notifier, build_resolution_message

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected via WhatsApp"


def _aware(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def is_expired(approval: PriceApproval, now: datetime | None = None) -> bool:
    """Pending approval past expires_at. Resolved approvals never expire."""
    if approval.status != APPROVAL_PENDING:
        return False
    now = now or datetime.now(timezone.utc)
    expires_at = _aware(approval.expires_at)
    return expires_at is not None and expires_at <= now


def effective_status(approval: PriceApproval, now: datetime | None = None) -> str:
    return APPROVAL_EXPIRED if is_expired(approval, now) else approval.status


def approval_to_dict(approval: PriceApproval, now: datetime | None = None) -> dict[str, Any]:
    return {
        "id": approval.id,
        "room_id": approval.room_id,
        "old_price": float(approval.old_price),
        "new_price": float(approval.new_price),
        "price_change_percentage": approval.price_change_percentage,
        "status": effective_status(approval, now),
        "expires_at": _aware(approval.expires_at).isoformat() if approval.expires_at else None,
        "created_at": _aware(approval.created_at).isoformat() if approval.created_at else None,
        "pricing_factors": approval.pricing_factors or {},
        "resolved_by": approval.resolved_by,
        "resolved_at": _aware(approval.resolved_at).isoformat() if approval.resolved_at else None,
        "rejection_reason": approval.rejection_reason,
    }


def _filter_effective_status(q, status: str, now: datetime):
    """Filter on effective status in SQL so LIMIT counts only matching rows."""
    logically_expired = and_(PriceApproval.status == APPROVAL_PENDING, PriceApproval.expires_at <= now)
    if status == APPROVAL_PENDING:
        return q.filter(PriceApproval.status == APPROVAL_PENDING, PriceApproval.expires_at > now)
    if status == APPROVAL_EXPIRED:
        return q.filter(or_(PriceApproval.status == APPROVAL_EXPIRED, logically_expired))
    return q.filter(PriceApproval.status == status)


def list_approvals(db: Session, status: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
    """Newest first. status filters on the effective status, so 'pending' hides logically expired rows."""
    now = datetime.now(timezone.utc)
    q = db.query(PriceApproval)
    if status:
        q = _filter_effective_status(q, status, now)
    rows = q.order_by(PriceApproval.created_at.desc(), PriceApproval.id.desc()).limit(limit).all()
    return [approval_to_dict(r, now) for r in rows]


def count_pending_approvals(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    return _filter_effective_status(db.query(PriceApproval), APPROVAL_PENDING, now).count()


def expire_stale_approvals(db: Session, now: datetime | None = None) -> int:
    """Mark logically expired pending approvals as expired. Returns how many were updated."""
    now = now or datetime.now(timezone.utc)
    rows = db.query(PriceApproval).filter(PriceApproval.status == APPROVAL_PENDING).all()
    expired = [r for r in rows if is_expired(r, now)]
    for r in expired:
        r.status = APPROVAL_EXPIRED
    db.commit()
    if expired:
        logger.info("Expired %s stale price approvals", len(expired))
    return len(expired)


def _load_open_approval(db: Session, approval_id: int, now: datetime) -> tuple[PriceApproval | None, str | None]:
    approval = db.query(PriceApproval).filter(PriceApproval.id == approval_id).first()
    if approval is None:
        return None, "not_found"
    if approval.status != APPROVAL_PENDING:
        return None, f"already_{approval.status}"
    if is_expired(approval, now):
        return None, "expired"
    return approval, None


def _send_confirmation(
    notifier: Notifier | None,
    phone: str,
    approval: PriceApproval,
    room_name: str,
    status: str,
    reason: str | None = None,
) -> None:
    if notifier is None:
        return
    message = build_resolution_message(
        room_name=room_name,
        status=status,
        change_percentage=approval.price_change_percentage,
        old_price=float(approval.old_price),
        new_price=float(approval.new_price),
        reason=reason,
    )
    try:
        notifier.notify({"phone": phone, "message": message, "type": "admin"})
    except Exception as e:
        logger.warning("Confirmation for approval %s failed: %s", approval.id, e)


def approve_price_change(
    db: Session,
    approval_id: int,
    *,
    resolved_by: str | None = None,
    cache: PriceCache | None = None,
    notifier: Notifier | None = None,
    phone: str = "",
) -> dict[str, Any]:
    """Apply the approved price to the room, log it as a manual adjustment, drop today's cached price."""
    now = datetime.now(timezone.utc)
    approval, error = _load_open_approval(db, approval_id, now)
    if approval is None:
        return {"ok": False, "error": error}
    room = db.query(Room).filter(Room.id == approval.room_id).first()
    if room is None:
        return {"ok": False, "error": "room_not_found"}

    room.base_price = approval.new_price
    approval.status = APPROVAL_APPROVED
    approval.resolved_by = resolved_by
    approval.resolved_at = now
    db.add(
        PricingAdjustmentLog(
            room_id=room.id,
            previous_price=approval.old_price,
            new_price=approval.new_price,
            adjustment_reason=f"Approved by {resolved_by or 'admin'}: {approval.price_change_percentage:.1f}% change",
            adjustment_type=ADJUSTMENT_MANUAL,
        )
    )
    db.commit()
    if cache is not None:
        cache.invalidate(CacheKind.PRICE, room.id, now.date())
    logger.info("Price change approved for room %s (approval %s)", room.id, approval.id)
    _send_confirmation(notifier, phone, approval, room.name, APPROVAL_APPROVED)
    return {"ok": True, "id": approval.id, "status": APPROVAL_APPROVED, "new_price": float(approval.new_price)}


def reject_price_change(
    db: Session,
    approval_id: int,
    *,
    resolved_by: str | None = None,
    reason: str | None = None,
    notifier: Notifier | None = None,
    phone: str = "",
) -> dict[str, Any]:
    """Close the approval without touching the room price."""
    now = datetime.now(timezone.utc)
    approval, error = _load_open_approval(db, approval_id, now)
    if approval is None:
        return {"ok": False, "error": error}
    reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
    approval.status = APPROVAL_REJECTED
    approval.resolved_by = resolved_by
    approval.resolved_at = now
    approval.rejection_reason = reason
    db.commit()
    room = db.query(Room).filter(Room.id == approval.room_id).first()
    logger.info("Price change rejected for room %s (approval %s): %s", approval.room_id, approval.id, reason)
    _send_confirmation(notifier, phone, approval, room.name if room else approval.room_id, APPROVAL_REJECTED, reason)
    return {"ok": True, "id": approval.id, "status": APPROVAL_REJECTED, "reason": reason}
