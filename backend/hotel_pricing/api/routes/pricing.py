"""
Pricing API: processor trigger, event enqueue, approvals, cache health, occupancy reads and price quotes.

POST /pricing/process is what the external scheduler (cron webhook) calls; it needs no body.
"""
import logging
import time
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from hotel_pricing.api.deps import get_notifier, get_price_cache, get_pricing_engine
from hotel_pricing.config import settings
from hotel_pricing.core.errors import batch_error_response
from hotel_pricing.db.session import get_db
from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.notify import Notifier
from hotel_pricing.services.pricing import EventType, PriceAdjustmentEngine, enqueue_event, process_pending_events
from hotel_pricing.services.pricing.approvals import (
    approve_price_change,
    count_pending_approvals,
    expire_stale_approvals,
    list_approvals,
    reject_price_change,
)
from hotel_pricing.services.pricing.occupancy import get_occupancy
from hotel_pricing.services.pricing.quotes import quote_price, quote_prices

router = APIRouter()
logger = logging.getLogger(__name__)


# --- Processor ---


@router.post("/process")
def process_events(
    db: Session = Depends(get_db),
    engine: PriceAdjustmentEngine = Depends(get_pricing_engine),
):
    """Run one batch of pending pricing events. 200 with the summary (also for empty runs); 500 if the batch could not start."""
    started = time.monotonic()
    try:
        result = process_pending_events(db, engine)
    except Exception as e:
        logger.exception("Pricing processor error: %s", e)
        db.rollback()
        return batch_error_response(e, int((time.monotonic() - started) * 1000))
    return JSONResponse(
        content={"success": True, "message": result.message(), "result": result.to_dict()},
    )


# --- Events ---


class EnqueueEventRequest(BaseModel):
    room_id: str = Field(..., min_length=1)
    event_type: EventType = EventType.MANUAL_TRIGGER
    priority: int = Field(0, ge=0, le=100)


@router.post("/events")
def create_event(body: EnqueueEventRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Queue a pricing event (manual trigger or upstream without DB access)."""
    row = enqueue_event(db, body.room_id, body.event_type, body.priority)
    return {"ok": True, "id": row.id, "status": row.status}


# --- Approvals ---


class ResolveApprovalRequest(BaseModel):
    resolved_by: str | None = None
    reason: str | None = None


@router.get("/approvals")
def get_approvals(
    db: Session = Depends(get_db),
    status: str | None = Query(None, pattern="^(pending|approved|rejected|expired)$"),
    limit: int = Query(100, ge=1, le=500),
) -> dict[str, Any]:
    approvals = list_approvals(db, status=status, limit=limit)
    return {"approvals": approvals, "count": len(approvals)}


@router.get("/approvals/pending-count")
def get_pending_count(db: Session = Depends(get_db)) -> dict[str, int]:
    return {"pending": count_pending_approvals(db)}


@router.post("/approvals/expire")
def expire_approvals(db: Session = Depends(get_db)) -> dict[str, Any]:
    """Mark pending approvals past expires_at as expired (reads already treat them as expired)."""
    return {"ok": True, "expired": expire_stale_approvals(db)}


@router.post("/approvals/{approval_id}/approve")
def approve(
    approval_id: int,
    body: ResolveApprovalRequest | None = None,
    db: Session = Depends(get_db),
    cache: PriceCache = Depends(get_price_cache),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    body = body or ResolveApprovalRequest()
    return approve_price_change(
        db,
        approval_id,
        resolved_by=body.resolved_by,
        cache=cache,
        notifier=notifier,
        phone=settings.approval_whatsapp_number,
    )


@router.post("/approvals/{approval_id}/reject")
def reject(
    approval_id: int,
    body: ResolveApprovalRequest | None = None,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    body = body or ResolveApprovalRequest()
    return reject_price_change(
        db,
        approval_id,
        resolved_by=body.resolved_by,
        reason=body.reason,
        notifier=notifier,
        phone=settings.approval_whatsapp_number,
    )


# --- Cache & occupancy ---


@router.get("/cache/health")
def cache_health(cache: PriceCache = Depends(get_price_cache)) -> dict[str, Any]:
    healthy = cache.health_check()
    return {"healthy": healthy, "fallback_cache_size": len(cache.fallback)}


@router.get("/cache/stats")
def cache_stats(cache: PriceCache = Depends(get_price_cache)) -> dict[str, Any]:
    return cache.stats()


@router.get("/rooms/{room_id}/occupancy")
def room_occupancy(
    room_id: str,
    day: date | None = Query(None, alias="date"),
    db: Session = Depends(get_db),
    cache: PriceCache = Depends(get_price_cache),
) -> dict[str, Any]:
    day = day or date.today()
    snapshot = get_occupancy(db, cache, room_id, day)
    if snapshot is None:
        return {"ok": False, "error": "occupancy_unavailable", "room_id": room_id, "date": day.isoformat()}
    return {"ok": True, "occupancy": snapshot.to_dict()}


# --- Quotes ---


class QuoteBatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_ids: list[str] = Field(..., min_length=1, max_length=100)
    day: date | None = Field(None, alias="date")
    force_recalculate: bool = False


@router.get("/rooms/{room_id}/price")
def room_price(
    room_id: str,
    day: date | None = Query(None, alias="date"),
    force: bool = Query(False),
    db: Session = Depends(get_db),
    cache: PriceCache = Depends(get_price_cache),
) -> dict[str, Any]:
    """Current occupancy-adjusted price for one room; served from the price cache when fresh."""
    day = day or date.today()
    quote = quote_price(db, cache, room_id, day, force_recalculate=force)
    if quote is None:
        return {"ok": False, "error": "price_unavailable", "room_id": room_id, "date": day.isoformat()}
    return {"ok": True, "quote": quote}


@router.post("/rooms/prices")
def room_prices(
    body: QuoteBatchRequest,
    db: Session = Depends(get_db),
    cache: PriceCache = Depends(get_price_cache),
) -> dict[str, Any]:
    """Quotes for up to 100 rooms: one cache round trip, misses computed and written back together."""
    day = body.day or date.today()
    prices = quote_prices(db, cache, body.room_ids, day, force_recalculate=body.force_recalculate)
    return {"ok": True, "date": day.isoformat(), "prices": prices, "count": len(prices)}
