"""
Pricing event processor: claim a batch, run each event through its handler, record the outcome.

One call = one run to completion. Each selected event is claimed with a conditional update
(status pending -> processing) right before it is dispatched, so overlapping runs never process
the same event twice. Events are handled sequentially in selection order (priority DESC, created_at ASC).

Per event: success -> processed/completed; exception -> retry_count += 1, status back to pending,
or failed once the retry budget is used up. One failing event never stops the batch.
"""
import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from hotel_pricing.core.constants import MAX_EVENT_RETRIES, PROCESSOR_BATCH_SIZE
from hotel_pricing.models.pricing_event import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_PROCESSING,
    PricingEvent,
)
from hotel_pricing.services.pricing.engine import AdjustmentOutcome, PriceAdjustmentEngine
from hotel_pricing.services.pricing.events import EventType, OCCUPANCY_EVENT_TYPES, parse_event_type

logger = logging.getLogger(__name__)

EventHandler = Callable[[Session, PricingEvent], AdjustmentOutcome]


@dataclass
class ProcessingResult:
    events_processed: int = 0
    prices_updated: int = 0
    approvals_created: int = 0
    errors: int = 0
    processing_time_ms: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    def message(self) -> str:
        if self.events_processed == 0 and self.errors == 0:
            return "No events to process"
        return (
            f"Processed {self.events_processed} events, {self.prices_updated} prices updated, "
            f"{self.approvals_created} approvals created"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def select_pending_event_ids(db: Session, limit: int = PROCESSOR_BATCH_SIZE) -> list[int]:
    """Eligible events (unprocessed, retry budget left, pending) by priority, then age."""
    return [
        row.id
        for row in db.query(PricingEvent.id)
        .filter(
            PricingEvent.processed.is_(False),
            PricingEvent.retry_count < MAX_EVENT_RETRIES,
            PricingEvent.status == STATUS_PENDING,
        )
        .order_by(PricingEvent.priority.desc(), PricingEvent.created_at.asc(), PricingEvent.id.asc())
        .limit(limit)
        .all()
    ]


def claim_event(db: Session, event_id: int, now: datetime) -> PricingEvent | None:
    """UPDATE ... SET status = 'processing' WHERE status = 'pending'. None if another run got it first."""
    updated = (
        db.query(PricingEvent)
        .filter(PricingEvent.id == event_id, PricingEvent.status == STATUS_PENDING)
        .update(
            {PricingEvent.status: STATUS_PROCESSING, PricingEvent.processing_started_at: now},
            synchronize_session=False,
        )
    )
    db.commit()
    if updated != 1:
        return None
    return db.query(PricingEvent).filter(PricingEvent.id == event_id).first()


def claim_batch(
    db: Session,
    limit: int = PROCESSOR_BATCH_SIZE,
    clock: Callable[[], datetime] = _utcnow,
) -> Iterator[PricingEvent]:
    """
    Yield up to `limit` events in selection order, claiming each one only when the caller asks
    for it. A run that dies mid-batch leaves only its in-flight event in 'processing'.
    """
    for event_id in select_pending_event_ids(db, limit):
        event = claim_event(db, event_id, clock())
        if event is None:
            logger.info("Pricing event %s already taken by another run", event_id)
            continue
        yield event


def _noop_handler(db: Session, event: PricingEvent) -> AdjustmentOutcome:
    logger.info("No pricing action for event %s (type %s)", event.id, event.event_type)
    return AdjustmentOutcome.NO_CHANGE


def build_handlers(engine: PriceAdjustmentEngine) -> dict[EventType, EventHandler]:
    """Handler per known event type. Anything missing here (and unknown types) completes as a no-op."""
    handlers: dict[EventType, EventHandler] = {t: engine.process_occupancy_event for t in OCCUPANCY_EVENT_TYPES}
    handlers[EventType.MANUAL_TRIGGER] = _noop_handler
    return handlers


def _mark_completed(db: Session, event: PricingEvent, now: datetime) -> None:
    event.processed = True
    event.status = STATUS_COMPLETED
    event.processing_completed_at = now
    db.commit()


def _mark_failed_attempt(db: Session, event: PricingEvent, exc: Exception) -> None:
    db.rollback()
    event.retry_count = (event.retry_count or 0) + 1
    event.error_message = str(exc) or exc.__class__.__name__
    event.status = STATUS_FAILED if event.retry_count >= MAX_EVENT_RETRIES else STATUS_PENDING
    db.commit()


def process_pending_events(
    db: Session,
    engine: PriceAdjustmentEngine,
    *,
    limit: int = PROCESSOR_BATCH_SIZE,
    clock: Callable[[], datetime] = _utcnow,
) -> ProcessingResult:
    """Run one batch. Exceptions from selecting or claiming propagate (batch-fatal); per-event ones do not."""
    started = time.monotonic()
    result = ProcessingResult()
    handlers = build_handlers(engine)
    for event in claim_batch(db, limit=limit, clock=clock):
        event_id = event.id
        try:
            handler = handlers.get(parse_event_type(event.event_type), _noop_handler)
            logger.debug("Processing event %s (type %s, priority %s)", event_id, event.event_type, event.priority)
            outcome = handler(db, event)
            _mark_completed(db, event, clock())
            result.events_processed += 1
            if outcome is AdjustmentOutcome.PRICE_UPDATED:
                result.prices_updated += 1
            elif outcome is AdjustmentOutcome.APPROVAL_CREATED:
                result.approvals_created += 1
        except Exception as e:
            result.errors += 1
            logger.warning("Error processing pricing event %s: %s", event_id, e, exc_info=True)
            try:
                _mark_failed_attempt(db, event, e)
            except Exception:
                logger.exception("Could not record failure for pricing event %s", event_id)
                db.rollback()

    result.processing_time_ms = int((time.monotonic() - started) * 1000)
    if result.events_processed == 0 and result.errors == 0:
        logger.debug("No unprocessed pricing events")
    else:
        logger.info("Pricing processor completed: %s", result.to_dict())
    return result
