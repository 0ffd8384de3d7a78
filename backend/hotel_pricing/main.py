"""
FastAPI app entrypoint.

Dynamic pricing engine: pricing event processor (scheduled every 5 minutes and callable via
POST /pricing/process), price approvals and the real-time pricing cache.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from hotel_pricing.api.routes import pricing
from hotel_pricing.config import settings
from hotel_pricing.core.constants import FALLBACK_CACHE_CLEANUP_JOB_ID, PRICING_PROCESSOR_JOB_ID
from hotel_pricing.scheduler.pricing_processor_job import (
    get_processor_heartbeat,
    run_fallback_cache_cleanup_job,
    run_pricing_processor_job,
)
from hotel_pricing.services.cache import PriceCache
from hotel_pricing.services.notify import WhatsAppNotifier
from hotel_pricing.services.pricing import PriceAdjustmentEngine

logging.getLogger("hotel_pricing").setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    price_cache = PriceCache.from_settings(settings)
    notifier = WhatsAppNotifier.from_settings(settings)
    engine = PriceAdjustmentEngine.from_settings(settings, price_cache, notifier)
    app.state.price_cache = price_cache
    app.state.notifier = notifier
    app.state.pricing_engine = engine

    if os.getenv("PRICING_SCHEDULER_DISABLED", "").lower() not in ("1", "true", "yes"):
        _scheduler.add_job(
            run_pricing_processor_job,
            "interval",
            seconds=settings.pricing_processor_interval_seconds,
            id=PRICING_PROCESSOR_JOB_ID,
            args=[engine],
            max_instances=1,
            coalesce=True,
        )
        _scheduler.add_job(
            run_fallback_cache_cleanup_job,
            "interval",
            seconds=settings.fallback_cleanup_interval_seconds,
            id=FALLBACK_CACHE_CLEANUP_JOB_ID,
            args=[price_cache],
        )
        _scheduler.start()
        app.state.scheduler = _scheduler
        logger.info(
            "Pricing processor scheduled every %ss; Redis at %s:%s",
            settings.pricing_processor_interval_seconds,
            settings.redis_host,
            settings.redis_port,
        )
    yield
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
    price_cache.close()


app = FastAPI(title="Hotel Dynamic Pricing", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the admin dashboard
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_extra = os.getenv("CORS_ORIGINS", "")
if _cors_extra:
    _cors_origins.extend(o.strip() for o in _cors_extra.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pricing.router, prefix="/pricing", tags=["pricing"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Hotel Dynamic Pricing API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "pricing_processor": get_processor_heartbeat()}
