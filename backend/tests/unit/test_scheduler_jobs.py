from types import SimpleNamespace

from hotel_pricing.scheduler import pricing_processor_job
from hotel_pricing.services.cache import fallback as fallback_module


class _BrokenSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def query(self, *args, **kwargs):
        raise RuntimeError("database unavailable")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_processor_job_records_heartbeat(monkeypatch, session_factory, pricing_engine, make_event):
    make_event(event_type="manual_trigger")
    monkeypatch.setattr(pricing_processor_job, "SessionLocal", session_factory)

    pricing_processor_job.run_pricing_processor_job(pricing_engine)

    heartbeat = pricing_processor_job.get_processor_heartbeat()
    assert heartbeat["last_error"] is None
    assert heartbeat["last_result"]["events_processed"] == 1
    assert heartbeat["last_started_at"] is not None
    assert heartbeat["last_finished_at"] is not None


def test_processor_job_survives_batch_failure(monkeypatch, pricing_engine):
    session = _BrokenSession()
    monkeypatch.setattr(pricing_processor_job, "SessionLocal", lambda: session)

    pricing_processor_job.run_pricing_processor_job(pricing_engine)

    assert pricing_processor_job.get_processor_heartbeat()["last_error"] == "database unavailable"
    assert session.rolled_back
    assert session.closed


def test_fallback_cleanup_job(monkeypatch, cache):
    clock = SimpleNamespace(now=1_000_000.0)
    monkeypatch.setattr(fallback_module, "time", SimpleNamespace(time=lambda: clock.now))
    cache.fallback.set("pricing:price:a:2026-03-10", 1, ttl_seconds=10)
    cache.fallback.set("pricing:price:b:2026-03-10", 2)
    clock.now += 11

    pricing_processor_job.run_fallback_cache_cleanup_job(cache)

    assert cache.fallback.keys() == ["pricing:price:b:2026-03-10"]
