"""
Centralized error handling for the pricing processor endpoint and notifications.
Constants and helpers so routes stay thin.
"""
from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

STATUS_INTERNAL_ERROR = 500


class NotificationError(Exception):
    """Outbound notification could not be delivered. Callers log it; never fatal."""


def batch_error_response(exc: Exception, processing_time_ms: int) -> JSONResponse:
    """
    Map an exception that aborted a whole processor run into the 500 JSON body.
    Per-event failures never get here; they are recorded on the event row.
    """
    body: dict[str, Any] = {
        "success": False,
        "error": str(exc) or exc.__class__.__name__,
        "processing_time_ms": processing_time_ms,
    }
    return JSONResponse(status_code=STATUS_INTERNAL_ERROR, content=body)
