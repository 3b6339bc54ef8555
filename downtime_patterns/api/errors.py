"""Error mapping for the HTTP layer.

Every failure leaves the API as ``{"error": "<message>"}``:

    InvalidQueryError, RequestValidationError  → 400
    EventSourceError                           → 500
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from downtime_patterns.domain.errors import EventSourceError, InvalidQueryError

logger = logging.getLogger(__name__)


def install_error_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on *app*."""

    @app.exception_handler(InvalidQueryError)
    async def invalid_query(request: Request, exc: InvalidQueryError) -> JSONResponse:
        logger.info("Rejected %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{err['loc'][-1]}: {err['msg']}" for err in exc.errors()
        )
        logger.info("Rejected %s: %s", request.url.path, problems)
        return JSONResponse(status_code=400, content={"error": problems or "invalid request"})

    @app.exception_handler(EventSourceError)
    async def source_failed(request: Request, exc: EventSourceError) -> JSONResponse:
        logger.error("Event source failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})
