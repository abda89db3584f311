from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger("pvz_api.performance")


def setup_request_timing(app: FastAPI, slow_seconds: float) -> None:
    """
    Measures every request, logs slow ones and adds the X-Response-Time header.
    """

    @app.middleware("http")
    async def request_timing(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed = time.perf_counter() - started
            logger.error(
                f"Request failed: {request.method} {request.url.path} - {elapsed:.2f}s - {exc!r}"
            )
            raise
        elapsed = time.perf_counter() - started
        if elapsed > slow_seconds:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} - "
                f"{elapsed:.2f}s - Status: {response.status_code}"
            )
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response
