"""
trok/core/middleware.py

Purpose: HTTP middleware

- Request logging (method, path, status, duration, size)
- HTTP parameter pollution protection
- Process time header and slow request warnings
"""

import time
import uuid
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from starlette.datastructures import QueryParams
from trok.core.logging import get_logger, LogContext

logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 5.0


def collapse_query_params(query_params: QueryParams) -> str:
    """
    Rebuilds a query string keeping only the last value of every repeated key.

    ?step=2&step=3 becomes ?step=3, so handlers never receive a list where
    they expect a single value.
    """
    collapsed = {}
    for key, value in query_params.multi_items():
        collapsed[key] = value
    return urlencode(collapsed)


def add_middleware(app: FastAPI):
    """
    Registers request-level middleware with the FastAPI app.
    """

    @app.middleware("http")
    async def parameter_pollution_guard(request: Request, call_next):
        keys = [key for key, _ in request.query_params.multi_items()]
        if len(keys) != len(set(keys)):
            polluted = sorted({key for key in keys if keys.count(key) > 1})
            logger.warning(f"Collapsing repeated query parameters: {polluted}")
            query_string = collapse_query_params(request.query_params)
            # Downstream handlers rebuild their Request from this scope
            request.scope["query_string"] = query_string.encode("latin-1")
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Logs every request and adds the processing time header."""
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        start_time = time.time()

        with LogContext(request_id=request_id):
            response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id

        size = response.headers.get("content-length", "-")
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{process_time * 1000:.3f} ms - {size}",
            extra={"request_id": request_id}
        )

        if process_time > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time": process_time, "request_id": request_id}
            )

        return response
