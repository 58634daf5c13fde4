from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


class RequestIdFilter(logging.Filter):
    """Ensure every record has a request_id attribute for JSON formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def setup_json_logging(logger_name: str = "echoservice", level: str = "INFO") -> logging.Logger:
    """
    Configure the service logger with JSON line format:

      {"ts":"...","level":"...","msg":"...","request_id":"..."}

    Idempotent: safe to call multiple times. The level is applied on every call.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    fmt = logging.Formatter(
        '{"ts":"%(asctime)s","level":"%(levelname)s","msg":"%(message)s","request_id":"%(request_id)s"}'
    )
    handler.setFormatter(fmt)
    handler.addFilter(RequestIdFilter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def _client(request: Request) -> str:
    return request.client.host if request.client else "-"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an X-Request-ID (incoming header or a fresh UUID4),
    echo it on the response and write one access line when the request ends.
    """

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self.log = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        start = time.monotonic()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["X-Request-ID"] = rid
            return response
        except Exception:
            self.log.exception(
                'unhandled_exception method="%s" path="%s"',
                request.method,
                request.url.path,
                extra={"request_id": rid},
            )
            raise
        finally:
            self.log.info(
                'access method="%s" path="%s" status=%d duration_ms=%d client="%s"',
                request.method,
                request.url.path,
                status,
                int((time.monotonic() - start) * 1000),
                _client(request),
                extra={"request_id": rid},
            )
