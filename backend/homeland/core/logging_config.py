"""Logging setup and the HTTP audit middleware."""
from __future__ import annotations

import logging
from time import time
from typing import Optional

from fastapi import FastAPI, Request

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

audit_logger = logging.getLogger("homeland.audit")


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger("homeland")
    root.setLevel(level.upper())
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)


def add_audit_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def audit_logger_middleware(request: Request, call_next):  # type: ignore[override]
        start = time()
        response = await call_next(request)
        duration_ms = (time() - start) * 1000
        client_ip: Optional[str] = None
        if request.client:
            client_ip = request.client.host
        audit_logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip or "unknown",
            duration_ms,
        )
        return response
