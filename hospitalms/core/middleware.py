# hospitalms/core/middleware.py
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("hospitalms.http")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the process.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("uvicorn").setLevel(level.upper())
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line when a request starts and one when it finishes,
    with status code and elapsed time.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        logger.debug("-> %s %s from %s", request.method, request.url.path, client)

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start
            logger.error(
                "!! %s %s failed after %.3fs",
                request.method,
                request.url.path,
                elapsed,
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - start
        logger.info(
            "<- %s %s %s %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response
