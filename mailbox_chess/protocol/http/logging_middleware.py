from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
_GAME_PATH = re.compile(r"^/api/games/([^/]+)")
_MAX_INBOUND_ID = 128


def _game_id(path: str) -> Optional[str]:
    m = _GAME_PATH.match(path)
    return m.group(1) if m else None


class RequestIDLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, log request/response, and attach header.

    A client-supplied ``x-request-id`` is reused when it is short enough;
    otherwise a UUID4 is generated. Requests that address a game carry its
    ``game_id`` in the log record.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        inbound = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = inbound if 0 < len(inbound) <= _MAX_INBOUND_ID else str(uuid.uuid4())
        request.state.request_id = request_id
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "game_id": _game_id(request.url.path),
        }

        logger.info("request %s %s", request.method, request.url.path, extra=fields)

        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.info(
            "response %d in %dms",
            response.status_code,
            duration_ms,
            extra={**fields, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response
