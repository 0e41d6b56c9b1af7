from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, cast

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...engine.errors import ChessError, GameOverError, NoLegalMovesError


logger = logging.getLogger(__name__)

_CODES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    422: "unprocessable_entity",
}


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: Optional[List[Dict[str, str]]] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the JSON body shared by every error response.

    ``field_errors`` and ``details`` are omitted when empty.
    """
    body: Dict[str, Any] = {
        "code": code,
        "message": message,
        "type": err_type,
        "request_id": request_id,
    }
    if field_errors:
        body["field_errors"] = field_errors
    if details:
        body["details"] = details
    return {"error": body}


def _status_to_code(status_code: int) -> str:
    if status_code >= 500:
        return "internal_error"
    return _CODES.get(status_code, "error")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _respond(
    request: Request,
    status_code: int,
    message: str,
    err_type: Optional[str] = None,
    **extra: Any,
) -> JSONResponse:
    if err_type is None:
        err_type = "server_error" if status_code >= 500 else "client_error"
    payload = error_envelope(
        code=_status_to_code(status_code),
        message=message,
        err_type=err_type,
        request_id=_request_id(request),
        **extra,
    )
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, HTTPException):
        return await exception_handler(request, exc)
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _respond(request, exc.status_code, detail)


async def chess_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Rule violations: moves in a finished game are 409, bad input is 400.

    ``type`` carries the exception class name so clients can tell an illegal
    move from a malformed FEN.
    """
    err = cast(ChessError, exc)
    details: Optional[Dict[str, Any]] = None
    status_code = status.HTTP_400_BAD_REQUEST
    if isinstance(err, (NoLegalMovesError, GameOverError)):
        status_code = status.HTTP_409_CONFLICT
        details = {"state": err.state.value}
    logger.info(
        "rejected: %s",
        err,
        extra={"request_id": _request_id(request), "error": type(err).__name__},
    )
    return _respond(request, status_code, str(err), type(err).__name__, details=details)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all; never leaks the exception text to the client."""
    if isinstance(exc, HTTPException):
        return await http_exception_handler(request, exc)
    if isinstance(exc, ChessError):
        return await chess_error_handler(request, exc)
    logger.exception("unhandled exception", extra={"request_id": _request_id(request)})
    return _respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    field_errors = [
        {
            "field": ".".join(str(part) for part in e.get("loc", ()) if part is not None),
            "code": e.get("type", "value_error"),
            "message": e.get("msg", "invalid value"),
        }
        for e in cast(RequestValidationError, exc).errors()
    ]
    return _respond(
        request,
        422,
        "Validation error",
        field_errors=field_errors or None,
    )
