"""
JSON error bodies and the exception handlers that produce them.

Every error response has the shape {"error": str, "gameOver": bool} with an
optional "stack" in development. Validation and domain errors map to 400.
"""

from __future__ import annotations

import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from engine.errors import IllegalMoveError, InvalidFenError

INVALID_JSON = "Invalid JSON in request body"
INVALID_BODY = "Invalid request body"
FEN_REQUIRED = "FEN string is required"


class BadRequestError(Exception):
    """Client error detected by a route handler (HTTP 400)."""


def format_error(
    message: str,
    *,
    game_over: bool = False,
    exc: Optional[BaseException] = None,
    include_stack: bool = False,
) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message, "gameOver": game_over}
    if include_stack and exc is not None:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def error_response(status_code: int, message: str, **kwargs: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=format_error(message, **kwargs))


async def bad_request_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(400, str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        return error_response(400, INVALID_JSON)
    return error_response(400, INVALID_BODY)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    for exc_type in (BadRequestError, InvalidFenError, IllegalMoveError):
        app.add_exception_handler(exc_type, bad_request_handler)
