"""Error responses and the IntelBoardError handler."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .exceptions import IntelBoardError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


async def _handle_intelboard_error(request: Request, exc: IntelBoardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_response(exc.message, exc.status_code)


def register_exception_handlers(app: FastAPI) -> None:
    """Render IntelBoardError subclasses as JSON error bodies."""
    app.add_exception_handler(IntelBoardError, _handle_intelboard_error)
