"""
Error responses and application-wide exception handlers
"""

import traceback
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from app.core.logger import get_logger
from app.forms.decoder import FormDecodeError

logger = get_logger(__name__)


def client_error(status_code: int) -> PlainTextResponse:
    """Plain-text response carrying the status code's standard phrase"""
    return PlainTextResponse(HTTPStatus(status_code).phrase, status_code=status_code)


def not_found() -> PlainTextResponse:
    return client_error(HTTP_404_NOT_FOUND)


def server_error(exc: BaseException) -> PlainTextResponse:
    """
    Log the error with its traceback and return a generic 500 response

    Args:
        exc: The exception that aborted the request

    Returns:
        500 response that reveals nothing about the failure
    """
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error("%s\n%s", exc, trace)
    response = client_error(HTTP_500_INTERNAL_SERVER_ERROR)
    response.headers["Connection"] = "close"
    return response


async def handle_server_error(request: Request, exc: Exception) -> PlainTextResponse:
    return server_error(exc)


async def handle_form_decode_error(request: Request, exc: FormDecodeError) -> PlainTextResponse:
    logger.info("Bad form submission to %s: %s", request.url.path, exc)
    return client_error(HTTP_400_BAD_REQUEST)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    response = client_error(exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error boundary and client-error handlers on the app"""
    app.add_exception_handler(Exception, handle_server_error)
    app.add_exception_handler(FormDecodeError, handle_form_decode_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
