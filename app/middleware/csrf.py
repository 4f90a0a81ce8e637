"""
CSRF protection backed by the session

A random token is kept in the session and embedded in every form.
State-changing requests must echo it back, in the ``csrf_token`` form
field or the ``X-CSRF-Token`` header.
"""

import hmac
import secrets

from fastapi import HTTPException, Request
from starlette.status import HTTP_400_BAD_REQUEST

from app.core.logger import get_logger

logger = get_logger(__name__)

CSRF_FIELD_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_SESSION_KEY = "csrf_token"

# Methods that mutate state and need CSRF protection
UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def get_csrf_token(request: Request) -> str:
    """Return the session's CSRF token, creating one if needed"""
    token = request.session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        request.session[CSRF_SESSION_KEY] = token
    return token


async def verify_csrf_token(request: Request) -> None:
    """
    Dependency rejecting unsafe requests without a matching CSRF token

    Raises:
        HTTPException: 400 if the token is missing or does not match
    """
    if request.method not in UNSAFE_METHODS:
        return

    expected = request.session.get(CSRF_SESSION_KEY)
    submitted = request.headers.get(CSRF_HEADER_NAME)
    if submitted is None:
        form = await request.form()
        submitted = form.get(CSRF_FIELD_NAME)

    if not expected or not isinstance(submitted, str) or not hmac.compare_digest(submitted, expected):
        logger.warning("CSRF check failed for %s %s", request.method, request.url.path)
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Bad Request")
