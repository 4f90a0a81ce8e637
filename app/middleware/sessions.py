"""
Server-side sessions

The browser holds only a signed, opaque session token in a cookie; the
session data lives in the session store. The session for the current
request is available as ``request.session`` once SessionMiddleware has
run, and handlers read and write it through the SessionManager.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from itsdangerous import BadSignature, TimestampSigner
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logger import get_logger
from database.mongo_client import utc_now
from database.session_store import MongoSessionStore

logger = get_logger(__name__)


class Session(dict):
    """Session data for one request, plus the token it is stored under"""

    def __init__(self, token: Optional[str], data: Dict[str, Any], deadline: datetime):
        super().__init__(data)
        self.token = token
        self.deadline = deadline
        self._loaded_token = token
        self._loaded_data = dict(data)

    @property
    def token_is_new(self) -> bool:
        """True if the token was issued or renewed during this request"""
        return self.token != self._loaded_token

    @property
    def modified(self) -> bool:
        return self.token != self._loaded_token or dict(self) != self._loaded_data


class SessionManager:
    """
    Loads, mutates and commits sessions

    Args:
        store: Session store collaborator
        secret_key: Key used to sign the token cookie
        lifetime: Absolute session lifetime from creation
        cookie_name: Name of the session cookie
        secure: Only send the cookie over HTTPS
        same_site: SameSite attribute of the cookie
    """

    def __init__(
        self,
        store: MongoSessionStore,
        secret_key: str,
        lifetime: timedelta = timedelta(hours=12),
        cookie_name: str = "session",
        secure: bool = False,
        same_site: str = "lax",
    ):
        self.store = store
        self.lifetime = lifetime
        self.cookie_name = cookie_name
        self.secure = secure
        self.same_site = same_site
        self._signer = TimestampSigner(secret_key)

    def _new_session(self) -> Session:
        return Session(None, {}, utc_now() + self.lifetime)

    def load(self, cookie_value: Optional[str]) -> Session:
        """
        Resolve a cookie value to a session

        Unsigned, tampered, unknown or expired tokens all give a fresh,
        empty session.
        """
        if not cookie_value:
            return self._new_session()

        try:
            token = self._signer.unsign(
                cookie_value, max_age=int(self.lifetime.total_seconds())
            ).decode("utf-8")
        except BadSignature:
            logger.debug("Rejected session cookie with a bad signature")
            return self._new_session()

        found = self.store.find(token)
        if found is None:
            return self._new_session()

        data, deadline = found
        return Session(token, data, deadline)

    def commit(self, session: Session, response: Response) -> None:
        """Persist a modified session and set its cookie on the response"""
        if not session.modified:
            return

        if session.token is None:
            session.token = secrets.token_urlsafe(32)

        # Only new or renewed tokens may create a document; a loaded token
        # deleted meanwhile by a concurrent renewal must stay deleted
        if not self.store.commit(
            session.token, dict(session), session.deadline, upsert=session.token_is_new
        ):
            logger.debug("Session token was removed while the request ran; not saved")
            return

        max_age = max(int((session.deadline - utc_now()).total_seconds()), 0)
        response.set_cookie(
            self.cookie_name,
            self._signer.sign(session.token).decode("utf-8"),
            max_age=max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.same_site,
        )

    def get(self, request: Request, key: str, default: Any = None) -> Any:
        return request.session.get(key, default)

    def get_int(self, request: Request, key: str) -> int:
        """Integer value for key, or 0 when absent or not an integer"""
        value = request.session.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    def put(self, request: Request, key: str, value: Any) -> None:
        request.session[key] = value

    def remove(self, request: Request, key: str) -> None:
        request.session.pop(key, None)

    def pop_string(self, request: Request, key: str) -> str:
        """Return the string for key and delete it from the session"""
        value = request.session.pop(key, "")
        return value if isinstance(value, str) else ""

    def renew_token(self, request: Request) -> None:
        """
        Move the session data to a new token

        The old token is deleted from the store straight away; the new
        one is committed, and its cookie issued, with the response.
        """
        session: Session = request.session
        if session.token is not None:
            self.store.delete(session.token)
        session.token = secrets.token_urlsafe(32)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Session middleware that loads the session before the handler runs
    and commits it once the handler has produced a response
    """

    def __init__(self, app, manager: SessionManager):
        super().__init__(app)
        self.manager = manager

    async def dispatch(self, request, call_next):
        """
        Attach the session to the request scope, then save any changes

        Args:
            request: The incoming HTTP request
            call_next: Function to call the next middleware/route handler

        Returns:
            HTTP response, with a session cookie if the session changed
        """
        session = await run_in_threadpool(
            self.manager.load, request.cookies.get(self.manager.cookie_name)
        )
        request.scope["session"] = session

        response = await call_next(request)

        await run_in_threadpool(self.manager.commit, session, response)
        return response
