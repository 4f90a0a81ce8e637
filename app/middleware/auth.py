"""
Authentication and authorization middleware components
"""

from typing import Iterable

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from app.middleware.sessions import SessionManager
from app.models.users import UserModel
from app.services.auth_service import (
    ANONYMOUS,
    AUTHENTICATED_USER_ID_KEY,
    AuthState,
    get_auth_state,
)

LOGIN_URL = "/user/login"


def resolve_auth_state(request: Request, users: UserModel, sessions: SessionManager) -> AuthState:
    """
    Work out who, if anyone, the request is authenticated as

    Args:
        request: Request whose session has already been loaded
        users: User model used for the existence check
        sessions: Session manager for reading the session

    Returns:
        AuthState for the user id in the session if that user still
        exists, otherwise ANONYMOUS. Persistence errors propagate.
    """
    user_id = sessions.get_int(request, AUTHENTICATED_USER_ID_KEY)
    if user_id == 0:
        return ANONYMOUS

    if users.exists(user_id):
        return AuthState(user_id=user_id)

    # Stale id (user deleted); the session key is left in place
    return ANONYMOUS


class AuthenticateMiddleware(BaseHTTPMiddleware):
    """
    Resolves the authentication state of every request.
    Never rejects a request itself.
    """

    def __init__(self, app, users: UserModel, sessions: SessionManager):
        super().__init__(app)
        self.users = users
        self.sessions = sessions

    async def dispatch(self, request, call_next):
        """
        Attach an AuthState to request.state, then continue

        Args:
            request: The incoming HTTP request
            call_next: Function to call the next middleware/route handler

        Returns:
            HTTP response from the rest of the chain
        """
        request.state.auth = await run_in_threadpool(
            resolve_auth_state, request, self.users, self.sessions
        )
        return await call_next(request)


class RequireAuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Authorization gate for protected routes.
    Redirects unauthenticated users to the login page.
    """

    def __init__(self, app, protected_routes: Iterable[str], login_url: str = LOGIN_URL):
        super().__init__(app)
        # Routes that require authentication
        self.protected_routes = frozenset(protected_routes)
        self.login_url = login_url

    async def dispatch(self, request, call_next):
        """
        Process each request to check authentication

        Args:
            request: The incoming HTTP request
            call_next: Function to call the next middleware/route handler

        Returns:
            HTTP response (either from route handler or redirect to login)
        """
        if request.url.path not in self.protected_routes:
            return await call_next(request)

        if not get_auth_state(request).is_authenticated:
            return RedirectResponse(self.login_url, status_code=HTTP_303_SEE_OTHER)

        # Authenticated pages must not be kept in the browser cache
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        return response
