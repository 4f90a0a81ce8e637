"""
Authentication service layer
"""

from dataclasses import dataclass

from fastapi import Request

from app.middleware.sessions import SessionManager

AUTHENTICATED_USER_ID_KEY = "authenticatedUserID"


@dataclass(frozen=True)
class AuthState:
    """Authentication outcome for a single request"""

    user_id: int = 0

    @property
    def is_authenticated(self) -> bool:
        return self.user_id != 0


ANONYMOUS = AuthState()


def get_auth_state(request: Request) -> AuthState:
    """
    Dependency returning the request's authentication state

    Args:
        request: FastAPI request object

    Returns:
        The AuthState resolved by AuthenticateMiddleware, or ANONYMOUS
    """
    return getattr(request.state, "auth", ANONYMOUS)


def login_user(sessions: SessionManager, request: Request, user_id: int) -> None:
    """
    Mark the session as belonging to user_id

    The session token is renewed first so a token planted before login
    cannot be reused afterwards.
    """
    sessions.renew_token(request)
    sessions.put(request, AUTHENTICATED_USER_ID_KEY, user_id)


def logout_user(sessions: SessionManager, request: Request) -> None:
    """Renew the session token and drop the authenticated user id"""
    sessions.renew_token(request)
    sessions.remove(request, AUTHENTICATED_USER_ID_KEY)
