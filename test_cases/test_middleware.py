import threading

import mongomock
import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from app.middleware.auth import (
    LOGIN_URL,
    AuthenticateMiddleware,
    RequireAuthenticationMiddleware,
    resolve_auth_state,
)
from app.middleware.common import SECURE_HEADERS
from app.middleware.sessions import Session, SessionManager, SessionMiddleware
from app.services.auth_service import (
    ANONYMOUS,
    AUTHENTICATED_USER_ID_KEY,
    AuthState,
    get_auth_state,
)
from database.mongo_client import utc_now
from database.session_store import MongoSessionStore


class FakeUsers:
    """Stands in for UserModel.exists"""

    def __init__(self, existing=(), error=None):
        self.existing = set(existing)
        self.error = error
        self.calls = []
        self.threads = []

    def exists(self, user_id):
        self.calls.append(user_id)
        self.threads.append(threading.get_ident())
        if self.error is not None:
            raise self.error
        return user_id in self.existing


@pytest.fixture
def manager():
    db = mongomock.MongoClient()["snippetbox_middleware"]
    return SessionManager(MongoSessionStore(db), secret_key="test-secret")


def make_request(data):
    return Request({"type": "http", "session": Session(None, data, utc_now())})


def make_gated_client(users, manager):
    app = FastAPI()
    handled = []

    @app.get("/protected")
    async def protected(auth: AuthState = Depends(get_auth_state)):
        handled.append(auth.user_id)
        return PlainTextResponse("secret")

    @app.get("/open")
    async def open_page(auth: AuthState = Depends(get_auth_state)):
        return {"user_id": auth.user_id}

    @app.get("/login-as/{user_id}")
    async def login_as(request: Request, user_id: int):
        manager.put(request, AUTHENTICATED_USER_ID_KEY, user_id)
        return {}

    app.add_middleware(RequireAuthenticationMiddleware, protected_routes={"/protected"})
    app.add_middleware(AuthenticateMiddleware, users=users, sessions=manager)
    app.add_middleware(SessionMiddleware, manager=manager)
    return TestClient(app), handled


def test_no_session_user_is_anonymous(manager):
    users = FakeUsers(existing={42})
    assert resolve_auth_state(make_request({}), users, manager) == ANONYMOUS
    assert users.calls == []


def test_existing_user_is_authenticated(manager):
    users = FakeUsers(existing={42})
    auth = resolve_auth_state(make_request({AUTHENTICATED_USER_ID_KEY: 42}), users, manager)
    assert auth == AuthState(user_id=42)
    assert auth.is_authenticated
    assert users.calls == [42]


def test_deleted_user_is_anonymous_and_session_untouched(manager):
    request = make_request({AUTHENTICATED_USER_ID_KEY: 42})
    auth = resolve_auth_state(request, FakeUsers(), manager)
    assert not auth.is_authenticated
    assert request.session[AUTHENTICATED_USER_ID_KEY] == 42


def test_persistence_error_propagates(manager):
    users = FakeUsers(error=RuntimeError("database unavailable"))
    with pytest.raises(RuntimeError):
        resolve_auth_state(make_request({AUTHENTICATED_USER_ID_KEY: 42}), users, manager)


def test_gate_redirects_anonymous_without_running_handler(manager):
    client, handled = make_gated_client(FakeUsers(existing={42}), manager)

    res = client.get("/protected", follow_redirects=False)

    assert res.status_code == 303
    assert res.headers["location"] == LOGIN_URL
    assert handled == []


def test_gate_admits_authenticated_user_with_no_store(manager):
    client, handled = make_gated_client(FakeUsers(existing={42}), manager)
    client.get("/login-as/42")

    res = client.get("/protected", follow_redirects=False)

    assert res.status_code == 200
    assert res.text == "secret"
    assert res.headers["cache-control"] == "no-store"
    assert handled == [42]


def test_gate_redirects_when_user_was_deleted(manager):
    users = FakeUsers(existing={42})
    client, handled = make_gated_client(users, manager)
    client.get("/login-as/42")
    users.existing.clear()

    res = client.get("/protected", follow_redirects=False)

    assert res.status_code == 303
    assert handled == []


def test_unprotected_routes_pass_through(manager):
    client, _ = make_gated_client(FakeUsers(existing={42}), manager)

    res = client.get("/open")
    assert res.json() == {"user_id": 0}
    assert "cache-control" not in res.headers

    client.get("/login-as/42")
    res = client.get("/open")
    assert res.json() == {"user_id": 42}
    assert "cache-control" not in res.headers


def test_gate_matches_paths_exactly(manager):
    client, handled = make_gated_client(FakeUsers(), manager)
    res = client.get("/protected/extra", follow_redirects=False)
    assert res.status_code == 404
    assert handled == []


def test_persistence_error_during_authenticated_request(app, client, signup, login):
    signup()
    login()
    cookie = client.cookies.get("session")

    def fail(user_id):
        raise RuntimeError("database unavailable")

    app.state.users.exists = fail
    with TestClient(app, raise_server_exceptions=False) as other:
        res = other.get("/", headers={"Cookie": f"session={cookie}"})

    assert res.status_code == 500
    assert res.text == "Internal Server Error"
    assert "database unavailable" not in res.text


def test_secure_headers_on_every_response(client):
    for path in ("/", "/snippet/view/999", "/user/login"):
        res = client.get(path)
        for name, value in SECURE_HEADERS.items():
            assert res.headers[name] == value


def test_user_lookup_runs_off_the_event_loop(manager):
    users = FakeUsers(existing={42})
    app = FastAPI()
    loop_threads = []

    @app.get("/login-as/{user_id}")
    async def login_as(request: Request, user_id: int):
        manager.put(request, AUTHENTICATED_USER_ID_KEY, user_id)
        return {}

    @app.get("/whoami")
    async def whoami(auth: AuthState = Depends(get_auth_state)):
        loop_threads.append(threading.get_ident())
        return {"user_id": auth.user_id}

    app.add_middleware(AuthenticateMiddleware, users=users, sessions=manager)
    app.add_middleware(SessionMiddleware, manager=manager)
    client = TestClient(app)

    client.get("/login-as/42")
    assert client.get("/whoami").json() == {"user_id": 42}

    assert users.threads
    assert loop_threads[0] not in users.threads
