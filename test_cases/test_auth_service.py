from datetime import timedelta

import mongomock
import pytest
from fastapi import Request

from app.middleware.sessions import Session, SessionManager
from app.services.auth_service import (
    ANONYMOUS,
    AUTHENTICATED_USER_ID_KEY,
    AuthState,
    get_auth_state,
    login_user,
    logout_user,
)
from database.mongo_client import utc_now
from database.session_store import MongoSessionStore


@pytest.fixture
def store():
    return MongoSessionStore(mongomock.MongoClient()["snippetbox_auth"])


@pytest.fixture
def manager(store):
    return SessionManager(store, secret_key="test-secret")


def stored_request(store, token, data):
    deadline = utc_now() + timedelta(hours=1)
    store.commit(token, data, deadline)
    return Request({"type": "http", "session": Session(token, data, deadline), "state": {}})


def test_anonymous_state():
    assert not ANONYMOUS.is_authenticated
    assert AuthState(user_id=7).is_authenticated


def test_auth_state_defaults_to_anonymous():
    request = Request({"type": "http", "state": {}})
    assert get_auth_state(request) == ANONYMOUS

    request.state.auth = AuthState(user_id=3)
    assert get_auth_state(request).user_id == 3


def test_login_user_renews_token(manager, store):
    request = stored_request(store, "planted", {"csrf_token": "abc"})

    login_user(manager, request, 5)

    assert request.session.token != "planted"
    assert store.find("planted") is None
    assert request.session[AUTHENTICATED_USER_ID_KEY] == 5
    assert request.session["csrf_token"] == "abc"


def test_logout_user_renews_token(manager, store):
    request = stored_request(store, "before", {AUTHENTICATED_USER_ID_KEY: 5})

    logout_user(manager, request)

    assert request.session.token != "before"
    assert store.find("before") is None
    assert AUTHENTICATED_USER_ID_KEY not in request.session


def test_logout_without_login_is_harmless(manager, store):
    request = stored_request(store, "anon", {})

    logout_user(manager, request)
    logout_user(manager, request)

    assert AUTHENTICATED_USER_ID_KEY not in request.session
    assert store.find("anon") is None
