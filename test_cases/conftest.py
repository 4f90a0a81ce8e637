import re

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app

CSRF_TOKEN_RX = re.compile(r'<input type="hidden" name="csrf_token" value="([^"]+)">')

TEST_PASSWORD = "pa$$word123"


def extract_csrf_token(html):
    match = CSRF_TOKEN_RX.search(html)
    assert match is not None, "no csrf_token field in page"
    return match.group(1)


@pytest.fixture
def db():
    return mongomock.MongoClient()["snippetbox_test"]


@pytest.fixture
def app(db):
    return create_app(db=db, bcrypt_rounds=4)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client):
    def _signup(name="Alice", email="a@example.com", password=TEST_PASSWORD):
        token = extract_csrf_token(client.get("/user/signup").text)
        return client.post(
            "/user/signup",
            data={"name": name, "email": email, "password": password, "csrf_token": token},
            follow_redirects=False,
        )
    return _signup


@pytest.fixture
def login(client):
    def _login(email="a@example.com", password=TEST_PASSWORD):
        token = extract_csrf_token(client.get("/user/login").text)
        return client.post(
            "/user/login",
            data={"email": email, "password": password, "csrf_token": token},
            follow_redirects=False,
        )
    return _login
