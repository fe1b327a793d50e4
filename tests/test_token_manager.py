# tests/test_token_manager.py
import pytest
import time
from datetime import timedelta
from flask import Flask
from flask_jwt_extended import JWTManager, decode_token, get_jwt, get_jwt_identity, jwt_required
from portal.security.token_manager import TokenManager


@pytest.fixture
def app():
    app = Flask(__name__)
    app.config['TESTING'] = True
    app.config['JWT_SECRET_KEY'] = "test_secret"
    app.config['JWT_TOKEN_LOCATION'] = ['headers', 'cookies']
    JWTManager(app)

    @app.route("/dashboard")
    @jwt_required()
    def dashboard():
        return f"{get_jwt_identity()}:{get_jwt()['role']}", 200

    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def token_manager(app):
    with app.app_context():
        yield TokenManager()


def test_issue_tokens(token_manager):
    tokens = token_manager.issue_tokens("user5", "admin")
    access = decode_token(tokens["access_token"])
    refresh = decode_token(tokens["refresh_token"])

    assert access["sub"] == "user5"
    assert access["type"] == "access"
    assert access["role"] == "admin"
    assert refresh["type"] == "refresh"
    assert refresh["role"] == "admin"


def test_access_token_authorizes_request(token_manager, client):
    tokens = token_manager.issue_tokens("user3", "petitioner")

    rv = client.get("/dashboard", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert rv.data.decode() == "user3:petitioner"


def test_refresh_token_is_not_an_access_token(token_manager, client):
    tokens = token_manager.issue_tokens("user3", "petitioner")

    rv = client.get("/dashboard", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert rv.status_code == 422


def test_access_token_expiry(token_manager, app, client):
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(seconds=1)
    tokens = token_manager.issue_tokens("user2", "petitioner")
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    assert client.get("/dashboard", headers=headers).status_code == 200
    time.sleep(2)
    assert client.get("/dashboard", headers=headers).status_code == 401


def test_attach_and_clear_cookies(token_manager, app):
    tokens = token_manager.issue_tokens("user4", "petitioner")

    response = token_manager.attach_cookies(app.response_class(), tokens)
    cookies = response.headers.getlist('Set-Cookie')
    assert any(c.startswith('access_token_cookie=') for c in cookies)
    assert any(c.startswith('refresh_token_cookie=') for c in cookies)

    logout_response = token_manager.clear_cookies(app.response_class())
    cookies = logout_response.headers.getlist('Set-Cookie')
    assert any(c.startswith('access_token_cookie=;') for c in cookies)
