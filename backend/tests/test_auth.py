"""Tests for the shared-password session gate.

This module covers:
    - Password comparison and signed token issue/verification,
    - The /api/auth login and logout endpoints and the cookie they set,
    - The guarded drawing page redirecting to the login form.

See Also:
    - backend/polydraw/core/session.py for token handling,
    - backend/polydraw/api/auth.py and api/pages.py for the routes.
"""

from __future__ import annotations

import fastapi
import jwt
from fastapi import testclient

from polydraw import main
from polydraw.core import config, session

SECRET = "test-signing-secret-that-is-long-enough-for-hs256"


def _settings(**overrides: object) -> config.Settings:
    values: dict[str, object] = {
        "auth_password": "open-sesame",
        "auth_secret": SECRET,
    }
    values.update(overrides)
    return config.Settings(**values)  # type: ignore[arg-type]


def _make_app(settings: config.Settings) -> fastapi.FastAPI:
    app = main.create_app()
    app.dependency_overrides[config.get_settings] = lambda: settings
    return app


def test_verify_password() -> None:
    """Test password comparison against the configured secret."""
    settings = _settings()
    assert session.verify_password("open-sesame", settings) is True
    assert session.verify_password("wrong", settings) is False
    assert session.verify_password(None, settings) is False


def test_verify_password_without_configured_password() -> None:
    """Test that no password can log in when none is configured."""
    settings = _settings(auth_password=None)
    assert session.verify_password("", settings) is False
    assert session.verify_password("anything", settings) is False


def test_issue_and_verify_token() -> None:
    """Test that an issued token verifies and carries an expiry."""
    settings = _settings()
    token = session.issue_token(settings)
    assert session.verify_token(token, settings) is True
    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["authenticated"] is True
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


def test_verify_token_rejects_bad_tokens() -> None:
    """Test that missing, forged and expired tokens are rejected."""
    settings = _settings()
    assert session.verify_token(None, settings) is False
    assert session.verify_token("", settings) is False
    assert session.verify_token("not.a.token", settings) is False

    forged = session.issue_token(
        _settings(auth_secret="another-secret-that-is-also-long-enough")
    )
    assert session.verify_token(forged, settings) is False

    expired = session.issue_token(_settings(session_max_age_seconds=-60))
    assert session.verify_token(expired, settings) is False


def test_login_sets_session_cookie() -> None:
    """Test that the correct password sets an HTTP-only session cookie."""
    app = _make_app(_settings())
    client = testclient.TestClient(app)
    try:
        response = client.post("/api/auth", json={"password": "open-sesame"})
        assert response.status_code == 200
        assert response.json() == {"success": True}
        cookie_header = response.headers["set-cookie"]
        assert cookie_header.startswith("gis-session=")
        assert "HttpOnly" in cookie_header
        assert "Max-Age=604800" in cookie_header
        assert "samesite=lax" in cookie_header.lower()
        assert "Secure" not in cookie_header
        assert session.verify_token(response.cookies["gis-session"], _settings())
    finally:
        app.dependency_overrides.clear()


def test_login_secure_cookie() -> None:
    """Test that secure_cookies marks the cookie Secure."""
    app = _make_app(_settings(secure_cookies=True))
    client = testclient.TestClient(app)
    try:
        response = client.post("/api/auth", json={"password": "open-sesame"})
        assert "Secure" in response.headers["set-cookie"]
    finally:
        app.dependency_overrides.clear()


def test_login_wrong_password() -> None:
    """Test that a wrong or missing password returns 401."""
    app = _make_app(_settings())
    client = testclient.TestClient(app)
    try:
        response = client.post("/api/auth", json={"password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid password"}
        assert "set-cookie" not in response.headers

        assert client.post("/api/auth", json={}).status_code == 401
    finally:
        app.dependency_overrides.clear()


def test_logout_clears_cookie() -> None:
    """Test that logout expires the session cookie."""
    app = _make_app(_settings())
    client = testclient.TestClient(app)
    try:
        client.post("/api/auth", json={"password": "open-sesame"})
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert 'gis-session=""' in response.headers["set-cookie"]
    finally:
        app.dependency_overrides.clear()


def test_index_redirects_to_login() -> None:
    """Test that the drawing page redirects without a session."""
    app = _make_app(_settings())
    client = testclient.TestClient(app, follow_redirects=False)
    try:
        response = client.get("/")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

        login = client.get("/login")
        assert login.status_code == 200
        assert "password" in login.text
    finally:
        app.dependency_overrides.clear()


def test_index_served_with_session() -> None:
    """Test that the drawing page is served after login."""
    app = _make_app(_settings())
    client = testclient.TestClient(app, follow_redirects=False)
    try:
        client.post("/api/auth", json={"password": "open-sesame"})
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert 'id="map"' in response.text
    finally:
        app.dependency_overrides.clear()
