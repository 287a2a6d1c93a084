"""Shared-password session gate.

A successful login issues an HS256-signed token stored in an HTTP-only
cookie. Protected API routes depend on ``require_session``; the HTML page
route uses ``has_session`` and redirects to the login form instead.

Example:
    Guard a router:
        >>> router = fastapi.APIRouter(
        ...     dependencies=[fastapi.Depends(session.require_session)],
        ... )
"""

from __future__ import annotations

import datetime
import hmac
import logging

import fastapi
import jwt

from polydraw.core import config

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def issue_token(settings: config.Settings) -> str:
    """Create a signed session token valid for the configured lifetime."""
    now = datetime.datetime.now(datetime.UTC)
    claims = {
        "authenticated": True,
        "iat": now,
        "exp": now + datetime.timedelta(seconds=settings.session_max_age_seconds),
    }
    return jwt.encode(claims, settings.auth_secret, algorithm=ALGORITHM)


def verify_token(token: str | None, settings: config.Settings) -> bool:
    """Check a session token's signature and expiry.

    Args:
        token: Raw token from the session cookie.
        settings: Application settings holding the signing secret.

    Returns:
        True when the token is well formed, correctly signed and unexpired.
    """
    if not token:
        return False
    try:
        claims = jwt.decode(token, settings.auth_secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        logger.debug("Rejected session token: %s", exc)
        return False
    return bool(claims.get("authenticated"))


def verify_password(password: str | None, settings: config.Settings) -> bool:
    """Compare a submitted password against the shared team password."""
    if not settings.auth_password or password is None:
        return False
    return hmac.compare_digest(
        password.encode("utf-8"),
        settings.auth_password.encode("utf-8"),
    )


def has_session(request: fastapi.Request, settings: config.Settings) -> bool:
    """Return whether the request carries a valid session cookie."""
    return verify_token(request.cookies.get(settings.session_cookie_name), settings)


def require_session(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> None:
    """FastAPI dependency rejecting requests without a valid session.

    Raises:
        HTTPException: 401 when the session cookie is missing or invalid.
    """
    if not has_session(request, settings):
        raise fastapi.HTTPException(status_code=401, detail="Unauthorized")
