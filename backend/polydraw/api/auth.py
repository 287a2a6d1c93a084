"""Login endpoint for the shared-password gate.

Example:
    >>> response = client.post("/api/auth", json={"password": "secret"})
    >>> response.json()
    {'success': True}
"""

import logging

import fastapi
import pydantic
from fastapi import responses

from polydraw.core import config, session

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(pydantic.BaseModel):
    password: str | None = None


@router.post("")
async def login(
    body: LoginRequest,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> responses.JSONResponse:
    """Exchange the shared password for a session cookie.

    On success an HTTP-only, signed session cookie valid for the configured
    lifetime (seven days by default) is set.

    Raises:
        HTTPException: 401 when the password does not match.
    """
    if not session.verify_password(body.password, settings):
        logger.info("Rejected login attempt")
        raise fastapi.HTTPException(status_code=401, detail="Invalid password")

    response = responses.JSONResponse({"success": True})
    response.set_cookie(
        settings.session_cookie_name,
        session.issue_token(settings),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )
    return response


@router.post("/logout")
async def logout(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> responses.JSONResponse:
    """Clear the session cookie."""
    response = responses.JSONResponse({"success": True})
    response.delete_cookie(settings.session_cookie_name)
    return response
