"""HTML pages: the guarded drawing page and the login form.

Unauthenticated requests for the drawing page are redirected to the login
form rather than rejected.
"""

import fastapi
from fastapi import responses

from polydraw.core import config, session

router = fastapi.APIRouter(tags=["pages"], include_in_schema=False)

LOGIN_PAGE = """<!doctype html>
<html>
  <head><title>GIS Drawing Tool</title></head>
  <body>
    <form id="login">
      <h1>GIS Drawing Tool</h1>
      <input type="password" name="password" placeholder="Enter password" autofocus>
      <p id="error" hidden>Invalid password</p>
      <button type="submit">Sign In</button>
    </form>
    <script>
      document.getElementById("login").addEventListener("submit", async (e) => {
        e.preventDefault();
        const res = await fetch("/api/auth", {
          method: "POST",
          headers: {"Content-Type": "application/json"},
          body: JSON.stringify({password: e.target.password.value}),
        });
        if (res.ok) { window.location = "/"; }
        else { document.getElementById("error").hidden = false; }
      });
    </script>
  </body>
</html>
"""

MAP_PAGE = """<!doctype html>
<html>
  <head><title>GIS Drawing Tool</title></head>
  <body>
    <div id="map" data-config-url="/api/config" data-polygons-url="/api/polygons"></div>
  </body>
</html>
"""


@router.get("/", response_class=responses.HTMLResponse)
async def index(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> responses.Response:
    """Serve the drawing page, or redirect to the login form."""
    if not session.has_session(request, settings):
        return responses.RedirectResponse("/login", status_code=303)
    return responses.HTMLResponse(MAP_PAGE)


@router.get("/login", response_class=responses.HTMLResponse)
async def login_page() -> responses.HTMLResponse:
    return responses.HTMLResponse(LOGIN_PAGE)
