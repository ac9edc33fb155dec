import json

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from app.core import PlaylistTransferError, log_warning
from app.services import Services

from ..deps import get_current_user_id, get_services, raise_http
from .schemas import AuthUrlResponse, ConnectionStatus, ExchangeRequest

router = APIRouter()

_CALLBACK_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>{title}</title>
    <style>
      body {{ font-family: Arial, sans-serif; text-align: center; padding: 50px; }}
      .success {{ color: #28a745; }}
      .error {{ color: #dc3545; }}
    </style>
  </head>
  <body>
    <h1 class="{css_class}">{heading}</h1>
    <p>{text}</p>
    <script>
      if (window.opener) {{
        window.opener.postMessage({message}, '*');
      }}
      setTimeout(() => {{ window.close(); }}, {close_after_ms});
    </script>
  </body>
</html>
"""


def _js_literal(value: dict) -> str:
    # Query parameters are attacker-controlled; keep them from closing the <script>.
    return json.dumps(value).replace("<", "\\u003c").replace(">", "\\u003e")


def render_callback_page(
    code: str | None,
    state: str | None,
    error: str | None,
) -> tuple[str, int]:
    """
    HTML for the Spotify redirect popup.

    The page forwards the outcome to the window that opened it and then
    closes itself: {type: "spotify-code", code, state} on success,
    {type: "spotify-error", error} otherwise.
    """
    if error or not code or not state:
        message = {
            "type": "spotify-error",
            "error": error or "Missing code or state",
        }
        page = _CALLBACK_PAGE.format(
            title="Spotify Connection Error",
            css_class="error",
            heading="Connection Failed",
            text=f"Error: {error or 'Missing authorization parameters'}",
            message=_js_literal(message),
            close_after_ms=3000,
        )
        return page, 400

    message = {"type": "spotify-code", "code": code, "state": state}
    page = _CALLBACK_PAGE.format(
        title="Spotify Connected",
        css_class="success",
        heading="✅ Spotify Connected!",
        text="Redirecting back to the app...",
        message=_js_literal(message),
        close_after_ms=1000,
    )
    return page, 200


@router.get("/url", response_model=AuthUrlResponse)
def get_auth_url(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> AuthUrlResponse:
    """
    Spotify authorize URL; `state` carries the caller id back to /exchange.
    """
    return AuthUrlResponse(auth_url=services.connector.auth_url(user_id))


@router.post("/exchange", response_model=ConnectionStatus)
def exchange_code(
    body: ExchangeRequest,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> ConnectionStatus:
    try:
        services.connector.connect(user_id, body.code, body.state)
    except PlaylistTransferError as e:
        raise_http(e)
    return ConnectionStatus(**services.connector.status(user_id))


@router.get("/status", response_model=ConnectionStatus)
def connection_status(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> ConnectionStatus:
    return ConnectionStatus(**services.connector.status(user_id))


@router.delete("")
def disconnect(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> dict:
    removed = services.connector.disconnect(user_id)
    return {"disconnected": removed}


@router.get("/callback", response_class=HTMLResponse)
def auth_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
):
    """
    Spotify redirect target (opened as a popup by the front end).

    Example URLs:
      - /auth/spotify/callback?code=...&state=...
      - /auth/spotify/callback?error=access_denied
    """
    if error:
        log_warning(f"Spotify authorization failed: {error}")
    page, status_code = render_callback_page(code, state, error)
    return HTMLResponse(content=page, status_code=status_code)
