"""
FastAPI routes: Spotify OAuth callback, authorize redirect, Telegram webhook.
"""

from __future__ import annotations

import html
import hmac
import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from nowplaying.core.errors import NowPlayingError
from nowplaying.dependencies import (
    get_app_settings,
    get_bot,
    get_credential_store,
    get_spotify_client,
)
from nowplaying.schemas import TelegramUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


_PAGE_STYLE = (
    "display: flex; justify-content: center; align-items: center; "
    "height: 100vh; font-family: Arial;"
)


def _render_success_page(bot_username: str | None) -> str:
    inline_hint = (
        f"<li> Type @{html.escape(bot_username)} in any chat to share the current track</li>"
        if bot_username
        else ""
    )
    return f"""
      <html>
        <body style="{_PAGE_STYLE}">
          <div style="text-align: center;">
            <h2> Authorization Successful!</h2>
            <p>You can now:</p>
            <ul style="list-style: none; padding: 0;">
              <li> Use the /nowplaying command in any chat with the bot</li>
              {inline_hint}
              <li> Just start typing @ and select the bot to share music</li>
            </ul>
            <p>You can close this window and return to Telegram</p>
          </div>
        </body>
      </html>
    """


def _render_error_page(reason: str) -> str:
    return f"""
      <html>
        <body style="{_PAGE_STYLE}">
          <div style="text-align: center;">
            <h2> Authorization Error</h2>
            <p>Error: {html.escape(reason)}</p>
            <p>Please try again using the /start command in Telegram</p>
          </div>
        </body>
      </html>
    """


def _error_response(reason: str) -> HTMLResponse:
    return HTMLResponse(
        content=_render_error_page(reason), status_code=HTTPStatus.BAD_REQUEST
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    store: Annotated[Any, Depends(get_credential_store)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "authorized_users": len(store)}


@router.get("/auth/spotify/authorize", status_code=HTTPStatus.TEMPORARY_REDIRECT)
async def start_spotify_oauth_flow(
    spotify_client: Annotated[Any, Depends(get_spotify_client)],
    user_id: str = Query(..., description="Telegram user id initiating authorization."),
) -> RedirectResponse:
    """Redirect the browser to the Spotify consent screen."""
    authorization_url = spotify_client.build_authorization_url(state=user_id)
    return RedirectResponse(
        url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT
    )


CALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/callback", methods=CALLBACK_METHODS, response_class=HTMLResponse)
async def handle_spotify_oauth_callback(
    spotify_client: Annotated[Any, Depends(get_spotify_client)],
    store: Annotated[Any, Depends(get_credential_store)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: str | None = Query(None, description="Authorization code from Spotify."),
    state: str | None = Query(None, description="Telegram user id passed as state."),
    error: str | None = Query(None, description="Error reported by Spotify."),
) -> HTMLResponse:
    """Complete the authorization-code exchange and store the token pair."""
    if error:
        return _error_response(error)
    if not code or not state:
        return _error_response("Missing required parameters")

    try:
        record = await spotify_client.exchange_authorization_code(code)
        await store.set(state, record)
    except NowPlayingError as exc:
        logger.error("Error getting tokens: %s", exc, extra={"user_id": state})
        return _error_response(str(exc))

    logger.info("User authorized with Spotify", extra={"user_id": state})
    return HTMLResponse(
        content=_render_success_page(settings.telegram.bot_username),
        status_code=HTTPStatus.OK,
    )


@router.post("/integrations/telegram/webhook", status_code=HTTPStatus.OK)
async def telegram_webhook(
    update: TelegramUpdate,
    bot: Annotated[Any, Depends(get_bot)],
    settings: Annotated[Any, Depends(get_app_settings)],
    token: str | None = Query(None, description="Shared secret for verification."),
) -> dict:
    """Feed a webhook-delivered update to the same handlers as polling."""
    expected_token = settings.telegram.webhook_secret or settings.telegram.bot_token
    if not token or not hmac.compare_digest(token, expected_token):
        raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail="Invalid token")

    await bot.dispatch(update)
    return {"status": "ok"}


__all__ = ["router"]
