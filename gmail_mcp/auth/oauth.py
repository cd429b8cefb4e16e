"""OAuth2 credential storage and the authorization-code flow for the Gmail API."""

import json
import logging
from typing import Any

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow, InstalledAppFlow

from gmail_mcp.config import Settings

logger = logging.getLogger(__name__)

SCOPES: list[str] = [
    "https://www.googleapis.com/auth/gmail.readonly",        # read messages
    "https://www.googleapis.com/auth/gmail.compose",         # create drafts
    "https://www.googleapis.com/auth/gmail.modify",          # change labels
    "https://www.googleapis.com/auth/gmail.settings.basic",  # read/create filters
]


class AuthError(Exception):
    """Raised when OAuth client config is missing or a code exchange fails."""


# ── Stored files ───────────────────────────────────────────────────────────────


def load_client_config(settings: Settings) -> dict[str, Any] | None:
    """Return the parsed credentials.json, or None if it is absent or unreadable.

    Google issues either an ``installed`` (desktop) or a ``web`` client.
    """
    path = settings.credentials_path
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read credentials file %s: %s", path, exc)
        return None
    if not isinstance(data, dict) or not ("installed" in data or "web" in data):
        logger.warning("Credentials file %s has no 'installed' or 'web' client", path)
        return None
    return data


def save_token(settings: Settings, credentials: Credentials) -> None:
    settings.token_path.parent.mkdir(parents=True, exist_ok=True)
    settings.token_path.write_text(credentials.to_json(), encoding="utf-8")
    logger.info("Saved OAuth token to %s", settings.token_path)


def load_credentials(settings: Settings) -> Credentials | None:
    """Return usable credentials from the stored token, refreshing if expired.

    Returns None when there is no client config, no token, or the token can
    no longer be refreshed.
    """
    if load_client_config(settings) is None:
        logger.info("No credentials.json found at %s", settings.credentials_path)
        return None
    if not settings.token_path.exists():
        return None

    try:
        creds = Credentials.from_authorized_user_file(str(settings.token_path), SCOPES)
    except (ValueError, OSError) as exc:
        logger.warning("Could not load token %s: %s", settings.token_path, exc)
        return None

    if creds.valid:
        return creds
    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except (RefreshError, GoogleAuthError) as exc:
            logger.warning("Token refresh failed: %s", exc)
            return None
        try:
            save_token(settings, creds)
        except OSError as exc:
            logger.warning("Could not save refreshed token: %s", exc)
        return creds
    return None


# ── Authorization-code flow ────────────────────────────────────────────────────


def _flow(settings: Settings) -> Flow:
    config = load_client_config(settings)
    if config is None:
        raise AuthError(f"No credentials.json found at {settings.credentials_path}")
    # The URL and the code exchange happen in separate tool calls, so PKCE
    # state would not survive between them.
    return Flow.from_client_config(
        config,
        scopes=SCOPES,
        redirect_uri=settings.redirect_uri,
        autogenerate_code_verifier=False,
    )


def authorization_url(settings: Settings) -> str:
    """Return the Google consent URL for an offline (refreshable) token."""
    url, _state = _flow(settings).authorization_url(
        access_type="offline", prompt="consent"
    )
    return url


def exchange_code(settings: Settings, code: str) -> Credentials:
    """Trade an authorization code for tokens and persist them."""
    flow = _flow(settings)
    try:
        flow.fetch_token(code=code)
    except Exception as exc:  # noqa: BLE001
        raise AuthError(f"Token exchange failed: {exc}") from exc
    creds = flow.credentials
    save_token(settings, creds)
    return creds


def run_local_flow(settings: Settings) -> Credentials:
    """Interactive setup: open the browser and catch the redirect locally."""
    config = load_client_config(settings)
    if config is None:
        raise AuthError(f"No credentials.json found at {settings.credentials_path}")
    flow = InstalledAppFlow.from_client_config(config, SCOPES)
    creds = flow.run_local_server(
        port=settings.redirect_port,
        access_type="offline",
        prompt="consent",
        success_message="Authorization successful! You can close this window.",
    )
    save_token(settings, creds)
    return creds
