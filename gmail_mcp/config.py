"""Runtime settings, read from the environment (and ``.env`` via python-dotenv)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

_DEFAULT_CONFIG_DIR = "~/.gmail-mcp"
_DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Settings:
    """Where OAuth files live and how the server logs."""

    config_dir: Path
    credentials_path: Path
    token_path: Path
    redirect_uri: str = _DEFAULT_REDIRECT_URI
    log_level: str = "INFO"

    @property
    def redirect_port(self) -> int:
        """Port of the local OAuth callback, taken from the redirect URI."""
        return urlsplit(self.redirect_uri).port or 80

    @classmethod
    def from_env(cls) -> Settings:
        """Build Settings from environment variables.

        Callers load ``.env`` first (entry points call ``load_dotenv()``).
        """
        config_dir = Path(
            os.environ.get("GMAIL_MCP_CONFIG_DIR", _DEFAULT_CONFIG_DIR)
        ).expanduser()
        credentials = os.environ.get("GMAIL_CREDENTIALS_PATH")
        token = os.environ.get("GMAIL_TOKEN_PATH")
        return cls(
            config_dir=config_dir,
            credentials_path=(
                Path(credentials).expanduser() if credentials
                else config_dir / "credentials.json"
            ),
            token_path=(
                Path(token).expanduser() if token else config_dir / "token.json"
            ),
            redirect_uri=os.environ.get("GMAIL_OAUTH_REDIRECT_URI", _DEFAULT_REDIRECT_URI),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
