"""Per-process session state shared by all tool invocations."""

import logging
from collections.abc import Callable

from google.auth.credentials import Credentials

from gmail_mcp.auth.oauth import load_credentials
from gmail_mcp.config import Settings
from gmail_mcp.gmail.client import GmailClient, build_client

logger = logging.getLogger(__name__)

#: Builds a GmailClient from authorized credentials; swapped out in tests.
ClientFactory = Callable[[Credentials], GmailClient]


class NotAuthenticatedError(Exception):
    """Raised when a Gmail tool runs before any account is connected."""


class GmailSession:
    """Holds the authenticated GmailClient, if any.

    Every tool receives the session explicitly. A successful
    (re-)authentication replaces the client in place.
    """

    def __init__(
        self,
        settings: Settings,
        client: GmailClient | None = None,
        client_factory: ClientFactory = build_client,
    ) -> None:
        self.settings = settings
        self._client = client
        self._client_factory = client_factory

    @property
    def is_authenticated(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> GmailClient:
        if self._client is None:
            raise NotAuthenticatedError("Not authenticated. Use gmail_auth_status first.")
        return self._client

    def connect(self, credentials: Credentials) -> GmailClient:
        """Replace the current client with one bound to ``credentials``."""
        self._client = self._client_factory(credentials)
        return self._client

    def try_restore(self) -> bool:
        """Connect from the stored token if one is usable. Returns True on success."""
        creds = load_credentials(self.settings)
        if creds is None:
            return False
        self.connect(creds)
        return True
