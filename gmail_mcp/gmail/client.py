"""Gmail API client: wraps the googleapiclient Gmail v1 resource behind a typed async API."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httplib2
from google.auth.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from gmail_mcp.gmail.mime import DraftRequest, encode_draft
from gmail_mcp.gmail.types import (
    UNREAD,
    DraftResult,
    EmailDraft,
    EmailMessage,
    GmailFilter,
    GmailLabel,
    Profile,
)

logger = logging.getLogger(__name__)

#: Returns a fresh transport for one request; httplib2.Http is not thread-safe.
HttpFactory = Callable[[], Any]

# All calls act on the authenticated account
_USER_ID = "me"


class GmailError(Exception):
    """Raised when a Gmail API call fails."""


class GmailClient:
    """Thin async wrapper around the Gmail v1 REST resource.

    googleapiclient requests block, so each ``execute()`` runs in a worker
    thread. Listing calls fetch per-message details concurrently and keep
    the order the listing returned.

    With ``http_factory`` set, every request gets its own transport; without
    it, requests use the service's shared one.
    """

    def __init__(self, service: Any, http_factory: HttpFactory | None = None) -> None:
        self._service = service
        self._http_factory = http_factory

    @property
    def _users(self) -> Any:
        return self._service.users()

    # ── Reading ────────────────────────────────────────────────────────────────

    async def list_messages(
        self,
        max_results: int = 20,
        query: str | None = None,
        label_ids: list[str] | None = None,
    ) -> list[EmailMessage]:
        """Return full messages matching ``query`` / ``label_ids``, newest first.

        Messages that fail to fetch individually are dropped from the result.
        """
        response = await self._execute(
            "messages.list",
            self._users.messages().list(
                userId=_USER_ID, maxResults=max_results, q=query, labelIds=label_ids
            ),
        )
        refs = response.get("messages") or []
        detailed = await asyncio.gather(
            *(self.get_message(str(ref.get("id", ""))) for ref in refs)
        )
        return [m for m in detailed if m is not None]

    async def search_messages(self, query: str, max_results: int = 20) -> list[EmailMessage]:
        return await self.list_messages(max_results=max_results, query=query)

    async def get_message(self, message_id: str) -> EmailMessage | None:
        """Return a single message with its body, or None if it can't be fetched."""
        try:
            data = await self._execute(
                "messages.get",
                self._users.messages().get(userId=_USER_ID, id=message_id, format="full"),
            )
        except GmailError as exc:
            logger.error("Failed to get message %s: %s", message_id, exc)
            return None
        return EmailMessage.from_api(data)

    # ── Drafts ─────────────────────────────────────────────────────────────────

    async def create_draft(
        self,
        to: str,
        subject: str,
        body: str,
        thread_id: str | None = None,
        in_reply_to: str | None = None,
    ) -> DraftResult:
        """Create an unsent plain-text draft, threaded when ``thread_id`` is given."""
        encoded = encode_draft(
            DraftRequest(
                to=to,
                subject=subject,
                body=body,
                thread_id=thread_id,
                in_reply_to=in_reply_to,
            )
        )
        response = await self._execute(
            "drafts.create",
            self._users.drafts().create(userId=_USER_ID, body=encoded.to_request_body()),
        )
        result = DraftResult.from_api(response)
        logger.info("Created draft %s (to=%s, thread=%s)", result.id, to, thread_id)
        return result

    async def list_drafts(self, max_results: int = 10) -> list[EmailDraft]:
        response = await self._execute(
            "drafts.list",
            self._users.drafts().list(userId=_USER_ID, maxResults=max_results),
        )
        drafts: list[EmailDraft] = []
        for ref in response.get("drafts") or []:
            draft_id = ref.get("id")
            if not draft_id:
                continue
            detail = await self._execute(
                "drafts.get",
                self._users.drafts().get(userId=_USER_ID, id=draft_id, format="full"),
            )
            drafts.append(EmailDraft.from_api({**detail, "id": draft_id}))
        return drafts

    # ── Labels ─────────────────────────────────────────────────────────────────

    async def list_labels(self) -> list[GmailLabel]:
        """Return every label with message counters.

        ``labels.list`` omits counters, so each label is fetched again.
        """
        response = await self._execute(
            "labels.list", self._users.labels().list(userId=_USER_ID)
        )
        labels: list[GmailLabel] = []
        for item in response.get("labels") or []:
            detail = await self._execute(
                "labels.get",
                self._users.labels().get(userId=_USER_ID, id=item.get("id", "")),
            )
            labels.append(GmailLabel.from_api(item, detail))
        logger.debug("Fetched %d labels", len(labels))
        return labels

    async def create_label(self, name: str) -> GmailLabel:
        response = await self._execute(
            "labels.create",
            self._users.labels().create(
                userId=_USER_ID,
                body={
                    "name": name,
                    "labelListVisibility": "labelShow",
                    "messageListVisibility": "show",
                },
            ),
        )
        label = GmailLabel.from_api({**response, "type": "user"})
        logger.info("Created Gmail label: %s (id=%s)", label.name, label.id)
        return label

    async def modify_message_labels(
        self,
        message_id: str,
        add_label_ids: list[str],
        remove_label_ids: list[str],
    ) -> None:
        await self._execute(
            "messages.modify",
            self._users.messages().modify(
                userId=_USER_ID,
                id=message_id,
                body={"addLabelIds": add_label_ids, "removeLabelIds": remove_label_ids},
            ),
        )
        logger.debug(
            "Modified labels on %s (+%s -%s)", message_id, add_label_ids, remove_label_ids
        )

    async def mark_as_read(self, message_id: str) -> None:
        await self.modify_message_labels(message_id, [], [UNREAD])

    async def mark_as_unread(self, message_id: str) -> None:
        await self.modify_message_labels(message_id, [UNREAD], [])

    # ── Filters ────────────────────────────────────────────────────────────────

    async def list_filters(self) -> list[GmailFilter]:
        response = await self._execute(
            "filters.list", self._users.settings().filters().list(userId=_USER_ID)
        )
        return [GmailFilter.from_api(f) for f in response.get("filter") or []]

    async def create_filter(self, gmail_filter: GmailFilter) -> GmailFilter:
        """Create a filter; the returned copy carries the server-assigned ID."""
        response = await self._execute(
            "filters.create",
            self._users.settings().filters().create(
                userId=_USER_ID,
                body={
                    "criteria": gmail_filter.criteria.to_api(),
                    "action": gmail_filter.action.to_api(),
                },
            ),
        )
        created = GmailFilter(
            id=response.get("id") or None,
            criteria=gmail_filter.criteria,
            action=gmail_filter.action,
        )
        logger.info("Created Gmail filter %s", created.id)
        return created

    async def delete_filter(self, filter_id: str) -> None:
        await self._execute(
            "filters.delete",
            self._users.settings().filters().delete(userId=_USER_ID, id=filter_id),
        )
        logger.info("Deleted Gmail filter %s", filter_id)

    # ── Account ────────────────────────────────────────────────────────────────

    async def get_profile(self) -> Profile:
        response = await self._execute(
            "getProfile", self._users.getProfile(userId=_USER_ID)
        )
        return Profile.from_api(response)

    # ── Internal helpers ───────────────────────────────────────────────────────

    async def _execute(self, operation: str, request: Any) -> dict[str, Any]:
        """Run a prepared API request off the event loop.

        Raises GmailError on HTTP or transport failure. Empty responses
        (e.g. from ``delete``) come back as an empty dict.
        """
        logger.debug("Gmail → %s", operation)
        try:
            if self._http_factory is None:
                response = await asyncio.to_thread(request.execute)
            else:
                response = await asyncio.to_thread(request.execute, http=self._http_factory())
        except HttpError as exc:
            raise GmailError(f"Gmail API {operation} failed: {_http_error_reason(exc)}") from exc
        except OSError as exc:
            raise GmailError(f"Gmail API {operation} failed: {exc}") from exc
        return response or {}


def _http_error_reason(exc: HttpError) -> str:
    status = getattr(exc.resp, "status", "?")
    reason = exc.reason if hasattr(exc, "reason") and exc.reason else str(exc)
    return f"{status} {reason}"


def build_client(credentials: Credentials) -> GmailClient:
    """Construct a GmailClient for already-authorized credentials."""
    service = build("gmail", "v1", credentials=credentials, cache_discovery=False)
    return GmailClient(
        service,
        http_factory=lambda: AuthorizedHttp(credentials, http=httplib2.Http()),
    )
