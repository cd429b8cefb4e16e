"""MIME body extraction and RFC-822 draft encoding for the Gmail REST API."""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_ADDRESS_RE = re.compile(r"<.*>")

_COMPOSE_URL = "https://mail.google.com/mail/u/0/#drafts?compose={message_id}"
_INBOX_URL = "https://mail.google.com/mail/u/0/#inbox/{message_id}"


# ── Body extraction ────────────────────────────────────────────────────────────


def extract_body(part: dict[str, Any] | None) -> str:
    """Return the best plain-text rendition of a Gmail ``MessagePart`` tree.

    Walks the tree depth-first and returns the first non-empty result:

    * ``text/plain`` with inline data is decoded and returned as-is.
    * ``text/html`` with inline data is decoded, tag-stripped and
      whitespace-collapsed.
    * Anything with ``parts`` is searched child by child, in order.

    Child order decides the winner, not media type: a multipart whose HTML
    part precedes its plain-text part yields the stripped HTML.
    """
    if not part:
        return ""

    mime_type = part.get("mimeType", "")
    data = (part.get("body") or {}).get("data")

    if mime_type == "text/plain" and data:
        return _decode(data)

    if mime_type == "text/html" and data:
        return strip_html(_decode(data))

    for child in part.get("parts") or []:
        body = extract_body(child)
        if body:
            return body

    return ""


def strip_html(html: str) -> str:
    """Remove markup tags and collapse whitespace runs to single spaces."""
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub("", html)).strip()


def _decode(data: str) -> str:
    """Decode a base64 body as UTF-8.

    Gmail sends the URL-safe alphabet, often unpadded; the standard alphabet
    is accepted too.
    """
    normalized = data.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        raw = base64.b64decode(normalized)
    except (binascii.Error, ValueError):
        return ""
    return raw.decode("utf-8", errors="replace")


# ── Draft encoding ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DraftRequest:
    """Fields for a new plain-text draft.

    ``in_reply_to`` should name a message in ``thread_id``; callers are
    trusted on that.
    """

    to: str
    subject: str
    body: str
    thread_id: str | None = None
    in_reply_to: str | None = None


@dataclass(frozen=True)
class EncodedMessage:
    """A draft ready for ``users.drafts.create``."""

    raw: str
    thread_id: str | None = None

    def to_request_body(self) -> dict[str, Any]:
        message: dict[str, Any] = {"raw": self.raw}
        if self.thread_id:
            message["threadId"] = self.thread_id
        return {"message": message}


def encode_draft(request: DraftRequest) -> EncodedMessage:
    """Build the base64url ``raw`` payload for ``users.drafts.create``.

    Only the immediate parent goes into ``References``; the thread ID is
    handed back for the request body and never written as a header.
    """
    headers = [
        f"To: {request.to}",
        f"Subject: {request.subject}",
        "Content-Type: text/plain; charset=utf-8",
    ]
    if request.in_reply_to:
        headers.append(f"In-Reply-To: {request.in_reply_to}")
        headers.append(f"References: {request.in_reply_to}")

    message = "\r\n".join([*headers, "", request.body])
    raw = base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii").rstrip("=")
    return EncodedMessage(raw=raw, thread_id=request.thread_id)


# ── Link and header helpers ────────────────────────────────────────────────────


def compose_link(message_id: str) -> str:
    """Gmail web link that opens a draft's message in the compose window."""
    return _COMPOSE_URL.format(message_id=message_id)


def inbox_link(message_id: str) -> str:
    return _INBOX_URL.format(message_id=message_id)


def sender_name(from_header: str) -> str:
    """Drop the ``<address>`` portion of a From header: ``Alice <a@x>`` → ``Alice``."""
    return _ADDRESS_RE.sub("", from_header).strip()
