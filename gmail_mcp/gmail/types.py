"""Typed views of Gmail API responses.

The API client returns plain JSON dicts with any field possibly missing.
Each ``from_api`` constructor defaults absent strings to ``""``, absent
lists to ``[]`` and absent counters to ``None``, so callers never see a
``KeyError``.
"""

from dataclasses import dataclass, field
from typing import Any

from gmail_mcp.gmail.mime import compose_link, extract_body

UNREAD = "UNREAD"


def _header(payload: dict[str, Any] | None, name: str) -> str:
    """Case-insensitive lookup in a payload's ``headers`` list."""
    for header in (payload or {}).get("headers") or []:
        if str(header.get("name", "")).lower() == name.lower():
            return str(header.get("value") or "")
    return ""


@dataclass(frozen=True)
class EmailMessage:
    """A message fetched with ``format="full"``, body already extracted."""

    id: str
    thread_id: str
    sender: str
    recipient: str
    subject: str
    date: str
    snippet: str
    labels: list[str] = field(default_factory=list)
    body: str = ""

    @property
    def is_unread(self) -> bool:
        return UNREAD in self.labels

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "EmailMessage":
        payload = data.get("payload")
        return cls(
            id=str(data.get("id") or ""),
            thread_id=str(data.get("threadId") or ""),
            sender=_header(payload, "From"),
            recipient=_header(payload, "To"),
            subject=_header(payload, "Subject"),
            date=_header(payload, "Date"),
            snippet=str(data.get("snippet") or ""),
            labels=list(data.get("labelIds") or []),
            body=extract_body(payload),
        )


@dataclass(frozen=True)
class EmailDraft:
    id: str
    to: str
    subject: str
    body: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "EmailDraft":
        payload = (data.get("message") or {}).get("payload")
        return cls(
            id=str(data.get("id") or ""),
            to=_header(payload, "To"),
            subject=_header(payload, "Subject"),
            body=extract_body(payload),
        )


@dataclass(frozen=True)
class DraftResult:
    """Outcome of ``users.drafts.create``."""

    id: str
    message_id: str

    @property
    def web_link(self) -> str:
        return compose_link(self.message_id)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DraftResult":
        return cls(
            id=str(data.get("id") or ""),
            message_id=str((data.get("message") or {}).get("id") or ""),
        )


@dataclass(frozen=True)
class GmailLabel:
    """A label plus its message counters.

    Counters only come back from ``labels.get``; ``labels.list`` leaves
    them unset.
    """

    id: str
    name: str
    type: str = "user"  # "system" | "user"
    messages_total: int | None = None
    messages_unread: int | None = None

    @property
    def is_system(self) -> bool:
        return self.type == "system"

    @classmethod
    def from_api(
        cls, data: dict[str, Any], detail: dict[str, Any] | None = None
    ) -> "GmailLabel":
        counts = detail if detail is not None else data
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            type="system" if data.get("type") == "system" else "user",
            messages_total=counts.get("messagesTotal"),
            messages_unread=counts.get("messagesUnread"),
        )


# ── Filters ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FilterCriteria:
    from_: str | None = None
    to: str | None = None
    subject: str | None = None
    query: str | None = None

    def is_empty(self) -> bool:
        return not (self.from_ or self.to or self.subject or self.query)

    def items(self) -> list[tuple[str, str]]:
        """Set criteria as ``(api_name, value)`` pairs, in API field order."""
        pairs = [
            ("from", self.from_),
            ("to", self.to),
            ("subject", self.subject),
            ("query", self.query),
        ]
        return [(name, value) for name, value in pairs if value]

    def to_api(self) -> dict[str, str]:
        return dict(self.items())

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "FilterCriteria":
        data = data or {}
        return cls(
            from_=data.get("from") or None,
            to=data.get("to") or None,
            subject=data.get("subject") or None,
            query=data.get("query") or None,
        )


@dataclass(frozen=True)
class FilterAction:
    add_label_ids: list[str] = field(default_factory=list)
    remove_label_ids: list[str] = field(default_factory=list)
    forward: str | None = None

    def items(self) -> list[tuple[str, str]]:
        """Non-empty actions as ``(api_name, display_value)`` pairs."""
        pairs: list[tuple[str, str]] = []
        if self.add_label_ids:
            pairs.append(("addLabelIds", ", ".join(self.add_label_ids)))
        if self.remove_label_ids:
            pairs.append(("removeLabelIds", ", ".join(self.remove_label_ids)))
        if self.forward:
            pairs.append(("forward", self.forward))
        return pairs

    def to_api(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.add_label_ids:
            body["addLabelIds"] = list(self.add_label_ids)
        if self.remove_label_ids:
            body["removeLabelIds"] = list(self.remove_label_ids)
        if self.forward:
            body["forward"] = self.forward
        return body

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "FilterAction":
        data = data or {}
        return cls(
            add_label_ids=list(data.get("addLabelIds") or []),
            remove_label_ids=list(data.get("removeLabelIds") or []),
            forward=data.get("forward") or None,
        )


@dataclass(frozen=True)
class GmailFilter:
    criteria: FilterCriteria
    action: FilterAction
    id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GmailFilter":
        return cls(
            id=data.get("id") or None,
            criteria=FilterCriteria.from_api(data.get("criteria")),
            action=FilterAction.from_api(data.get("action")),
        )


@dataclass(frozen=True)
class Profile:
    email: str
    messages_total: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Profile":
        return cls(
            email=str(data.get("emailAddress") or ""),
            messages_total=int(data.get("messagesTotal") or 0),
        )
