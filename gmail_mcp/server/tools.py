"""Tool implementations: call the Gmail client and render plain-text replies.

Every tool takes the GmailSession explicitly and returns a string. Failures
are logged and turned into a short message; nothing raises across the tool
boundary.
"""

import asyncio
import functools
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ParamSpec

from gmail_mcp.auth.oauth import authorization_url, exchange_code
from gmail_mcp.gmail.mime import inbox_link, sender_name
from gmail_mcp.gmail.types import (
    EmailMessage,
    FilterAction,
    FilterCriteria,
    GmailFilter,
)
from gmail_mcp.server.session import GmailSession, NotAuthenticatedError

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated. Use gmail_auth_status first."

# Gmail search templates, passed through verbatim
PRIORITY_QUERY = (
    "is:unread -category:promotions -category:social -category:updates -category:forums"
)
NEWSLETTER_QUERY = (
    '(unsubscribe OR newsletter OR "email preferences" OR "manage subscriptions") -is:sent'
)
UNSUBSCRIBE_QUERY = "unsubscribe -is:sent"
DAILY_PRIORITY_QUERY = (
    "is:unread -category:promotions -category:social -category:updates newer_than:1d"
)
DAILY_PROMO_QUERY = "is:unread (category:promotions OR category:updates) newer_than:1d"

_UNSUBSCRIBE_TOP_N = 20
_DAILY_TOP_SENDERS = 5

P = ParamSpec("P")


def _tool(failure: str) -> Callable[[Callable[P, Awaitable[str]]], Callable[P, Awaitable[str]]]:
    """Turn exceptions raised by a tool body into a ``"<failure>: <reason>"`` reply."""

    def decorator(fn: Callable[P, Awaitable[str]]) -> Callable[P, Awaitable[str]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> str:
            try:
                return await fn(*args, **kwargs)
            except NotAuthenticatedError:
                return NOT_AUTHENTICATED
            except Exception as exc:  # noqa: BLE001
                logger.error("%s failed: %s", fn.__name__, exc, exc_info=True)
                return f"{failure}: {exc}"

        return wrapper

    return decorator


# ── Formatting ─────────────────────────────────────────────────────────────────


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_email_block(m: EmailMessage, *, include_unread: bool = True) -> str:
    lines = [f"ID: {m.id}", f"From: {m.sender}", f"Subject: {m.subject}", f"Date: {m.date}"]
    if include_unread:
        lines.append(f"Unread: {_flag(m.is_unread)}")
    lines += [f"Snippet: {m.snippet}", "---"]
    return "\n".join(lines)


def format_email_detail(m: EmailMessage) -> str:
    return (
        f"From: {m.sender}\n"
        f"To: {m.recipient}\n"
        f"Subject: {m.subject}\n"
        f"Date: {m.date}\n"
        f"Labels: {', '.join(m.labels)}\n"
        f"Unread: {_flag(m.is_unread)}\n"
        "\n"
        "--- Body ---\n"
        f"{m.body or '(No body content)'}"
    )


def format_filter(f: GmailFilter) -> str:
    criteria = ", ".join(f"{k}: {v}" for k, v in f.criteria.items())
    actions = ", ".join(f"{k}: {v}" for k, v in f.action.items())
    return f"ID: {f.id}\nCriteria: {criteria}\nActions: {actions}\n---"


def count_by_sender(messages: list[EmailMessage]) -> list[tuple[str, int]]:
    """Count messages per sender display name, most frequent first.

    Ties keep first-seen order.
    """
    return Counter(sender_name(m.sender) for m in messages).most_common()


@dataclass
class _SenderInfo:
    count: int
    latest_id: str
    subject: str


def group_unsubscribe_senders(messages: list[EmailMessage]) -> list[tuple[str, _SenderInfo]]:
    """Group by full From header; listings are newest first, so the first hit is the latest."""
    by_sender: dict[str, _SenderInfo] = {}
    for m in messages:
        info = by_sender.get(m.sender)
        if info is None:
            by_sender[m.sender] = _SenderInfo(count=1, latest_id=m.id, subject=m.subject)
        else:
            info.count += 1
    return sorted(by_sender.items(), key=lambda item: item[1].count, reverse=True)


# ── Authentication ─────────────────────────────────────────────────────────────


def setup_instructions(session: GmailSession) -> str:
    return (
        "Not authenticated. To set up Gmail access:\n"
        "\n"
        "1. Go to Google Cloud Console: https://console.cloud.google.com/\n"
        "2. Create a new project or select existing\n"
        "3. Enable the Gmail API\n"
        "4. Configure OAuth consent screen (External, add your email as test user)\n"
        "5. Create OAuth 2.0 Client ID (Desktop application)\n"
        f"6. Download the JSON and save to: {session.settings.credentials_path}\n"
        "7. Use the gmail_authenticate tool to complete setup"
    )


@_tool("Failed to check authentication")
async def auth_status(session: GmailSession) -> str:
    restored = await asyncio.to_thread(session.try_restore)
    if not (restored or session.is_authenticated):
        return setup_instructions(session)
    profile = await session.client.get_profile()
    return f"Authenticated as: {profile.email}\nTotal messages: {profile.messages_total}"


@_tool("Failed to start authentication")
async def authenticate(session: GmailSession) -> str:
    url = authorization_url(session.settings)
    return (
        "Please visit this URL to authorize Gmail access:\n\n"
        f"{url}\n\n"
        "After authorizing, you'll be redirected to a page with a code. "
        "Use gmail_complete_auth with that code."
    )


@_tool("Failed to complete authentication")
async def complete_auth(session: GmailSession, code: str) -> str:
    creds = await asyncio.to_thread(exchange_code, session.settings, code)
    client = session.connect(creds)
    profile = await client.get_profile()
    logger.info("Authenticated as %s", profile.email)
    return (
        f"Successfully authenticated as: {profile.email}\n"
        f"Token saved to: {session.settings.token_path}"
    )


# ── Reading ────────────────────────────────────────────────────────────────────


@_tool("Failed to list emails")
async def list_emails(session: GmailSession, query: str | None = None, max_results: int = 20) -> str:
    messages = await session.client.list_messages(max_results=max_results, query=query)
    if not messages:
        return "No emails found matching your criteria."
    return "\n".join(format_email_block(m) for m in messages)


@_tool("Failed to get email")
async def get_email(session: GmailSession, message_id: str) -> str:
    message = await session.client.get_message(message_id)
    if message is None:
        return "Email not found."
    return format_email_detail(message)


@_tool("Search failed")
async def search(session: GmailSession, query: str, max_results: int = 20) -> str:
    messages = await session.client.search_messages(query, max_results)
    if not messages:
        return f"No emails found for: {query}"
    summary = "\n".join(
        f"ID: {m.id} | From: {m.sender} | Subject: {m.subject} | Date: {m.date}"
        for m in messages
    )
    return f"Found {len(messages)} emails:\n\n{summary}"


# ── Drafts ─────────────────────────────────────────────────────────────────────


@_tool("Failed to create draft")
async def create_draft(
    session: GmailSession,
    to: str,
    subject: str,
    body: str,
    reply_to_message_id: str | None = None,
) -> str:
    client = session.client
    thread_id: str | None = None
    in_reply_to: str | None = None

    if reply_to_message_id:
        original = await client.get_message(reply_to_message_id)
        if original is not None:
            thread_id = original.thread_id
            in_reply_to = reply_to_message_id
        else:
            logger.warning(
                "Reply target %s not found; creating an unthreaded draft", reply_to_message_id
            )

    draft = await client.create_draft(
        to=to, subject=subject, body=body, thread_id=thread_id, in_reply_to=in_reply_to
    )
    return (
        "Draft created successfully!\n\n"
        f"Draft ID: {draft.id}\n\n"
        f"Open in Gmail to edit and send:\n{draft.web_link}"
    )


@_tool("Failed to list drafts")
async def list_drafts(session: GmailSession, max_results: int = 10) -> str:
    drafts = await session.client.list_drafts(max_results)
    if not drafts:
        return "No drafts found."
    summary = "\n".join(f"ID: {d.id}\nTo: {d.to}\nSubject: {d.subject}\n---" for d in drafts)
    return f"{len(drafts)} drafts:\n\n{summary}"


# ── Labels ─────────────────────────────────────────────────────────────────────


@_tool("Failed to list labels")
async def list_labels(session: GmailSession) -> str:
    labels = await session.client.list_labels()
    system = [lbl for lbl in labels if lbl.is_system]
    user = [lbl for lbl in labels if not lbl.is_system]

    output = "=== System Labels ===\n"
    output += "\n".join(
        f"{lbl.name}: {lbl.messages_total or 0} total, {lbl.messages_unread or 0} unread"
        for lbl in system
    )
    output += "\n\n=== User Labels ===\n"
    if user:
        output += "\n".join(f"{lbl.name} (ID: {lbl.id}): {lbl.messages_total or 0} total" for lbl in user)
    else:
        output += "(No user labels)"
    return output


@_tool("Failed to create label")
async def create_label(session: GmailSession, name: str) -> str:
    label = await session.client.create_label(name)
    return f'Label created: "{label.name}" (ID: {label.id})'


@_tool("Failed to modify labels")
async def modify_labels(
    session: GmailSession,
    message_id: str,
    add_labels: list[str] | None = None,
    remove_labels: list[str] | None = None,
) -> str:
    await session.client.modify_message_labels(message_id, add_labels or [], remove_labels or [])
    return "Labels updated successfully."


# ── Filters ────────────────────────────────────────────────────────────────────


@_tool("Failed to list filters")
async def list_filters(session: GmailSession) -> str:
    filters = await session.client.list_filters()
    if not filters:
        return "No filters configured."
    summary = "\n".join(format_filter(f) for f in filters)
    return f"{len(filters)} filters:\n\n{summary}"


@_tool("Failed to create filter")
async def create_filter(
    session: GmailSession,
    from_: str | None = None,
    to: str | None = None,
    subject: str | None = None,
    query: str | None = None,
    add_label_ids: list[str] | None = None,
    remove_label_ids: list[str] | None = None,
) -> str:
    client = session.client
    criteria = FilterCriteria(from_=from_, to=to, subject=subject, query=query)
    if criteria.is_empty():
        return "At least one filter criteria is required (from, to, subject, or query)."
    created = await client.create_filter(
        GmailFilter(
            criteria=criteria,
            action=FilterAction(
                add_label_ids=add_label_ids or [], remove_label_ids=remove_label_ids or []
            ),
        )
    )
    return f"Filter created successfully! ID: {created.id}"


@_tool("Failed to delete filter")
async def delete_filter(session: GmailSession, filter_id: str) -> str:
    await session.client.delete_filter(filter_id)
    return f"Filter {filter_id} deleted."


# ── Read state ─────────────────────────────────────────────────────────────────


@_tool("Failed")
async def mark_read(session: GmailSession, message_id: str) -> str:
    await session.client.mark_as_read(message_id)
    return "Email marked as read."


@_tool("Failed")
async def mark_unread(session: GmailSession, message_id: str) -> str:
    await session.client.mark_as_unread(message_id)
    return "Email marked as unread."


# ── Inbox workflows ────────────────────────────────────────────────────────────


@_tool("Failed")
async def priority_emails(session: GmailSession, max_results: int = 15) -> str:
    messages = await session.client.search_messages(PRIORITY_QUERY, max_results)
    if not messages:
        return "No priority emails found! Inbox zero achieved."
    summary = "\n".join(format_email_block(m, include_unread=False) for m in messages)
    return f"{len(messages)} priority emails:\n\n{summary}"


@_tool("Failed")
async def find_newsletters(session: GmailSession, max_results: int = 30) -> str:
    messages = await session.client.search_messages(NEWSLETTER_QUERY, max_results)
    if not messages:
        return "No obvious newsletter emails found."
    senders = count_by_sender(messages)
    listing = "\n".join(f"{sender}: {count} emails" for sender, count in senders)
    return (
        f"Found {len(messages)} potential newsletter emails from {len(senders)} senders:\n\n"
        f"{listing}\n\n"
        'Use gmail_search with "from:sender@example.com" to review specific senders.'
    )


@_tool("Failed")
async def find_unsubscribe_candidates(session: GmailSession, max_results: int = 30) -> str:
    messages = await session.client.search_messages(UNSUBSCRIBE_QUERY, max_results)
    if not messages:
        return "No emails with unsubscribe links found."
    groups = group_unsubscribe_senders(messages)
    listing = "\n".join(
        f"From: {sender}\n"
        f"Count: {info.count}\n"
        f"Latest: {info.subject}\n"
        f"Open to unsubscribe: {inbox_link(info.latest_id)}\n"
        "---"
        for sender, info in groups[:_UNSUBSCRIBE_TOP_N]
    )
    shown = min(_UNSUBSCRIBE_TOP_N, len(groups))
    return f"Top {shown} senders with unsubscribe options:\n\n{listing}"


@_tool("Failed")
async def daily_summary(session: GmailSession) -> str:
    client = session.client
    labels = await client.list_labels()
    inbox = next((lbl for lbl in labels if lbl.name == "INBOX"), None)
    unread = next((lbl for lbl in labels if lbl.name == "UNREAD"), None)

    priority, promos = await asyncio.gather(
        client.search_messages(DAILY_PRIORITY_QUERY, 10),
        client.search_messages(DAILY_PROMO_QUERY, 50),
    )

    inbox_total = inbox.messages_total if inbox and inbox.messages_total else 0
    unread_total = unread.messages_total if unread and unread.messages_total else 0

    summary = "=== DAILY EMAIL SUMMARY ===\n\n"
    summary += f"Inbox: {inbox_total} total, {unread_total} unread\n\n"

    summary += "--- Priority Emails ---\n"
    if not priority:
        summary += "No priority emails in the last 24 hours!\n\n"
    else:
        summary += "\n".join(f"• {sender_name(m.sender)}: {m.subject}" for m in priority)
        summary += "\n\n"

    summary += "--- Newsletters & Promotions ---\n"
    summary += f"{len(promos)} promotional/newsletter emails in the last 24 hours\n"
    if promos:
        top = count_by_sender(promos)[:_DAILY_TOP_SENDERS]
        summary += "Top senders:\n" + "\n".join(f"• {sender}: {count}" for sender, count in top)
    return summary
