"""MCP server: registers the Gmail tools on a FastMCP instance and runs it over stdio."""

import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from gmail_mcp.config import Settings
from gmail_mcp.server import tools
from gmail_mcp.server.session import GmailSession

logger = logging.getLogger(__name__)

SERVER_NAME = "gmail"

MessageId = Annotated[str, Field(description="The email message ID")]


def build_server(session: GmailSession) -> FastMCP:
    """Create the FastMCP server with every tool bound to ``session``."""
    mcp = FastMCP(SERVER_NAME)

    # ── Authentication ─────────────────────────────────────────────────────────

    @mcp.tool(
        name="gmail_auth_status",
        description="Check Gmail authentication status and get setup instructions if needed",
    )
    async def gmail_auth_status() -> str:
        return await tools.auth_status(session)

    @mcp.tool(
        name="gmail_authenticate",
        description="Start OAuth authentication flow. Returns a URL to visit for authorization.",
    )
    async def gmail_authenticate() -> str:
        return await tools.authenticate(session)

    @mcp.tool(
        name="gmail_complete_auth",
        description="Complete OAuth flow with the authorization code from Google",
    )
    async def gmail_complete_auth(
        code: Annotated[str, Field(description="The authorization code from Google's OAuth redirect")],
    ) -> str:
        return await tools.complete_auth(session, code)

    # ── Reading ────────────────────────────────────────────────────────────────

    @mcp.tool(
        name="gmail_list_emails",
        description=(
            "List recent emails. Use query for Gmail search syntax "
            "(e.g., 'is:unread', 'from:someone@example.com', 'label:important')."
        ),
    )
    async def gmail_list_emails(
        query: Annotated[str | None, Field(description="Gmail search query")] = None,
        maxResults: Annotated[  # noqa: N803
            int, Field(ge=1, le=50, description="Maximum number of emails to return")
        ] = 20,
    ) -> str:
        return await tools.list_emails(session, query=query, max_results=maxResults)

    @mcp.tool(name="gmail_get_email", description="Get full content of a specific email by ID")
    async def gmail_get_email(messageId: MessageId) -> str:  # noqa: N803
        return await tools.get_email(session, messageId)

    @mcp.tool(
        name="gmail_search",
        description=(
            "Search emails using Gmail's powerful search syntax. Examples: 'from:newsletter', "
            "'is:unread is:important', 'subject:invoice older_than:7d'"
        ),
    )
    async def gmail_search(
        query: Annotated[str, Field(description="Gmail search query")],
        maxResults: Annotated[int, Field(ge=1, le=50, description="Maximum results")] = 20,  # noqa: N803
    ) -> str:
        return await tools.search(session, query, max_results=maxResults)

    # ── Drafts ─────────────────────────────────────────────────────────────────

    @mcp.tool(
        name="gmail_create_draft",
        description=(
            "Create an email draft. Returns a link to open the draft in Gmail "
            "for editing and sending."
        ),
    )
    async def gmail_create_draft(
        to: Annotated[str, Field(min_length=1, description="Recipient email address")],
        subject: Annotated[str, Field(min_length=1, description="Email subject")],
        body: Annotated[str, Field(description="Email body (plain text)")],
        replyToMessageId: Annotated[  # noqa: N803
            str | None, Field(description="Message ID to reply to (for threading)")
        ] = None,
    ) -> str:
        return await tools.create_draft(
            session, to, subject, body, reply_to_message_id=replyToMessageId
        )

    @mcp.tool(name="gmail_list_drafts", description="List current email drafts")
    async def gmail_list_drafts(
        maxResults: Annotated[  # noqa: N803
            int, Field(ge=1, le=20, description="Maximum drafts to return")
        ] = 10,
    ) -> str:
        return await tools.list_drafts(session, max_results=maxResults)

    # ── Labels ─────────────────────────────────────────────────────────────────

    @mcp.tool(name="gmail_list_labels", description="List all Gmail labels with message counts")
    async def gmail_list_labels() -> str:
        return await tools.list_labels(session)

    @mcp.tool(name="gmail_create_label", description="Create a new Gmail label")
    async def gmail_create_label(
        name: Annotated[str, Field(min_length=1, description="Label name")],
    ) -> str:
        return await tools.create_label(session, name)

    @mcp.tool(name="gmail_modify_labels", description="Add or remove labels from an email")
    async def gmail_modify_labels(
        messageId: MessageId,  # noqa: N803
        addLabels: Annotated[list[str] | None, Field(description="Label IDs to add")] = None,  # noqa: N803
        removeLabels: Annotated[  # noqa: N803
            list[str] | None, Field(description="Label IDs to remove")
        ] = None,
    ) -> str:
        return await tools.modify_labels(
            session, messageId, add_labels=addLabels, remove_labels=removeLabels
        )

    # ── Filters ────────────────────────────────────────────────────────────────

    @mcp.tool(name="gmail_list_filters", description="List all Gmail filters")
    async def gmail_list_filters() -> str:
        return await tools.list_filters(session)

    @mcp.tool(
        name="gmail_create_filter",
        description="Create a Gmail filter to automatically process incoming emails",
    )
    async def gmail_create_filter(
        sender: Annotated[str | None, Field(description="Filter emails from this sender")] = None,
        to: Annotated[str | None, Field(description="Filter emails to this recipient")] = None,
        subject: Annotated[
            str | None, Field(description="Filter emails with this subject")
        ] = None,
        query: Annotated[str | None, Field(description="Gmail search query for matching")] = None,
        addLabelIds: Annotated[  # noqa: N803
            list[str] | None, Field(description="Label IDs to add to matching emails")
        ] = None,
        removeLabelIds: Annotated[  # noqa: N803
            list[str] | None,
            Field(description="Label IDs to remove (e.g., UNREAD to mark as read)"),
        ] = None,
    ) -> str:
        return await tools.create_filter(
            session,
            from_=sender,
            to=to,
            subject=subject,
            query=query,
            add_label_ids=addLabelIds,
            remove_label_ids=removeLabelIds,
        )

    @mcp.tool(name="gmail_delete_filter", description="Delete a Gmail filter by ID")
    async def gmail_delete_filter(
        filterId: Annotated[str, Field(description="Filter ID to delete")],  # noqa: N803
    ) -> str:
        return await tools.delete_filter(session, filterId)

    # ── Read state ─────────────────────────────────────────────────────────────

    @mcp.tool(name="gmail_mark_read", description="Mark an email as read")
    async def gmail_mark_read(messageId: MessageId) -> str:  # noqa: N803
        return await tools.mark_read(session, messageId)

    @mcp.tool(name="gmail_mark_unread", description="Mark an email as unread")
    async def gmail_mark_unread(messageId: MessageId) -> str:  # noqa: N803
        return await tools.mark_unread(session, messageId)

    # ── Inbox workflows ────────────────────────────────────────────────────────

    @mcp.tool(
        name="gmail_get_priority_emails",
        description=(
            "Get high-priority emails that likely need a response. Searches for unread "
            "emails from real people (not newsletters/automated)."
        ),
    )
    async def gmail_get_priority_emails(
        maxResults: Annotated[  # noqa: N803
            int, Field(ge=1, le=30, description="Maximum emails to return")
        ] = 15,
    ) -> str:
        return await tools.priority_emails(session, max_results=maxResults)

    @mcp.tool(
        name="gmail_find_newsletters",
        description=(
            "Find potential newsletter emails for review. Helps identify subscriptions "
            "for filtering or unsubscribing."
        ),
    )
    async def gmail_find_newsletters(
        maxResults: Annotated[  # noqa: N803
            int, Field(ge=1, le=50, description="Maximum emails to scan")
        ] = 30,
    ) -> str:
        return await tools.find_newsletters(session, max_results=maxResults)

    @mcp.tool(
        name="gmail_find_unsubscribe_candidates",
        description="Find emails with unsubscribe links - candidates for cleaning up inbox",
    )
    async def gmail_find_unsubscribe_candidates(
        maxResults: Annotated[  # noqa: N803
            int, Field(ge=1, le=50, description="Maximum emails to scan")
        ] = 30,
    ) -> str:
        return await tools.find_unsubscribe_candidates(session, max_results=maxResults)

    @mcp.tool(
        name="gmail_daily_summary",
        description="Get a daily summary of inbox: priority emails and newsletter highlights",
    )
    async def gmail_daily_summary() -> str:
        return await tools.daily_summary(session)

    return mcp


def run(settings: Settings | None = None) -> None:
    """Restore any stored token, then serve over stdio until the client disconnects."""
    settings = settings or Settings.from_env()
    session = GmailSession(settings)
    if session.try_restore():
        logger.info("Gmail MCP Server: Authenticated with stored token")
    else:
        logger.info("Gmail MCP Server: Not authenticated - use gmail_auth_status to set up")

    logger.info("Gmail MCP Server running on stdio")
    build_server(session).run("stdio")
