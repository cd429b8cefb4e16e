"""CLI entry point for the Gmail MCP server."""

import logging

import click
from dotenv import load_dotenv

from gmail_mcp.config import LOG_DATEFMT, LOG_FORMAT, Settings

logger = logging.getLogger(__name__)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Gmail MCP server: serve tools over stdio and manage OAuth."""
    load_dotenv()
    settings = Settings.from_env()
    # stdout carries the MCP protocol; basicConfig logs to stderr
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    ctx.obj = settings


# Import and register commands after cli is defined to avoid circular imports.
from gmail_mcp.cli.commands import serve, setup, status  # noqa: E402

cli.add_command(serve)
cli.add_command(setup)
cli.add_command(status)
