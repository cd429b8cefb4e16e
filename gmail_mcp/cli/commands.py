"""CLI command implementations: serve, setup wizard, and status."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console
from rich.panel import Panel

from gmail_mcp.auth.oauth import AuthError, load_client_config, load_credentials, run_local_flow
from gmail_mcp.config import Settings
from gmail_mcp.gmail.client import GmailError, build_client
from gmail_mcp.server.app import run

logger = logging.getLogger(__name__)
console = Console(width=200)

_SETUP_STEPS = """\
To set up Gmail API access:

1. Go to: https://console.cloud.google.com/
2. Create a new project (or select existing)
3. Enable the Gmail API:
   - Search for 'Gmail API' in the search bar
   - Click 'Enable'
4. Configure OAuth consent screen:
   - Go to 'OAuth consent screen'
   - Choose 'External' user type
   - Fill in app name and email
   - Add your email as a test user
5. Create credentials:
   - Go to 'Credentials'
   - Click 'Create Credentials' > 'OAuth 2.0 Client ID'
   - Choose 'Desktop application'
   - Download the JSON file"""


@click.command()
@click.pass_obj
def serve(settings: Settings) -> None:
    """Run the MCP server over stdio."""
    run(settings)


@click.command()
@click.pass_obj
def setup(settings: Settings) -> None:
    """Interactive setup: check credentials and authorize Gmail access."""
    console.print("[bold]=== Gmail MCP Server Setup ===[/bold]\n")

    if load_client_config(settings) is None:
        console.print("[yellow]No credentials found.[/yellow]\n")
        console.print(_SETUP_STEPS, markup=False)
        console.print(f"6. Save the downloaded file as:\n   {settings.credentials_path}\n", markup=False)
        settings.config_dir.mkdir(parents=True, exist_ok=True)
        console.print(f"Created config directory: {settings.config_dir}")
        return
    console.print(f"[green]✓[/green] Found credentials at: {settings.credentials_path}\n")

    if settings.token_path.exists():
        console.print(f"[green]✓[/green] Found existing token at: {settings.token_path}")
        console.print("\nYou're already authenticated! Run the server to use it.")
        return

    console.print("No token found. Starting OAuth flow...\n")
    console.print(f"Waiting for authorization on port {settings.redirect_port}...")
    try:
        run_local_flow(settings)
    except AuthError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc
    except Exception as exc:  # noqa: BLE001
        logger.error("OAuth flow failed: %s", exc)
        console.print(f"[red]Token exchange failed: {exc}[/red]")
        raise SystemExit(1) from exc

    console.print("\n[green]✓ Authorization successful![/green]")
    console.print(f"Token saved to: {settings.token_path}")


@click.command()
@click.pass_obj
def status(settings: Settings) -> None:
    """Show which account the stored token belongs to."""
    creds = load_credentials(settings)
    if creds is None:
        console.print(
            "[yellow]Not authenticated.[/yellow] "
            "Run `gmail-mcp setup` to authorize Gmail access."
        )
        return

    try:
        profile = asyncio.run(build_client(creds).get_profile())
    except GmailError as exc:
        console.print(f"[red]Failed to reach Gmail: {exc}[/red]")
        raise SystemExit(1) from exc

    console.print(
        Panel(
            f"Authenticated as: [bold]{profile.email}[/bold]\n"
            f"Total messages: {profile.messages_total}\n"
            f"Token: [dim]{settings.token_path}[/dim]",
            title="[bold]Gmail[/bold]",
            border_style="blue",
        )
    )
