"""``python -m gmail_mcp``: same as ``gmail-mcp serve``."""

from gmail_mcp.cli.main import cli

if __name__ == "__main__":
    cli(["serve"])
