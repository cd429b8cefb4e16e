"""Shared pytest fixtures."""

import base64
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from gmail_mcp.config import Settings


def b64(text: str) -> str:
    """Standard base64, as in Gmail API docs examples."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def request(result: Any) -> MagicMock:
    """A prepared googleapiclient request whose execute() returns ``result``."""
    req = MagicMock()
    req.execute.return_value = result
    return req


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    config_dir = tmp_path / ".gmail-mcp"
    return Settings(
        config_dir=config_dir,
        credentials_path=config_dir / "credentials.json",
        token_path=config_dir / "token.json",
    )


@pytest.fixture
def service() -> MagicMock:
    """Mock Gmail v1 resource; configure ``service.users.return_value...`` per test."""
    return MagicMock()


@pytest.fixture
def plain_message() -> dict[str, Any]:
    """A single-part text/plain message as returned by messages.get(format="full")."""
    return {
        "id": "msg123",
        "threadId": "thread456",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "Hello World",
        "payload": {
            "mimeType": "text/plain",
            "headers": [
                {"name": "From", "value": "Alice Smith <alice@example.com>"},
                {"name": "To", "value": "bob@example.com"},
                {"name": "Subject", "value": "Quick question"},
                {"name": "Date", "value": "Fri, 31 Jan 2025 10:00:00 -0500"},
            ],
            "body": {"data": b64("Hello World")},
        },
    }


@pytest.fixture
def multipart_message() -> dict[str, Any]:
    return {
        "id": "msg789",
        "threadId": "thread789",
        "labelIds": ["INBOX"],
        "snippet": "Hello World",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [
                {"name": "From", "value": "Carol <carol@example.com>"},
                {"name": "Subject", "value": "Multipart"},
            ],
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64("Hello World")}},
                {"mimeType": "text/html", "body": {"data": b64("<p>Hello <b>World</b></p>")}},
            ],
        },
    }
