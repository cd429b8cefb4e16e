"""Tests for Settings.from_env."""

from pathlib import Path

import pytest

from gmail_mcp.config import Settings

_ENV_VARS = (
    "GMAIL_MCP_CONFIG_DIR",
    "GMAIL_CREDENTIALS_PATH",
    "GMAIL_TOKEN_PATH",
    "GMAIL_OAUTH_REDIRECT_URI",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    settings = Settings.from_env()
    assert settings.config_dir == tmp_path / ".gmail-mcp"
    assert settings.credentials_path == tmp_path / ".gmail-mcp" / "credentials.json"
    assert settings.token_path == tmp_path / ".gmail-mcp" / "token.json"
    assert settings.redirect_uri == "http://localhost:3000/oauth2callback"
    assert settings.redirect_port == 3000
    assert settings.log_level == "INFO"


def test_config_dir_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GMAIL_MCP_CONFIG_DIR", str(tmp_path / "cfg"))
    settings = Settings.from_env()
    assert settings.token_path == tmp_path / "cfg" / "token.json"


def test_explicit_paths_win(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GMAIL_MCP_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("GMAIL_CREDENTIALS_PATH", str(tmp_path / "client.json"))
    monkeypatch.setenv("GMAIL_TOKEN_PATH", str(tmp_path / "tok.json"))
    settings = Settings.from_env()
    assert settings.credentials_path == tmp_path / "client.json"
    assert settings.token_path == tmp_path / "tok.json"


def test_redirect_and_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GMAIL_OAUTH_REDIRECT_URI", "http://127.0.0.1:8765/callback")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.redirect_port == 8765
    assert settings.log_level == "DEBUG"


def test_redirect_without_port(tmp_path: Path) -> None:
    settings = Settings(
        config_dir=tmp_path,
        credentials_path=tmp_path / "c.json",
        token_path=tmp_path / "t.json",
        redirect_uri="http://localhost/cb",
    )
    assert settings.redirect_port == 80


def test_redirect_port_ipv6_host(tmp_path: Path) -> None:
    settings = Settings(
        config_dir=tmp_path,
        credentials_path=tmp_path / "c.json",
        token_path=tmp_path / "t.json",
        redirect_uri="http://[::1]:9000/oauth2callback",
    )
    assert settings.redirect_port == 9000
