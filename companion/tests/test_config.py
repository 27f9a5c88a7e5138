"""Tests for conf.json loading, Settings integration, and secret generation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from config import (
    CompanionConfig,
    Settings,
    get_companion_dir,
    load_conf,
    _ensure_secrets,
)


@pytest.fixture(autouse=True)
def _isolate_companion_dir(tmp_path, monkeypatch):
    """Point COMPANION_DIR to tmp_path so tests never touch the real config."""
    monkeypatch.setenv("COMPANION_DIR", str(tmp_path / "companion"))


# ---------------------------------------------------------------------------
# get_companion_dir
# ---------------------------------------------------------------------------


def test_get_companion_dir_default(monkeypatch):
    monkeypatch.delenv("COMPANION_DIR", raising=False)
    assert get_companion_dir() == Path.home() / ".config" / "companion"


def test_get_companion_dir_env_override(monkeypatch, tmp_path):
    custom = tmp_path / "custom_dir"
    monkeypatch.setenv("COMPANION_DIR", str(custom))
    assert get_companion_dir() == custom


# ---------------------------------------------------------------------------
# load_conf
# ---------------------------------------------------------------------------


def test_load_conf_defaults(tmp_path, monkeypatch):
    """No conf.json file → CompanionConfig uses built-in defaults."""
    monkeypatch.setenv("COMPANION_DIR", str(tmp_path / "nonexistent"))
    conf = load_conf()
    assert conf.database_url == ""
    assert conf.cors_allow_all_origins is None
    assert conf.admin_allowed_hosts == []


def test_load_conf_from_file(tmp_path, monkeypatch):
    companion_dir = tmp_path / "companion"
    companion_dir.mkdir(parents=True)
    monkeypatch.setenv("COMPANION_DIR", str(companion_dir))

    data = {
        "database_url": "sqlite:///custom.db",
        "log_level": "DEBUG",
        "admin_allowed_hosts": ["admin.example.com"],
    }
    (companion_dir / "conf.json").write_text(json.dumps(data))

    conf = load_conf()
    assert conf.database_url == "sqlite:///custom.db"
    assert conf.log_level == "DEBUG"
    assert conf.admin_allowed_hosts == ["admin.example.com"]


def test_load_conf_invalid_json(tmp_path, monkeypatch, caplog):
    """Malformed JSON → falls back to defaults and logs a warning."""
    companion_dir = tmp_path / "companion"
    companion_dir.mkdir(parents=True)
    monkeypatch.setenv("COMPANION_DIR", str(companion_dir))
    (companion_dir / "conf.json").write_text("{not valid json!!!")

    with caplog.at_level("WARNING", logger="config"):
        conf = load_conf()
    assert conf == CompanionConfig()
    assert "Failed to parse" in caplog.text


# ---------------------------------------------------------------------------
# _ensure_secrets
# ---------------------------------------------------------------------------


def test_ensure_secrets_generates_secret_key(tmp_path, monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    env_file = tmp_path / ".env"

    _ensure_secrets(env_file)

    import os
    assert os.environ["SECRET_KEY"]
    assert f"SECRET_KEY={os.environ['SECRET_KEY']}" in env_file.read_text()


def test_ensure_secrets_preserves_existing(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "already-set")
    env_file = tmp_path / ".env"

    _ensure_secrets(env_file)

    assert not env_file.exists()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_settings_defaults():
    s = Settings()
    assert s.DEFAULT_COINS == 5
    assert s.CONTEXT_WINDOW_TURNS == 15
    assert s.LLM_MAX_TOKENS == 150
    assert s.ELEVENLABS_MODEL_ID == "eleven_multilingual_v2"
    assert s.PAYMENT_CURRENCY == "INR"


def test_env_var_overrides_defaults(monkeypatch):
    monkeypatch.setenv("DEFAULT_COINS", "12")
    monkeypatch.setenv("LLM_PROVIDER", "anthropic")
    s = Settings()
    assert s.DEFAULT_COINS == 12
    assert s.LLM_PROVIDER == "anthropic"


def test_payments_enabled_requires_both_keys():
    assert Settings(RAZORPAY_KEY_ID="rzp_test", RAZORPAY_KEY_SECRET="").payments_enabled is False
    assert Settings(RAZORPAY_KEY_ID="rzp_test", RAZORPAY_KEY_SECRET="s3cret").payments_enabled is True


def test_admin_enabled_requires_credentials():
    assert Settings(ADMIN_USERNAME="", ADMIN_PASSWORD="").admin_enabled is False
    assert Settings(ADMIN_USERNAME="admin", ADMIN_PASSWORD="pw").admin_enabled is True
