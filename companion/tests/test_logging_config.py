"""Tests for the unified logging configuration."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _clean_root_logger():
    """Remove any handlers we add during tests so they don't leak."""
    root = logging.getLogger()
    before = list(root.handlers)
    root.handlers = [
        h for h in root.handlers if getattr(h, "name", None) not in ("_companion_stream", "_companion_file")
    ]
    yield
    root.handlers = before


# ── ContextFilter tests ────────────────────────────────────────────────────


def test_context_filter_stamps_role():
    from logging_config import ContextFilter

    f = ContextFilter("Server")
    record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
    assert f.filter(record) is True
    assert record.role == "Server"  # type: ignore[attr-defined]
    assert record.request_id == ""  # type: ignore[attr-defined]
    assert record.user_id == ""  # type: ignore[attr-defined]


def test_context_filter_reads_contextvars():
    from logging_config import ContextFilter, request_id_var, user_id_var

    f = ContextFilter("Server")
    token_req = request_id_var.set("1a2b3c4d")
    token_user = user_id_var.set("7")
    try:
        record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
        f.filter(record)
        assert record.request_id == "1a2b3c4d"  # type: ignore[attr-defined]
        assert record.user_id == "7"  # type: ignore[attr-defined]
    finally:
        user_id_var.reset(token_user)
        request_id_var.reset(token_req)


# ── ContextFormatter tests ─────────────────────────────────────────────────


def _record(name="services.voice", level=logging.INFO, lineno=88, msg="hello", exc_info=None, **extra):
    record = logging.LogRecord(name, level, "", lineno, msg, (), exc_info)
    record.role = extra.get("role", "Server")  # type: ignore[attr-defined]
    record.request_id = extra.get("request_id", "")  # type: ignore[attr-defined]
    record.user_id = extra.get("user_id", "")  # type: ignore[attr-defined]
    return record


def test_formatter_no_request_context():
    from logging_config import ContextFormatter

    line = ContextFormatter(datefmt="%Y-%m-%d %H:%M:%S").format(_record())
    assert "[Server][INFO]" in line
    assert "services.voice:88 - hello" in line
    assert "[Req" not in line
    assert "[User" not in line


def test_formatter_with_request_and_user():
    from logging_config import ContextFormatter

    fmt = ContextFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    line = fmt.format(_record(level=logging.WARNING, request_id="abc12345full", user_id="7"))
    assert "[Server][Req abc12345][User 7][WARNING]" in line


def test_formatter_includes_exception():
    from logging_config import ContextFormatter

    try:
        raise ValueError("boom")
    except ValueError:
        import sys
        exc_info = sys.exc_info()

    line = ContextFormatter().format(_record(level=logging.ERROR, msg="failed", exc_info=exc_info))
    assert "failed" in line
    assert "ValueError: boom" in line


# ── setup_logging tests ───────────────────────────────────────────────────


def test_setup_logging_adds_stream_handler(monkeypatch):
    import config
    from logging_config import setup_logging

    monkeypatch.setattr(config.settings, "LOG_FILE", "")
    setup_logging("TestServer")

    handler_names = [getattr(h, "name", None) for h in logging.getLogger().handlers]
    assert "_companion_stream" in handler_names
    assert "_companion_file" not in handler_names


def test_setup_logging_idempotent(monkeypatch):
    import config
    from logging_config import setup_logging

    monkeypatch.setattr(config.settings, "LOG_FILE", "")
    root = logging.getLogger()
    setup_logging("TestServer")
    count_before = len(root.handlers)
    setup_logging("TestServer")
    assert len(root.handlers) == count_before


def test_setup_logging_file_handler(monkeypatch, tmp_path):
    import config
    from logging_config import setup_logging

    log_file = tmp_path / "logs" / "companion.log"
    monkeypatch.setattr(config.settings, "LOG_FILE", str(log_file))
    setup_logging("TestFile")

    handler_names = [getattr(h, "name", None) for h in logging.getLogger().handlers]
    assert "_companion_file" in handler_names

    logging.getLogger("test.file_handler").warning("file handler test message")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "file handler test message" in log_file.read_text()


def test_setup_logging_tames_noisy_loggers(monkeypatch):
    import config
    from logging_config import setup_logging

    monkeypatch.setattr(config.settings, "LOG_FILE", "")
    setup_logging("TestTame")

    for name in ("httpx", "httpcore", "openai"):
        assert logging.getLogger(name).level == logging.WARNING


def test_setup_logging_server_propagates_uvicorn(monkeypatch):
    import config
    from logging_config import setup_logging

    monkeypatch.setattr(config.settings, "LOG_FILE", "")
    setup_logging("Server")

    assert logging.getLogger("uvicorn.access").propagate is True
    assert logging.getLogger("uvicorn.access").handlers == []
