"""Tests that import main.py, covering app creation, startup, and routing."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

from models.character import Character


class TestAppSetup:
    def test_app_exists(self):
        from main import app
        assert app.title == "Companion Chat API"

    def test_routes_registered(self):
        from main import app

        route_paths = {r.path for r in app.routes if hasattr(r, "path")}
        for path in (
            "/api/register",
            "/api/login",
            "/api/user",
            "/api/characters",
            "/api/chat/message",
            "/api/voice/message",
            "/api/payments/verify",
            "/api/payments/complete",
            "/api/admin/analytics",
            "/health",
        ):
            assert path in route_paths

    @patch("logging_config.setup_logging")
    @patch("main.engine")
    @patch("main.Base")
    def test_startup_creates_tables_and_seeds(self, mock_base, mock_engine, mock_setup_logging, db):
        from sqlalchemy.orm import sessionmaker
        from main import app, lifespan

        test_session = sessionmaker(bind=db.get_bind(), expire_on_commit=False)

        async def _run():
            async with lifespan(app):
                pass

        with patch("database.SessionLocal", test_session):
            asyncio.run(_run())

        mock_setup_logging.assert_called_once_with("Server")
        mock_base.metadata.create_all.assert_called_once_with(bind=mock_engine)
        assert db.query(Character).count() == 4
