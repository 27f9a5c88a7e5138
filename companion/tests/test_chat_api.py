"""Tests for the text chat endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from services.llm import FALLBACK_REPLY, CompletionError, get_completion_service


@pytest.fixture
def completion(app):
    service = MagicMock()
    service.generate.return_value = "Hi sweetheart! 💕"
    app.dependency_overrides[get_completion_service] = lambda: service
    return service


class TestStartChat:
    def test_start_returns_empty_history(self, auth_client, character):
        resp = auth_client.post("/api/chat/start", json={"characterKey": "priya", "language": "hinglish"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["messages"] == []
        assert data["conversation"]["language"] == "hinglish"
        assert data["conversation"]["messageCount"] == 0
        assert data["character"]["key"] == "priya"

    def test_start_never_resumes(self, auth_client, character):
        first = auth_client.post("/api/chat/start", json={"characterKey": "priya"}).json()
        second = auth_client.post("/api/chat/start", json={"characterKey": "priya"}).json()
        assert first["conversation"]["id"] != second["conversation"]["id"]
        assert second["messages"] == []

    def test_start_unknown_character(self, auth_client, character):
        resp = auth_client.post("/api/chat/start", json={"characterKey": "nobody"})
        assert resp.status_code == 404

    def test_start_requires_key(self, auth_client):
        resp = auth_client.post("/api/chat/start", json={})
        assert resp.status_code == 400

    def test_start_requires_auth(self, client, character):
        resp = client.post("/api/chat/start", json={"characterKey": "priya"})
        assert resp.status_code == 401
        assert resp.json()["redirectTo"] == "/auth"


class TestSendMessage:
    def test_message_roundtrip(self, auth_client, conversation, completion):
        resp = auth_client.post(
            "/api/chat/message",
            json={"conversationId": conversation.id, "content": "hello", "language": "english"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["userMessage"]["content"] == "hello"
        assert data["userMessage"]["sender"] == "user"
        assert data["aiMessage"]["content"] == "Hi sweetheart! 💕"
        assert data["aiMessage"]["sender"] == "assistant"
        assert data["userCoins"] == 4
        assert data["messageCount"] == 2

    def test_last_coin_then_coins_required(self, auth_client, db, user, conversation, completion):
        user.coins = 1
        db.commit()

        first = auth_client.post("/api/chat/message", json={"conversationId": conversation.id, "content": "hi"})
        assert first.status_code == 200
        assert first.json()["userCoins"] == 0
        assert completion.generate.call_count == 1

        second = auth_client.post("/api/chat/message", json={"conversationId": conversation.id, "content": "again"})
        assert second.status_code == 400
        assert second.json()["needsCoins"] is True
        assert "coins" in second.json()["message"].lower()
        assert completion.generate.call_count == 1

    def test_completion_failure_returns_fallback(self, auth_client, conversation, completion):
        completion.generate.side_effect = CompletionError("provider down")
        resp = auth_client.post("/api/chat/message", json={"conversationId": conversation.id, "content": "hi"})
        assert resp.status_code == 200
        assert resp.json()["aiMessage"]["content"] == FALLBACK_REPLY
        assert resp.json()["userCoins"] == 4

    def test_missing_fields(self, auth_client, completion):
        resp = auth_client.post("/api/chat/message", json={"content": "   "})
        assert resp.status_code == 400
        completion.generate.assert_not_called()

    def test_unknown_conversation(self, auth_client, completion):
        resp = auth_client.post("/api/chat/message", json={"conversationId": 999, "content": "hi"})
        assert resp.status_code == 404

    def test_ended_conversation(self, auth_client, conversation, completion):
        assert auth_client.post("/api/chat/end", json={"conversationId": conversation.id}).json() == {"success": True}
        resp = auth_client.post("/api/chat/message", json={"conversationId": conversation.id, "content": "hi"})
        assert resp.status_code == 400
        completion.generate.assert_not_called()


class TestEndChat:
    def test_end_unknown(self, auth_client):
        resp = auth_client.post("/api/chat/end", json={"conversationId": 999})
        assert resp.status_code == 404
