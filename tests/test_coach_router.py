"""Tests for the coach router: direct handler calls and the HTTP envelope."""

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from jose import jwt

from common.ai import AuthError, RateLimitError, UpstreamError, CompletionTimeoutError
from common.utils.exceptions import (
    BadGatewayException,
    GatewayTimeoutException,
    InternalServerException,
    RateLimitException,
)
from coach_app.config import Settings
from coach_app.dependencies import get_coach_service, init_auth_services
from coach_app.routers.coach import chat, crisis, list_models, completion_error_to_http
from coach_app.schemas.coach import ChatRequest, CrisisRequest
from coach_app.services.coach.coach_service import CoachService

SECRET = "test-secret"


def _token(user_id="user_abc123", secret=SECRET):
    payload = {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}
    return jwt.encode(payload, secret, algorithm="HS256")


def _auth(user_id="user_abc123"):
    return {"Authorization": f"Bearer {_token(user_id)}"}


@pytest.fixture
def service(fake_client, memory_store):
    return CoachService(client=fake_client, store=memory_store)


@pytest.fixture
def client(service):
    from api import app

    init_auth_services(Settings(JWT_SECRET=SECRET))
    app.dependency_overrides[get_coach_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


# ─────────────────────────────────────────────────────────────────
# Handlers called directly
# ─────────────────────────────────────────────────────────────────


class TestHandlers:
    @pytest.mark.asyncio
    async def test_chat_envelope(self, service, principal):
        result = await chat(
            body=ChatRequest(message="Hello coach"),
            principal=principal,
            coach_service=service,
        )

        assert result["success"] is True
        assert result["data"]["conversationId"].startswith("conv_")
        assert result["data"]["message"]
        assert "followUpQuestions" in result["data"]
        assert "timestamp" in result["data"]
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_crisis_envelope(self, make_client, memory_store, principal):
        service = CoachService(client=make_client(error=UpstreamError("down")), store=memory_store)

        result = await crisis(
            body=CrisisRequest(crisisData={"note": "bad night"}, urgency="emergency"),
            principal=principal,
            coach_service=service,
        )

        assert result["success"] is True
        assert result["data"]["urgency"] == "emergency"
        assert result["data"]["emergencyContacts"]
        assert result["data"]["message"]
        assert "timestamp" in result["data"]

    @pytest.mark.asyncio
    async def test_models_error_is_mapped(self, make_client, memory_store, principal):
        service = CoachService(client=make_client(error=RateLimitError("slow down", 429)), store=memory_store)

        with pytest.raises(RateLimitException):
            await list_models(principal=principal, coach_service=service)


@pytest.mark.parametrize("error,expected_type,status", [
    (UpstreamError("down", 503), BadGatewayException, 502),
    (RateLimitError("slow", 429), RateLimitException, 429),
    (AuthError("bad key", 401), InternalServerException, 500),
    (CompletionTimeoutError("slow"), GatewayTimeoutException, 504),
])
def test_completion_error_to_http(error, expected_type, status):
    mapped = completion_error_to_http(error)
    assert isinstance(mapped, expected_type)
    assert mapped.status_code == status
    assert mapped.code == error.code


# ─────────────────────────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────────────────────────


class TestHTTP:
    def test_chat_success(self, client):
        response = client.post("/api/v1/coach/chat", json={"message": "Hi"}, headers=_auth())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        for key in (
            "conversationId", "message", "suggestions", "followUpQuestions", "strategies", "urgency", "timestamp",
        ):
            assert key in body["data"]
        assert body["timestamp"]

    def test_chat_validation_error(self, client):
        response = client.post("/api/v1/coach/chat", json={"message": ""}, headers=_auth())

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["errors"][0]["field"] == "message"

    def test_chat_message_too_long(self, client):
        response = client.post("/api/v1/coach/chat", json={"message": "x" * 2001}, headers=_auth())
        assert response.status_code == 400

    def test_missing_auth(self, client):
        response = client.post("/api/v1/coach/chat", json={"message": "Hi"})

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "AUTH_REQUIRED"

    def test_invalid_token(self, client):
        headers = {"Authorization": f"Bearer {_token(secret='wrong-secret')}"}
        response = client.get("/api/v1/coach/stats", headers=headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_unknown_conversation(self, client):
        response = client.post(
            "/api/v1/coach/chat",
            json={"message": "Hi", "conversationId": "conv_missing"},
            headers=_auth(),
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CONVERSATION_NOT_FOUND"

    def test_conversation_not_visible_to_other_user(self, client):
        created = client.post("/api/v1/coach/chat", json={"message": "Hi"}, headers=_auth("user_a"))
        conversation_id = created.json()["data"]["conversationId"]

        own = client.get(f"/api/v1/coach/conversations/{conversation_id}", headers=_auth("user_a"))
        other = client.get(f"/api/v1/coach/conversations/{conversation_id}", headers=_auth("user_b"))
        deleted = client.delete(f"/api/v1/coach/conversations/{conversation_id}", headers=_auth("user_b"))

        assert own.status_code == 200
        assert [m["role"] for m in own.json()["data"]["messages"]] == ["system", "user", "assistant"]
        assert other.status_code == 404
        assert deleted.status_code == 404

    def test_list_and_delete(self, client):
        client.post("/api/v1/coach/chat", json={"message": "Hi"}, headers=_auth())

        listed = client.get("/api/v1/coach/conversations?page=1&limit=10", headers=_auth())
        body = listed.json()
        assert body["pagination"]["total"] == 1
        conversation_id = body["data"][0]["id"]
        assert body["data"][0]["messageCount"] == 3

        deleted = client.delete(f"/api/v1/coach/conversations/{conversation_id}", headers=_auth())
        assert deleted.status_code == 200
        assert deleted.json()["success"] is True

    def test_list_limit_bounds(self, client):
        response = client.get("/api/v1/coach/conversations?limit=51", headers=_auth())
        assert response.status_code == 400

    def test_complete_conversation(self, client):
        created = client.post("/api/v1/coach/chat", json={"message": "Hi"}, headers=_auth())
        conversation_id = created.json()["data"]["conversationId"]

        response = client.post(f"/api/v1/coach/conversations/{conversation_id}/complete", headers=_auth())

        assert response.status_code == 200
        assert response.json()["data"]["isCompleted"] is True

    def test_crisis_invalid_urgency(self, client):
        response = client.post(
            "/api/v1/coach/crisis",
            json={"crisisData": {}, "urgency": "extreme"},
            headers=_auth(),
        )
        assert response.status_code == 400

    def test_crisis_success(self, client):
        response = client.post(
            "/api/v1/coach/crisis",
            json={"crisisData": {"trigger": "party"}, "urgency": "high"},
            headers=_auth(),
        )

        data = response.json()["data"]
        assert data["urgency"] == "emergency"
        assert data["emergencyContacts"]
        assert data["groundingTechnique"]["steps"]
        assert data["timestamp"]

    def test_journal(self, client):
        response = client.post(
            "/api/v1/coach/analyze-journal",
            json={"entry": "I feel proud and grateful today", "mood": 7},
            headers=_auth(),
        )

        data = response.json()["data"]
        assert data["sentiment"] == "positive"
        assert data["mood"] == 7
        assert data["insights"]
        assert data["timestamp"]

    @pytest.mark.parametrize("payload", [
        {"entry": "too short"},
        {"entry": "long enough entry here", "mood": 11},
    ])
    def test_journal_validation(self, client, payload):
        response = client.post("/api/v1/coach/analyze-journal", json=payload, headers=_auth())
        assert response.status_code == 400

    def test_assessment_initial(self, client):
        response = client.post(
            "/api/v1/coach/assessment",
            json={"userContext": {"recoveryGoals": {"primaryGoal": "quit"}}},
            headers=_auth(),
        )

        data = response.json()["data"]
        assert data["stage"] == "initial"
        assert data["questions"]

    def test_guidance_unknown_kind(self, client):
        response = client.post("/api/v1/coach/guidance/horoscope", json={"data": {}}, headers=_auth())
        assert response.status_code == 400

    def test_guidance(self, client):
        response = client.post(
            "/api/v1/coach/guidance/encouragement",
            json={"data": {"longestStreak": 10}},
            headers=_auth(),
        )
        assert response.status_code == 200
        assert response.json()["data"]["message"]

    def test_status(self, client):
        response = client.get("/api/v1/coach/status", headers=_auth())

        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["model"] == "test/model"

    def test_models(self, client):
        response = client.get("/api/v1/coach/models", headers=_auth())
        assert response.json()["data"]["models"] == [{"id": "test/model"}]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "ok"
