"""
Tests for the HTTP layer: request/response shapes and the FlowController dependency override.
"""

import base64

import pytest
from fastapi.testclient import TestClient

import spot_assistant.api.deps as deps
from spot_assistant.api.deps import get_flow_controller
from spot_assistant.main import app


@pytest.fixture
def client(monkeypatch, flow):
    # Key line: the lifespan and the routes must both see the fake-backed controller.
    monkeypatch.setattr(deps, "_flow_controller", flow)
    app.dependency_overrides[get_flow_controller] = lambda: flow
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


LAGOS_JSON = {"latitude": 6.5244, "longitude": 3.3792}


class TestMeta:
    def test_health(self, client) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root_points_at_docs(self, client) -> None:
        assert client.get("/").json()["docs"] == "/docs"


class TestChat:
    def test_search_turn(self, client) -> None:
        response = client.post(
            "/chat",
            json={"message": "Find amala near me", "session_id": "s1", "location": LAGOS_JSON},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["session_id"] == "s1"
        assert [s["id"] for s in body["spots"]] == ["b", "a"]
        assert body["metadata"]["interaction_count"] == 1

    def test_failed_turn_is_still_http_200(self, client) -> None:
        response = client.post("/chat", json={"message": "Find amala near me"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["metadata"]["missing_info"] == ["location"]

    def test_missing_message_is_rejected(self, client) -> None:
        assert client.post("/chat", json={"session_id": "s1"}).status_code == 422


class TestVoiceChat:
    def test_audio_round_trips_as_base64(self, client, voice) -> None:
        response = client.post(
            "/chat/voice",
            json={
                "audio_base64": base64.b64encode(b"spoken words").decode("ascii"),
                "audio_format": "mp3",
                "location": LAGOS_JSON,
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert base64.b64decode(body["audio_base64"]) == voice.audio
        assert body["audio_format"] == "mp3"
        assert body["metadata"]["transcribed_text"] == voice.transcript
        assert "audio" not in body

    def test_speech_synthesis_failure_returns_no_audio(self, client, voice) -> None:
        voice.tts_error = RuntimeError("tts down")
        response = client.post(
            "/chat/voice",
            json={"audio_base64": base64.b64encode(b"x").decode("ascii"), "location": LAGOS_JSON},
        )
        body = response.json()
        assert body["audio_base64"] is None
        assert body["metadata"]["tts_failed"] is True

    def test_invalid_base64_is_422(self, client) -> None:
        response = client.post("/chat/voice", json={"audio_base64": "not base64!!"})
        assert response.status_code == 422


class TestIntentAndState:
    def test_pre_extracted_intent(self, client) -> None:
        response = client.post(
            "/intent",
            json={"kind": "find_nearby", "target_location": LAGOS_JSON, "session_id": "s2"},
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        state = client.get("/state/s2").json()
        assert state["interaction_count"] == 1
        assert state["last_intent_kind"] == "find_nearby"
        assert len(state["conversation_flow"]) == 1

    def test_unknown_session_is_404(self, client) -> None:
        assert client.get("/state/never-seen").status_code == 404
