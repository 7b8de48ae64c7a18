"""
Tests for the per-turn orchestrator: clarification, search with cache, fallback, the never-raise boundary and voice.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from spot_assistant.core.errors import TransientServiceError
from spot_assistant.core.state_manager import StateManager
from spot_assistant.models.intent import Intent, IntentKind
from spot_assistant.models.response import VoiceResponse
from spot_assistant.utils.messages import MESSAGES

from conftest import LAGOS


class TestTextTurn:
    def test_missing_location_asks_for_it(self, flow) -> None:
        response = flow.process_text("Find amala near me", session_id="s1")

        assert response.success is False
        assert response.text == MESSAGES["en"]["need_location"]
        assert response.metadata["validation_failed"] is True
        assert response.metadata["missing_info"] == ["location"]
        assert response.metadata["interaction_count"] == 1

        state = flow.state_manager.get("s1")
        assert state.interaction_count == 1
        assert len(state.conversation_flow) == 1
        assert state.conversation_flow[0].success is False

    def test_search_ranks_and_second_turn_hits_cache(self, flow, search_service) -> None:
        first = flow.process_text("Find amala near me", session_id="s1", location=LAGOS)
        second = flow.process_text("Find amala near me", session_id="s1", location=LAGOS)

        assert first.success is True
        assert [s.id for s in first.spots] == ["b", "a"]
        assert first.text.startswith("I found 2 amala spots for you:")
        assert first.metadata["from_cache"] is False
        assert first.metadata["context_tracked"] is True

        assert second.metadata["from_cache"] is True
        assert second.metadata["interaction_count"] == 2
        assert search_service.calls["search"] == 1

    def test_backend_outage_gives_localized_fallback(self, flow, search_service, transient_error) -> None:
        search_service.fail_with = transient_error
        response = flow.process_text("Abeg find amala near me", session_id="s1", location=LAGOS)

        assert response.success is False
        assert response.spots == []
        assert response.metadata["fallback_used"] is True
        assert response.metadata["fallback_strategy"] == "empty_results"
        assert response.text.startswith(MESSAGES["pcm"]["error_prefix"])
        assert MESSAGES["pcm"]["search_unavailable"] in response.text
        assert search_service.calls["search"] == 3

    def test_caller_language_is_used_for_the_reply(self, flow, search_service, transient_error) -> None:
        search_service.fail_with = transient_error
        response = flow.process_text("Find amala near me", location=LAGOS, language="yoruba")
        assert MESSAGES["yo"]["search_unavailable"] in response.text

    def test_unexpected_failure_becomes_failed_response(self, flow) -> None:
        with patch.object(flow.query_executor, "execute", side_effect=RuntimeError("boom")):
            response = flow.process_text("Find amala near me", session_id="s1", location=LAGOS)

        assert response.success is False
        assert response.text == flow.renderer.generic_error("en")
        assert response.metadata["error_occurred"] is True
        assert response.metadata["error_code"] == "ORCHESTRATION_ERROR"

        state = flow.state_manager.get("s1")
        assert state.interaction_count == 1
        assert state.conversation_flow[-1].success is False

    def test_renderer_failure_does_not_record_twice(self, flow) -> None:
        with patch.object(flow.renderer, "render", side_effect=RuntimeError("template bug")):
            response = flow.process_text("Find amala near me", session_id="s1", location=LAGOS)

        assert response.success is False
        assert flow.state_manager.get("s1").interaction_count == 1

    def test_blank_message_is_a_validation_failure(self, flow) -> None:
        response = flow.process_text("   ", session_id="s1")

        assert response.success is False
        assert response.metadata["error_code"] == "VALIDATION_ERROR"
        assert flow.state_manager.get("s1").interaction_count == 1

    def test_new_session_id_when_none_given(self, flow) -> None:
        response = flow.process_text("Find amala near me", location=LAGOS)
        assert response.session_id
        assert response.session_id in flow.state_manager

    def test_history_is_bounded(self, flow) -> None:
        for _ in range(12):
            flow.process_text("Find amala near me", session_id="s1", location=LAGOS)

        state = flow.state_manager.get("s1")
        assert state.interaction_count == 12
        assert len(state.conversation_flow) == 10


class TestProcessIntent:
    def test_assigns_session_and_runs_pipeline(self, flow) -> None:
        intent = Intent(kind=IntentKind.FIND_NEARBY, target_location=LAGOS)
        response = flow.process_intent(intent)

        assert response.success is True
        assert response.session_id
        assert intent.session_id == response.session_id
        assert flow.state_manager.get(response.session_id).interaction_count == 1

    def test_unknown_intent_asks_what_the_user_wants(self, flow) -> None:
        response = flow.process_intent(Intent(session_id="s1"))
        assert response.success is False
        assert response.text == MESSAGES["en"]["clarify_request"]


class TestSessionViews:
    def test_snapshot_and_preferences(self, flow) -> None:
        assert flow.session_snapshot("s1") is None

        flow.process_text("Find amala near me", session_id="s1", location=LAGOS)
        flow.remember_preference("s1", "favourite_soup", "ewedu")
        snapshot = flow.session_snapshot("s1")

        assert snapshot.interaction_count == 1
        assert snapshot.last_intent_kind == IntentKind.FIND_NEARBY
        assert snapshot.preferences == {"favourite_soup": "ewedu"}
        assert len(snapshot.conversation_flow) == 1

    def test_session_duration_follows_the_store_clock(self, flow) -> None:
        now = [datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)]
        flow.state_manager = StateManager(clock=lambda: now[0])

        flow.process_text("Find amala near me", session_id="s1", location=LAGOS)
        now[0] += timedelta(seconds=90)
        second = flow.process_text("Find amala near me", session_id="s1", location=LAGOS)
        assert second.metadata["session_duration"] == 90.0

        now[0] += timedelta(seconds=30)
        with patch.object(flow.query_executor, "execute", side_effect=RuntimeError("boom")):
            failed = flow.process_text("Find amala near me", session_id="s1", location=LAGOS)
        assert failed.metadata["error_occurred"] is True
        assert failed.metadata["session_duration"] == 120.0
        assert failed.metadata["interaction_count"] == 3


class TestVoiceTurn:
    def test_transcribes_answers_and_speaks(self, flow, voice) -> None:
        response = flow.process_voice(b"audio-bytes", session_id="s1", location=LAGOS, audio_format="mp3")

        assert isinstance(response, VoiceResponse)
        assert response.success is True
        assert response.audio == voice.audio
        assert response.audio_format == "mp3"
        assert response.metadata["transcribed_text"] == voice.transcript
        assert voice.tts_calls == [(response.text, "en")]

    def test_speech_synthesis_failure_keeps_text(self, flow, voice) -> None:
        voice.tts_error = TransientServiceError("tts down")
        response = flow.process_voice(b"audio-bytes", session_id="s1", location=LAGOS)

        assert response.success is True
        assert response.audio is None
        assert response.metadata["tts_failed"] is True
        assert response.text.startswith("I found 2 amala spots")

    def test_transcription_failure_is_a_failed_voice_response(self, flow, voice) -> None:
        voice.stt_error = TransientServiceError("stt down")
        response = flow.process_voice(b"audio-bytes", session_id="s1")

        assert isinstance(response, VoiceResponse)
        assert response.success is False
        assert response.audio is None
        assert response.metadata["error_code"] == "SERVICE_UNAVAILABLE"
        assert voice.tts_calls == []

    def test_empty_audio_is_rejected(self, flow, voice) -> None:
        response = flow.process_voice(b"", session_id="s1")
        assert response.success is False
        assert response.metadata["error_code"] == "VALIDATION_ERROR"
