# spot_assistant/core/flow_controller.py
# Role: Orchestrator for one conversation turn. It glues together:
# session context, intent extraction, validation, query execution, context updates and response rendering.
# Contract: a turn never raises. Any failure becomes a structured success=False response.

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from spot_assistant.core.errors import AgentError, CatastrophicError, OrchestrationError, ValidationError
from spot_assistant.core.query_executor import QueryExecutor
from spot_assistant.core.resilience import validate_required, with_error_handling
from spot_assistant.core.response_renderer import ResponseRenderer
from spot_assistant.core.state_manager import StateManager
from spot_assistant.llm.intent_classifier import IntentExtractor
from spot_assistant.models.intent import Intent, IntentKind, Location
from spot_assistant.models.query_result import QueryResult
from spot_assistant.models.response import AssistantResponse, VoiceResponse
from spot_assistant.models.state import SessionContext, SessionSnapshot
from spot_assistant.tools.ports import VoiceProcessor
from spot_assistant.utils.lexicons import BASE_LANGUAGE, normalize_language

logger = logging.getLogger(__name__)


@dataclass
class _Turn:
    # Per-turn bookkeeping so the boundary knows what was already recorded.
    session_id: str
    message: str = ""
    language: Optional[str] = None
    intent: Optional[Intent] = None
    recorded: bool = False

    @property
    def reply_language(self) -> str:
        if self.intent is not None:
            return self.intent.language
        return normalize_language(self.language) or BASE_LANGUAGE


def new_session_id() -> str:
    return str(uuid.uuid4())


class FlowController:
    def __init__(
        self,
        state_manager: Optional[StateManager] = None,
        intent_extractor: Optional[IntentExtractor] = None,
        query_executor: Optional[QueryExecutor] = None,
        renderer: Optional[ResponseRenderer] = None,
        voice: Optional[VoiceProcessor] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking.
        self.state_manager = state_manager or StateManager()
        self.intent_extractor = intent_extractor or IntentExtractor()
        if query_executor is None:
            from spot_assistant.tools.spot_search_client import SpotSearchClient

            query_executor = QueryExecutor(SpotSearchClient())
        self.query_executor = query_executor
        self.renderer = renderer or ResponseRenderer()
        if voice is None:
            from spot_assistant.tools.voice_client import VoiceClient

            voice = VoiceClient()
        self.voice = voice

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.state_manager.start()

    def stop(self) -> None:
        self.state_manager.stop()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def process_text(
        self,
        message: str,
        session_id: Optional[str] = None,
        location: Optional[Location] = None,
        language: Optional[str] = None,
    ) -> AssistantResponse:
        turn = _Turn(session_id=session_id or new_session_id(), message=message, language=language)
        return self._guarded(
            turn,
            lambda: self._text_turn(turn, location),
            "ProcessTextInput",
            "Failed to process text input",
            AssistantResponse,
        )

    def process_voice(
        self,
        audio: bytes,
        session_id: Optional[str] = None,
        location: Optional[Location] = None,
        language: Optional[str] = None,
        audio_format: str = "wav",
    ) -> VoiceResponse:
        turn = _Turn(session_id=session_id or new_session_id(), language=language)
        response = self._guarded(
            turn,
            lambda: self._voice_turn(turn, audio, audio_format, location),
            "ProcessVoiceInput",
            "Failed to process voice input",
            VoiceResponse,
        )
        response.audio_format = audio_format
        return response

    def process_intent(self, intent: Intent) -> AssistantResponse:
        session_id = intent.session_id or new_session_id()
        intent.session_id = session_id
        turn = _Turn(session_id=session_id, message=intent.original_message, language=intent.language, intent=intent)
        return self._guarded(
            turn,
            lambda: self._handle_turn(turn),
            "ProcessIntent",
            "Failed to process intent",
            AssistantResponse,
        )

    # ------------------------------------------------------------------
    # Session views
    # ------------------------------------------------------------------

    def session_snapshot(self, session_id: str) -> Optional[SessionSnapshot]:
        context = self.state_manager.snapshot(session_id)
        if context is None:
            return None
        return SessionSnapshot.from_context(context)

    def remember_preference(self, session_id: str, key: str, value: Any) -> None:
        self.state_manager.set_preference(session_id, key, value)

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    def _guarded(
        self,
        turn: _Turn,
        operation: Callable[[], AssistantResponse],
        name: str,
        failure_prefix: str,
        response_type: type,
    ) -> Any:
        # Key line: the single place where a failure stops being an exception.
        try:
            response = with_error_handling(
                operation,
                name,
                lambda e: OrchestrationError(f"{failure_prefix}: {e}", cause=e),
            )
        except Exception as e:
            response = self._failed_response(turn, e)

        if not isinstance(response, response_type):
            response = response_type.model_validate(response.model_dump())
        return response

    def _text_turn(self, turn: _Turn, location: Optional[Location]) -> AssistantResponse:
        # 1) Resolve or create the session's context
        # 2) Extract the intent (tier 1 with tier 2 fallback)
        # 3) Run the shared per-turn routine
        self.state_manager.get_or_create(turn.session_id)
        turn.intent = self.intent_extractor.extract(
            turn.message,
            session_id=turn.session_id,
            location=location,
            language=turn.language,
        )
        return self._handle_turn(turn)

    def _voice_turn(
        self,
        turn: _Turn,
        audio: bytes,
        audio_format: str,
        location: Optional[Location],
    ) -> VoiceResponse:
        # 1) Validate audio
        # 2) Speech -> text, then the text path
        # 3) Text -> speech on the reply; a TTS failure keeps the text reply
        validate_required(audio, "audio")
        if len(audio) == 0:
            raise ValidationError("Audio data cannot be empty")

        turn.message = self.voice.speech_to_text(audio, audio_format)
        logger.info("Transcribed voice input for session %s: %s", turn.session_id, turn.message)

        text_response = self._text_turn(turn, location)
        response = VoiceResponse.model_validate(text_response.model_dump())
        response.metadata["transcribed_text"] = turn.message

        try:
            response.audio = self.voice.text_to_speech(response.text, turn.reply_language)
        except Exception as e:
            logger.error("Text-to-speech failed for session %s, returning text only: %s", turn.session_id, e)
            response.audio = None
            response.metadata["tts_failed"] = True
        return response

    def _handle_turn(self, turn: _Turn) -> AssistantResponse:
        # 1) Resolve context
        # 2) Validate -> clarification (failed step) if invalid
        # 3) Execute query
        # 4) Record step (history trimmed by the store)
        # 5) Render + metadata
        intent = turn.intent
        if intent is None:
            raise OrchestrationError("No intent to process")

        self.state_manager.get_or_create(turn.session_id)

        validation = self.intent_extractor.validate(intent)
        if not validation.ok:
            reasons = validation.missing_info + validation.problems
            result = QueryResult.failure(
                f"Intent validation failed: {', '.join(reasons)}",
                missing_info=list(validation.missing_info),
            )
            state = self._record(turn, result)
            text = self.renderer.clarification(intent, validation.missing_info)
            logger.info("Intent validation failed for session %s: %s", turn.session_id, reasons)
            return AssistantResponse(
                success=False,
                text=text,
                session_id=turn.session_id,
                error_message=result.error_message,
                metadata={
                    "validation_failed": True,
                    "missing_info": list(validation.missing_info),
                    "problems": list(validation.problems),
                    "interaction_count": state.interaction_count,
                },
            )

        result = self.query_executor.execute(intent)
        state = self._record(turn, result)
        text = self.renderer.render(intent, result)

        logger.debug(
            "Turn done: session=%s intent=%s success=%s count=%d",
            turn.session_id,
            intent.kind.value,
            result.success,
            state.interaction_count,
        )

        return AssistantResponse(
            success=result.success,
            text=text,
            session_id=turn.session_id,
            spots=list(result.spots),
            map_url=result.map_url,
            error_message=result.error_message,
            metadata=self._turn_metadata(state, result),
        )

    def _turn_metadata(self, state: SessionContext, result: QueryResult) -> Dict[str, Any]:
        metadata = dict(result.metadata)
        metadata.update(
            {
                "interaction_count": state.interaction_count,
                "session_duration": self._session_duration(state),
                "context_tracked": True,
                "from_cache": bool(result.metadata.get("fromCache", False)),
                "fallback_used": bool(result.metadata.get("fallback_used", False)),
            }
        )
        return metadata

    def _session_duration(self, state: SessionContext) -> float:
        # Same clock as created_at, so an injected clock gives consistent durations.
        return (self.state_manager.now() - state.created_at).total_seconds()

    def _record(self, turn: _Turn, result: QueryResult) -> SessionContext:
        intent = turn.intent or Intent(
            kind=IntentKind.UNKNOWN,
            original_message=turn.message,
            language=turn.reply_language,
            session_id=turn.session_id,
        )
        state = self.state_manager.record_turn(turn.session_id, intent, result)
        turn.recorded = True
        return state

    def _failed_response(self, turn: _Turn, error: Exception) -> AssistantResponse:
        # 1) Tag unanticipated failures
        # 2) Record one failed step unless the turn already did
        # 3) Generic localized error text
        if not isinstance(error, AgentError):
            error = CatastrophicError(f"Unexpected failure: {error}", cause=error)
        logger.error("Turn failed for session %s (%s): %s", turn.session_id, error.code, error)

        metadata: Dict[str, Any] = {"error_occurred": True, "error_code": error.code}
        if not turn.recorded:
            try:
                state = self._record(turn, QueryResult.failure(str(error), error_code=error.code))
                metadata["interaction_count"] = state.interaction_count
            except Exception:
                logger.exception("Could not record failed step for session %s", turn.session_id)

        state = self.state_manager.get(turn.session_id)
        if state is not None:
            metadata.setdefault("interaction_count", state.interaction_count)
            metadata["session_duration"] = self._session_duration(state)

        return AssistantResponse(
            success=False,
            text=self.renderer.generic_error(turn.reply_language),
            session_id=turn.session_id,
            error_message=str(error),
            metadata=metadata,
        )
