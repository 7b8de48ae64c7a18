"""
Shared fakes for the collaborators the assistant core consumes.

Nothing here touches the network: the language model, the search backend and
the voice service are replaced by small in-memory doubles.
"""

from typing import Callable, Dict, List, Optional

import pytest

from spot_assistant.core.flow_controller import FlowController
from spot_assistant.core.query_executor import QueryExecutor
from spot_assistant.core.resilience import FallbackPolicy
from spot_assistant.core.errors import TransientServiceError
from spot_assistant.core.state_manager import StateManager
from spot_assistant.llm.intent_classifier import IntentExtractor, PrimaryIntentExtractor
from spot_assistant.models.intent import Intent, IntentKind, Location
from spot_assistant.models.spot import PriceRange, Review, SearchCriteria, Spot

LAGOS = Location(latitude=6.5244, longitude=3.3792)


def make_spot(spot_id: str, **overrides) -> Spot:
    data = {
        "id": spot_id,
        "name": f"Spot {spot_id}",
        "address": f"{spot_id} Allen Avenue, Ikeja",
        "average_rating": 4.0,
        "review_count": 10,
        "is_verified": False,
        "price_range": PriceRange.BUDGET,
    }
    data.update(overrides)
    return Spot(**data)


def make_intent(kind: IntentKind = IntentKind.FIND_NEARBY, **overrides) -> Intent:
    data = {"kind": kind, "original_message": "find amala near me", "target_location": LAGOS}
    data.update(overrides)
    return Intent(**data)


class FakeSearchService:
    """In-memory search backend that counts calls and can be told to fail."""

    def __init__(self, spots: Optional[List[Spot]] = None, reviews: Optional[Dict[str, List[Review]]] = None) -> None:
        self.spots = spots or []
        self.reviews = reviews or {}
        self.fail_with: Optional[Exception] = None
        self.calls: Dict[str, int] = {"search": 0, "get_by_id": 0, "get_reviews": 0, "recent_reviews": 0}
        self.last_criteria: Optional[SearchCriteria] = None

    def _tick(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_with is not None:
            raise self.fail_with

    def search(self, criteria: SearchCriteria) -> List[Spot]:
        self._tick("search")
        self.last_criteria = criteria
        return list(self.spots)

    def get_by_id(self, spot_id: str) -> Optional[Spot]:
        self._tick("get_by_id")
        return next((s for s in self.spots if s.id == spot_id), None)

    def get_reviews(self, spot_id: str) -> List[Review]:
        self._tick("get_reviews")
        return list(self.reviews.get(spot_id, []))

    def recent_reviews(self, limit: int = 20) -> List[Review]:
        self._tick("recent_reviews")
        return [r for rs in self.reviews.values() for r in rs][:limit]


class FakeGenerator:
    """Language-model double: returns canned replies in order, or raises."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None) -> None:
        self.replies = list(replies or [])
        self.error = error
        self.calls = 0
        self.prompts: List[str] = []

    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


class FakeVoice:
    def __init__(self, transcript: str = "find amala near me", audio: bytes = b"RIFF-fake-audio") -> None:
        self.transcript = transcript
        self.audio = audio
        self.stt_error: Optional[Exception] = None
        self.tts_error: Optional[Exception] = None
        self.tts_calls: List[tuple] = []

    def speech_to_text(self, audio: bytes, audio_format: str = "wav") -> str:
        if self.stt_error is not None:
            raise self.stt_error
        return self.transcript

    def text_to_speech(self, text: str, language: str = "en") -> bytes:
        self.tts_calls.append((text, language))
        if self.tts_error is not None:
            raise self.tts_error
        return self.audio


class RecordingSleep:
    """Stands in for time.sleep so retry tests run instantly."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def search_service() -> FakeSearchService:
    return FakeSearchService(
        spots=[
            make_spot("a", average_rating=3.5, review_count=5),
            make_spot("b", average_rating=4.8, review_count=60, is_verified=True, distance_km=1.0),
        ]
    )


@pytest.fixture
def executor_factory(sleep: RecordingSleep) -> Callable[..., QueryExecutor]:
    def _make(service, **kwargs) -> QueryExecutor:
        kwargs.setdefault("policy", FallbackPolicy(max_attempts=3, retry_delay=1.0))
        return QueryExecutor(service, sleep=sleep, **kwargs)

    return _make


@pytest.fixture
def transient_error() -> TransientServiceError:
    return TransientServiceError("backend down")


@pytest.fixture
def voice() -> FakeVoice:
    return FakeVoice()


@pytest.fixture
def flow(search_service, executor_factory, sleep, voice) -> FlowController:
    # An empty model reply never parses, so every turn takes the rule-based tier without retrying.
    extractor = IntentExtractor(primary=PrimaryIntentExtractor(client=FakeGenerator(), sleep=sleep))
    return FlowController(
        state_manager=StateManager(),
        intent_extractor=extractor,
        query_executor=executor_factory(search_service),
        voice=voice,
    )
