"""
Structural interfaces for every collaborator the assistant core consumes.

Concrete adapters (GeminiClient, SpotSearchClient, VoiceClient, TTLCache) satisfy
these without inheriting from them; tests pass in plain fakes.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, runtime_checkable

from spot_assistant.models.intent import Location
from spot_assistant.models.spot import Review, SearchCriteria, Spot


@runtime_checkable
class TextGenerator(Protocol):
    """Language-inference collaborator: prompt in, text (JSON-shaped for extraction) out."""

    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str: ...


@runtime_checkable
class VoiceProcessor(Protocol):
    def speech_to_text(self, audio: bytes, audio_format: str = "wav") -> str: ...

    def text_to_speech(self, text: str, language: str = "en") -> bytes: ...


@runtime_checkable
class SpotSearchService(Protocol):
    def search(self, criteria: SearchCriteria) -> List[Spot]: ...

    def get_by_id(self, spot_id: str) -> Optional[Spot]: ...

    def get_reviews(self, spot_id: str) -> List[Review]: ...

    def recent_reviews(self, limit: int = 20) -> List[Review]: ...


@runtime_checkable
class GeoService(Protocol):
    def distance_km(self, origin: Location, spot: Spot) -> Optional[float]: ...


@runtime_checkable
class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...
