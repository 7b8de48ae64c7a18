# Role: Central enum of supported intent kinds plus the structured Intent produced by extraction.
# Keeps the system consistent across: extractor output, validation rules, query dispatch, and rendering.

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class IntentKind(str, Enum):
    FIND_NEARBY = "find_nearby"
    GET_DETAILS = "get_details"
    ADD_NEW = "add_new"
    ADD_REVIEW = "add_review"
    GET_DIRECTIONS = "get_directions"
    FILTER = "filter"
    UNKNOWN = "unknown"


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def __str__(self) -> str:
        return f"{self.latitude}, {self.longitude}"


class Intent(BaseModel):
    kind: IntentKind = IntentKind.UNKNOWN
    original_message: str = ""

    target_location: Optional[Location] = None
    max_budget: Optional[float] = None
    min_rating: Optional[float] = None
    max_distance_km: Optional[float] = None
    preferences: List[str] = Field(default_factory=list)

    language: str = "en"
    session_id: Optional[str] = None
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Key line: free-form slots the extractor could not type (spot_id, action, rating, ...).
    metadata: Dict[str, Any] = Field(default_factory=dict)
    parameters: Dict[str, str] = Field(default_factory=dict)

    def add_preference(self, tag: str) -> None:
        cleaned = (tag or "").strip().lower()
        if cleaned and cleaned not in self.preferences:
            self.preferences.append(cleaned)

    def slot(self, name: str) -> Optional[str]:
        # Role: read a string slot from metadata first, then parameters.
        value = self.metadata.get(name)
        if value is None:
            value = self.parameters.get(name)
        if value is None:
            return None
        text = str(value).strip()
        return text or None
