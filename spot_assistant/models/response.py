# Role: Public response shapes returned by FlowController (and serialized by the API).

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from spot_assistant.models.spot import Spot


class AssistantResponse(BaseModel):
    success: bool
    text: str
    session_id: str

    spots: Optional[List[Spot]] = None
    map_url: Optional[str] = None
    error_message: Optional[str] = None

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VoiceResponse(AssistantResponse):
    audio: Optional[bytes] = None
    audio_format: str = "wav"
