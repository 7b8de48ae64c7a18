# Role: Per-session state container. Holds the bounded conversation flow (one step per processed intent),
# the last intent/result, and free-form preferences remembered across turns.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from spot_assistant.models.intent import Intent, IntentKind
from spot_assistant.models.query_result import QueryResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_utcnow)
    intent_kind: IntentKind
    success: bool
    error_message: Optional[str] = None


class SessionContext(BaseModel):
    session_id: str
    created_at: datetime = Field(default_factory=_utcnow)
    last_accessed_at: datetime = Field(default_factory=_utcnow)

    # Key line: only ever incremented, one per processed intent.
    interaction_count: int = 0

    last_intent: Optional[Intent] = None
    last_result: Optional[QueryResult] = None
    conversation_flow: List[ConversationStep] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)


class SessionSnapshot(BaseModel):
    """Read-only view of a session for callers outside the turn pipeline."""

    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    interaction_count: int
    last_intent_kind: Optional[IntentKind] = None
    conversation_flow: List[ConversationStep] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_context(cls, context: SessionContext) -> "SessionSnapshot":
        return cls(
            session_id=context.session_id,
            created_at=context.created_at,
            last_accessed_at=context.last_accessed_at,
            interaction_count=context.interaction_count,
            last_intent_kind=context.last_intent.kind if context.last_intent is not None else None,
            conversation_flow=list(context.conversation_flow),
            preferences=dict(context.preferences),
        )
