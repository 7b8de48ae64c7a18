# Role: Output of the QueryExecutor. success=False is a normal business outcome (not found, not implemented,
# service unavailable) and never implies an exception escaped.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from spot_assistant.models.spot import Review, Spot


class QueryResult(BaseModel):
    success: bool
    error_message: Optional[str] = None

    spots: List[Spot] = Field(default_factory=list)
    single_spot: Optional[Spot] = None
    reviews: List[Review] = Field(default_factory=list)
    total_count: int = 0
    map_url: Optional[str] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)
    executed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def failure(cls, message: str, **metadata: Any) -> "QueryResult":
        return cls(success=False, error_message=message, metadata=dict(metadata))
