# Role: Input gatekeeper per intent. Checks whether an extracted Intent carries enough to be queried,
# and returns missing_info keys the renderer turns into a clarification question.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from spot_assistant.models.intent import Intent, IntentKind

logger = logging.getLogger(__name__)

_LOCATION_REQUIRED = {IntentKind.FIND_NEARBY}


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    missing_info: List[str]
    problems: List[str]


class IntentValidator:
    def validate(self, intent: Intent) -> ValidationResult:
        # 1) Unknown kind -> we need the user's goal
        # 2) Kinds that search around a point need a location
        # 3) Collect value problems (ratings/distances out of range)
        missing: List[str] = []
        problems: List[str] = []

        if intent.kind == IntentKind.UNKNOWN:
            logger.warning("Intent kind is unknown for message: %s", intent.original_message)
            missing.append("goal")

        if intent.kind in _LOCATION_REQUIRED and intent.target_location is None:
            logger.warning("Location required for %s but not provided", intent.kind.value)
            missing.append("location")

        if intent.min_rating is not None and not (0 <= intent.min_rating <= 5):
            problems.append("min_rating must be between 0 and 5")

        if intent.max_distance_km is not None and intent.max_distance_km <= 0:
            problems.append("max_distance_km must be > 0")

        ok = (len(missing) == 0) and (len(problems) == 0)
        return ValidationResult(ok=ok, missing_info=missing, problems=problems)
