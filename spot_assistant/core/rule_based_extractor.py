# Role: Deterministic fallback extractor (tier 2). Detects language by weighted keyword counts, intent kind by
# ordered phrase groups, and a few slots (budget, rating, distance, preference tags) from keyword tables.
# No network, no randomness: the same message always yields the same Intent.

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from spot_assistant.models.intent import Intent, IntentKind, Location
from spot_assistant.utils import lexicons

logger = logging.getLogger(__name__)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(k in text for k in keywords)


class RuleBasedIntentExtractor:
    def __init__(
        self,
        language_lexicons: Optional[Dict[str, Dict[str, float]]] = None,
        intent_keywords: Optional[List[Tuple[IntentKind, Tuple[str, ...]]]] = None,
        base_language: str = lexicons.BASE_LANGUAGE,
    ) -> None:
        self.language_lexicons = language_lexicons if language_lexicons is not None else lexicons.LANGUAGE_LEXICONS
        self.intent_keywords = intent_keywords if intent_keywords is not None else lexicons.INTENT_KEYWORDS
        self.base_language = base_language

        # Key line: precompile word-boundary patterns once per keyword.
        self._patterns = {
            lang: [(re.compile(rf"\b{re.escape(k)}\b"), w) for k, w in table.items()]
            for lang, table in self.language_lexicons.items()
        }

    def extract(
        self,
        message: str,
        session_id: Optional[str] = None,
        location: Optional[Location] = None,
    ) -> Intent:
        # 1) Detect language and kind
        # 2) Fill slots from keyword tables
        # 3) Target location is whatever the caller knows (no geocoding here)
        logger.info("Using fallback intent detection for message: %s", message)

        intent = Intent(
            kind=self.detect_kind(message),
            original_message=message,
            target_location=location,
            language=self.detect_language(message),
            session_id=session_id,
            extracted_at=datetime.now(timezone.utc),
            metadata={"extraction": "rule_based"},
        )
        self.extract_slots(message, intent)
        return intent

    def language_scores(self, message: str) -> Dict[str, float]:
        low = (message or "").lower()
        return {
            lang: sum(len(p.findall(low)) * w for p, w in patterns)
            for lang, patterns in self._patterns.items()
        }

    def detect_language(self, message: str) -> str:
        # A language wins only with a positive score strictly above every other lexicon; otherwise base.
        scores = self.language_scores(message)
        for lang, score in scores.items():
            if score > 0 and all(score > other for o, other in scores.items() if o != lang):
                return lang
        return self.base_language

    def detect_kind(self, message: str) -> IntentKind:
        low = (message or "").lower()
        for kind, keywords in self.intent_keywords:
            if _contains_any(low, keywords):
                return kind
        return IntentKind.UNKNOWN

    def extract_slots(self, message: str, intent: Intent) -> None:
        low = (message or "").lower()

        for keywords, ceiling in lexicons.BUDGET_RULES:
            if _contains_any(low, keywords):
                intent.max_budget = ceiling
                if ceiling is None:
                    intent.metadata["budget_unrestricted"] = True
                break

        for keywords, floor in lexicons.RATING_RULES:
            if _contains_any(low, keywords):
                intent.min_rating = floor
                break

        for keywords, ceiling in lexicons.DISTANCE_RULES:
            if _contains_any(low, keywords):
                intent.max_distance_km = ceiling
                break

        for tag in lexicons.PREFERENCE_KEYWORDS:
            if tag in low:
                intent.add_preference(tag)
