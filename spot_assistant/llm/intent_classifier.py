# Role: Two-tier intent extraction.
# - PrimaryIntentExtractor: LLM call (with retry) that must return a single JSON object, parsed defensively.
# - IntentExtractor: resilient wrapper that falls back to the rule-based extractor whenever tier 1 fails
#   or returns "unknown". Tier-1 failures never propagate.

from __future__ import annotations

import json
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import spot_assistant.config as config
from spot_assistant.core.errors import ExtractionError
from spot_assistant.core.resilience import RetryPolicy, retry, validate_text, with_error_handling
from spot_assistant.core.rule_based_extractor import RuleBasedIntentExtractor
from spot_assistant.core.validator import IntentValidator, ValidationResult
from spot_assistant.models.intent import Intent, IntentKind, Location
from spot_assistant.prompts.intent_prompt import build_intent_prompt, build_intent_system_prompt
from spot_assistant.tools.ports import TextGenerator
from spot_assistant.utils.lexicons import normalize_language

logger = logging.getLogger(__name__)

# Key line: accept both our snake_case values and the CamelCase names older prompts produced.
_KIND_ALIASES: Dict[str, IntentKind] = {
    "findnearby": IntentKind.FIND_NEARBY,
    "findnearbyspots": IntentKind.FIND_NEARBY,
    "getdetails": IntentKind.GET_DETAILS,
    "getspotdetails": IntentKind.GET_DETAILS,
    "addnew": IntentKind.ADD_NEW,
    "addnewspot": IntentKind.ADD_NEW,
    "addreview": IntentKind.ADD_REVIEW,
    "getdirections": IntentKind.GET_DIRECTIONS,
    "filter": IntentKind.FILTER,
    "filterspots": IntentKind.FILTER,
    "unknown": IntentKind.UNKNOWN,
}


class PrimaryIntentExtractor:
    """
    LLM-backed intent extraction.

    Contract:
    - We ask the model to return a single JSON object only.
    - In practice, models sometimes wrap JSON in code fences or add extra text.
    - We parse defensively; anything we still cannot read raises ExtractionError.
    """

    def __init__(
        self,
        client: Optional[TextGenerator] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Any] = time.sleep,
        detector: Optional[RuleBasedIntentExtractor] = None,
    ) -> None:
        # Key line: lazy-init avoids crashing if GEMINI_API_KEY is missing (tier 2 still works).
        self._client = client
        # A reply without a usable language falls back to keyword detection on the user's message.
        self.detector = detector or RuleBasedIntentExtractor()
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.EXTRACTION_MAX_ATTEMPTS,
            base_delay=config.EXTRACTION_RETRY_DELAY_SECONDS,
        )
        self._sleep = sleep

    def _get_client(self) -> TextGenerator:
        if self._client is None:
            from spot_assistant.llm.gemini_client import GeminiClient

            self._client = GeminiClient()
        return self._client

    def extract(
        self,
        user_message: str,
        session_id: Optional[str] = None,
        location: Optional[Location] = None,
    ) -> Intent:
        # 1) Build strict prompt (taxonomy + languages + examples)
        # 2) Call LLM under retry
        # 3) Parse JSON (with repairs) into an Intent
        client = self._get_client()
        system_prompt = build_intent_system_prompt()
        user_prompt = build_intent_prompt(user_message, location)

        logger.info("Processing message with language model: %s", user_message)
        raw = retry(
            lambda: client.generate_text(user_prompt, system_instruction=system_prompt),
            self.retry_policy,
            sleep=self._sleep,
        )

        parsed, parse_meta = self._try_parse_json(raw)
        if not parsed:
            raise ExtractionError(f"Could not parse model output as JSON ({parse_meta['method']})")

        if parse_meta.get("repaired"):
            logger.warning("Model returned non-strict JSON output (repaired=%s)", parse_meta)

        return self._to_intent(parsed, user_message, session_id, location, raw)

    def _to_intent(
        self,
        parsed: Dict[str, Any],
        user_message: str,
        session_id: Optional[str],
        location: Optional[Location],
        raw: str,
    ) -> Intent:
        kind = self._parse_kind(parsed.get("intent") or parsed.get("intentType"))
        if kind is None:
            kind = IntentKind.UNKNOWN

        metadata: Dict[str, Any] = {"extraction": "language_model"}
        location_name = parsed.get("location")
        if isinstance(location_name, str) and location_name.strip():
            # The model names a place; we do not geocode it, the user's coordinates stay authoritative.
            metadata["location_name"] = location_name.strip()

        spot_id = parsed.get("spot_id")
        if spot_id is not None and str(spot_id).strip():
            metadata["spot_id"] = str(spot_id).strip()

        intent = Intent(
            kind=kind,
            original_message=user_message,
            target_location=location,
            max_budget=self._parse_float(parsed.get("max_budget")),
            min_rating=self._parse_float(parsed.get("min_rating")),
            max_distance_km=self._parse_float(parsed.get("max_distance_km")),
            language=normalize_language(parsed.get("language")) or self.detector.detect_language(user_message),
            session_id=session_id,
            extracted_at=datetime.now(timezone.utc),
            metadata=metadata,
        )
        for pref in self._parse_list_of_strings(parsed.get("preferences")):
            intent.add_preference(pref)

        logger.debug("Parsed intent %s from raw output: %s", intent.kind.value, raw)
        return intent

    def _strip_code_fences(self, text: str) -> str:
        # Role: remove markdown fences if model incorrectly wrapped JSON.
        if not text:
            return ""
        t = text.strip()

        if t.startswith("```"):
            t = re.sub(r"^\s*```(?:json)?\s*", "", t, flags=re.IGNORECASE)
            t = re.sub(r"\s*```\s*$", "", t)
        return t.strip()

    def _try_parse_json(self, text: str) -> Tuple[Optional[Dict[str, Any]], Dict[str, Any]]:
        # 1) strict json.loads
        # 2) strip code fences
        # 3) extract {...} substring as last attempt
        raw = (text or "").strip()

        try:
            parsed = json.loads(raw)
            if isinstance(parsed, dict):
                return parsed, {"repaired": False, "method": "strict"}
        except json.JSONDecodeError:
            pass

        cleaned = self._strip_code_fences(raw)
        if cleaned != raw:
            try:
                parsed = json.loads(cleaned)
                if isinstance(parsed, dict):
                    return parsed, {"repaired": True, "method": "stripped_fences"}
            except json.JSONDecodeError:
                pass

        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start != -1 and end != -1 and end > start:
            candidate = cleaned[start : end + 1]
            try:
                parsed = json.loads(candidate)
                if isinstance(parsed, dict):
                    return parsed, {"repaired": True, "method": "extracted_braces"}
            except json.JSONDecodeError:
                pass
            return None, {"repaired": True, "method": "failed"}

        return None, {"repaired": False, "method": "failed"}

    def _parse_kind(self, value: Any) -> Optional[IntentKind]:
        if not isinstance(value, str):
            return None
        key = re.sub(r"[^a-z]", "", value.lower())
        return _KIND_ALIASES.get(key)

    def _parse_float(self, value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    def _parse_list_of_strings(self, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        out: List[str] = []
        for item in value:
            if isinstance(item, str) and item.strip():
                out.append(item.strip())
        return out


class IntentExtractor:
    def __init__(
        self,
        primary: Optional[PrimaryIntentExtractor] = None,
        fallback: Optional[RuleBasedIntentExtractor] = None,
        validator: Optional[IntentValidator] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking.
        self.fallback = fallback or RuleBasedIntentExtractor()
        self.primary = primary or PrimaryIntentExtractor(detector=self.fallback)
        self.validator = validator or IntentValidator()

    def extract(
        self,
        message: str,
        session_id: Optional[str] = None,
        location: Optional[Location] = None,
        language: Optional[str] = None,
    ) -> Intent:
        return with_error_handling(
            lambda: self._extract(message, session_id, location, language),
            "ExtractIntent",
            lambda e: ExtractionError(f"Failed to extract intent from message: {e}", cause=e),
        )

    def _extract(
        self,
        message: str,
        session_id: Optional[str],
        location: Optional[Location],
        language: Optional[str],
    ) -> Intent:
        # 1) Reject empty input (not retried, not fallen back)
        # 2) Tier 1; any failure or "unknown" -> tier 2
        # 3) An explicit caller language wins over detection
        validate_text(message, "message")

        intent: Optional[Intent] = None
        try:
            intent = self.primary.extract(message, session_id=session_id, location=location)
        except Exception as e:
            logger.error("Language model extraction failed, falling back to basic detection: %s", e)

        if intent is None or intent.kind == IntentKind.UNKNOWN:
            if intent is not None:
                logger.warning("Language model could not classify intent, falling back to basic detection")
            intent = self.fallback.extract(message, session_id=session_id, location=location)

        preferred = normalize_language(language)
        if preferred:
            intent.language = preferred
        return intent

    def validate(self, intent: Intent) -> ValidationResult:
        return self.validator.validate(intent)
