# Role: Strict prompt template for intent extraction. It teaches the LLM the intent taxonomy, the accepted
# languages, and a rigid JSON schema, and anchors the format with domain examples in all three languages.

from __future__ import annotations

import json
from typing import Optional

from spot_assistant.models.intent import IntentKind, Location
from spot_assistant.utils.lexicons import SUPPORTED_LANGUAGES


def build_intent_system_prompt() -> str:
    # Step 1: allowed kinds and languages come from the code, so prompt and parser never drift.
    kinds = [k.value for k in IntentKind]

    english_example = {
        "intent": "find_nearby",
        "language": "en",
        "location": "Ikeja",
        "max_budget": 1000,
        "min_rating": None,
        "max_distance_km": 5,
        "preferences": [],
        "spot_id": None,
    }
    pidgin_example = {
        "intent": "find_nearby",
        "language": "pcm",
        "location": "Yaba",
        "max_budget": 1000,
        "min_rating": None,
        "max_distance_km": 5,
        "preferences": [],
        "spot_id": None,
    }
    yoruba_example = {
        "intent": "find_nearby",
        "language": "yo",
        "location": "Ibadan",
        "max_budget": None,
        "min_rating": 4.0,
        "max_distance_km": None,
        "preferences": [],
        "spot_id": None,
    }

    return f"""
ROLE:
You are a STRICT intent-extraction component for an assistant that helps people find amala restaurants
and food spots in Nigeria. You must NOT answer the user.

HARD OUTPUT CONTRACT (NON-NEGOTIABLE):
- Output MUST be EXACTLY ONE raw JSON object.
- Output MUST contain NO markdown and NO code fences.

Allowed intents (choose exactly ONE):
{json.dumps(kinds, ensure_ascii=False)}

Accepted languages (detected language of the user message):
{json.dumps(list(SUPPORTED_LANGUAGES), ensure_ascii=False)}  ("en" English, "pcm" Nigerian Pidgin, "yo" Yoruba)

Rules:
1) Looking for places / "near" / "where" -> intent="find_nearby"
2) Narrowing an earlier search by price, rating or food -> intent="filter"
3) Details/info about a specific spot -> intent="get_details"
4) Registering a spot that is not listed -> intent="add_new"
5) Reviewing or rating a spot -> intent="add_review"
6) Directions / route / how to get there -> intent="get_directions"
7) Anything else -> intent="unknown"

Budget (Naira):
- "cheap"/"budget": 1000
- "moderate": 2500
- "expensive"/"premium": null (no limit)

Distance:
- "very close"/"walking distance": 1
- "nearby"/"close": 5
- "far"/"anywhere": null

Output JSON schema (fill all keys; use null/[] where unknown):
{{
  "intent": "<allowed intent>",
  "language": "<en|pcm|yo>",
  "location": <place name or null>,
  "max_budget": <number or null>,
  "min_rating": <1..5 or null>,
  "max_distance_km": <number or null>,
  "preferences": <list of food preferences>,
  "spot_id": <string or null>
}}

Examples:
User message: Find cheap amala spots near Ikeja
{json.dumps(english_example, ensure_ascii=False)}

User message: Where amala dey near Yaba wey cheap pass?
{json.dumps(pidgin_example, ensure_ascii=False)}

User message: Bawo ni mo se le ri amala to dara ni Ibadan?
{json.dumps(yoruba_example, ensure_ascii=False)}
""".strip()


def build_intent_prompt(user_message: str, location: Optional[Location] = None) -> str:
    prompt = f'Extract intent from this message: "{user_message}"'
    if location is not None:
        prompt += f"\nUser's current location: Latitude {location.latitude}, Longitude {location.longitude}"
    return prompt
