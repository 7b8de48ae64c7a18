# Role: Keyword tables for the deterministic (rule-based) intent extractor. Kept as data so each table can be
# tested on its own and a new language is a new entry, not new code.

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from spot_assistant.models.intent import IntentKind

BASE_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "pcm", "yo")

LANGUAGE_ALIASES: Dict[str, str] = {
    "en": "en",
    "eng": "en",
    "english": "en",
    "pcm": "pcm",
    "pidgin": "pcm",
    "naija": "pcm",
    "yo": "yo",
    "yor": "yo",
    "yoruba": "yo",
}

# language -> {keyword or phrase: weight}. Multi-word phrases are stronger evidence than single words.
LANGUAGE_LEXICONS: Dict[str, Dict[str, float]] = {
    "pcm": {
        "wetin": 1.0,
        "dey": 1.0,
        "wey": 1.0,
        "abeg": 1.0,
        "una": 1.0,
        "sabi": 1.0,
        "how far": 2.0,
        "no be": 2.0,
        "make i": 2.0,
        "i wan": 2.0,
    },
    "yo": {
        "bawo": 1.0,
        "nibo": 1.0,
        "ibo": 1.0,
        "jowo": 1.0,
        "ounje": 1.0,
        "ni mo se": 2.0,
        "to dara": 2.0,
        "mo fe": 2.0,
        "e ku": 2.0,
    },
}

# Ordered: the first group with any match decides the kind.
INTENT_KEYWORDS: List[Tuple[IntentKind, Tuple[str, ...]]] = [
    (IntentKind.FIND_NEARBY, ("find", "near", "close", "dey", "where", "nibo", "search")),
    (IntentKind.GET_DETAILS, ("details", "info", "about", "tell me more")),
    (IntentKind.ADD_NEW, ("add", "new spot", "register")),
    (IntentKind.ADD_REVIEW, ("review", "rate", "rating")),
    (IntentKind.GET_DIRECTIONS, ("direction", "route", "how to get")),
]

# (keywords, budget ceiling); None means "no limit". First matching row wins.
BUDGET_RULES: List[Tuple[Tuple[str, ...], Optional[float]]] = [
    (("cheap", "budget", "affordable"), 1000.0),
    (("expensive", "premium"), None),
]

RATING_RULES: List[Tuple[Tuple[str, ...], float]] = [
    (("good", "best"), 4.0),
    (("excellent", "top"), 4.5),
]

DISTANCE_RULES: List[Tuple[Tuple[str, ...], float]] = [
    (("very close", "walking"), 1.0),
    (("nearby", "close"), 5.0),
]

PREFERENCE_KEYWORDS: Tuple[str, ...] = (
    "spicy",
    "vegetarian",
    "vegan",
    "halal",
    "ewedu",
    "gbegiri",
    "abula",
    "assorted",
    "ogunfe",
    "pepper soup",
)

# Terms that describe price rather than food; never sent to search as specialties.
PRICE_TERMS = frozenset({"cheap", "expensive", "budget", "affordable", "costly", "pricey", "inexpensive"})


def normalize_language(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return LANGUAGE_ALIASES.get(value.strip().lower())
