# Role: Localized user-facing text. Message tables for English, Nigerian Pidgin and Yoruba keyed by a stable
# message id, plus the small label tables (rating, price, spot lines) used when formatting spots.
# Unknown languages read from the English table; unknown ids fall back to the "default" line.

from __future__ import annotations

from typing import Any, Dict, Optional

from spot_assistant.models.spot import PriceRange
from spot_assistant.utils.lexicons import BASE_LANGUAGE, normalize_language

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "no_spots_found": "I couldn't find any amala spots in your area.",
        "try_expanding_search": "Try expanding your search radius beyond",
        "found_spots": "I found {0} amala spots for you:",
        "more_spots_available": "...and {0} more spots available.",
        "spot_not_found": "Sorry, I couldn't find details for that spot.",
        "add_spot_success": "Great! I've added the new amala spot to our database.",
        "review_success": "Thank you for your review! It helps others find great amala spots.",
        "directions_not_implemented": "Directions feature is coming soon!",
        "generic_response": "I've processed your request.",
        "error_prefix": "Sorry, there was an issue:",
        "need_location": (
            "I need to know your location to find nearby amala spots. "
            "Can you share your location or tell me the area you're interested in?"
        ),
        "clarify_request": (
            "I'm not sure what you're looking for. Could you please be more specific? "
            "For example, you can ask me to find amala spots near you or get details about a specific restaurant."
        ),
        "need_more_info": "I need a bit more information to help you better.",
        "search_unavailable": "Search service temporarily unavailable. Please try again later.",
        "service_unavailable": "Service temporarily unavailable. Please try again later.",
        "reviews_found": "Here are {0} reviews:",
        "no_reviews": "There are no reviews yet.",
        "processing_error": "An error occurred while processing your request.",
        "default": "I understand your request.",
    },
    "pcm": {
        "no_spots_found": "I no see any amala spot for your area o.",
        "try_expanding_search": "Try make you expand your search pass",
        "found_spots": "I find {0} amala spots for you:",
        "more_spots_available": "...and {0} more spots dey available.",
        "spot_not_found": "Sorry, I no fit find details for that spot.",
        "add_spot_success": "Nice one! I don add the new amala spot for our database.",
        "review_success": "Thank you for your review! E go help other people find good amala spots.",
        "directions_not_implemented": "Directions feature dey come soon!",
        "generic_response": "I don process your request.",
        "error_prefix": "Sorry, wahala dey:",
        "need_location": (
            "I need to know where you dey so I fit find amala spots near you. "
            "You fit share your location or tell me the area wey you want?"
        ),
        "clarify_request": (
            "I no too understand wetin you dey find. You fit talk am more clear? "
            "Like you fit ask me to find amala spots near you or get details about one particular restaurant."
        ),
        "need_more_info": "I need small more information to help you better.",
        "search_unavailable": "Search no dey work right now. Abeg try again later.",
        "service_unavailable": "Service no dey available right now. Abeg try again later.",
        "reviews_found": "See {0} reviews:",
        "no_reviews": "Nobody don drop review yet.",
        "processing_error": "Something happen as I dey process your request.",
        "default": "I understand your request.",
    },
    "yo": {
        "no_spots_found": "Mi o ri amala spot kankan ni agbegbe yin.",
        "try_expanding_search": "E gbiyanju lati fa iwadi yin jade ju",
        "found_spots": "Mo ri amala spots {0} fun yin:",
        "more_spots_available": "...ati awon spots {0} miiran lo wa.",
        "spot_not_found": "Ma binu, mi o le ri alaye fun spot yen.",
        "add_spot_success": "O dara! Mo ti fi amala spot tuntun naa si database wa.",
        "review_success": "E se fun review yin! Yoo ran awon miiran lowo lati ri amala spots to dara.",
        "directions_not_implemented": "Directions feature n bo laipe!",
        "generic_response": "Mo ti se request yin.",
        "error_prefix": "Ma binu, isoro kan wa:",
        "need_location": (
            "Mo nilo lati mo ibi ti e wa ki n le wa amala spots ti o sunmo yin. "
            "E le pin location yin tabi so agbegbe ti e fe?"
        ),
        "clarify_request": (
            "Mi o loye ohun ti e n wa. E le so ni kedere si? "
            "Fun apeere, e le beere ki n wa amala spots nitosi yin tabi ki n gba alaye nipa ile ounje kan pato."
        ),
        "need_more_info": "Mo nilo alaye die sii lati ran yin lowo daradara.",
        "search_unavailable": "Iwadi ko si ni arowoto bayi. E jowo gbiyanju leyin igba die.",
        "service_unavailable": "Ise ko si ni arowoto bayi. E jowo gbiyanju leyin igba die.",
        "reviews_found": "Eyi ni awon review {0}:",
        "no_reviews": "Ko si review kankan sibesibe.",
        "processing_error": "Asise kan sele nigba ti mo n se request yin.",
        "default": "Mo loye request yin.",
    },
}

# (threshold, label) checked top-down; the first threshold the rating reaches wins.
RATING_LABELS: Dict[str, list] = {
    "en": [(4.5, "Excellent!"), (4.0, "Very good"), (3.5, "Good"), (3.0, "Fair"), (0.0, "Below average")],
    "pcm": [(4.5, "E too sweet!"), (4.0, "E dey very correct"), (3.5, "E dey okay"), (3.0, "E fit do"), (0.0, "Manage am")],
    "yo": [(4.5, "O dun pupo!"), (4.0, "O dara pupo"), (3.5, "O wa bee"), (3.0, "O le se"), (0.0, "Ko dara to")],
}

PRICE_LABELS: Dict[str, Dict[Optional[PriceRange], str]] = {
    "en": {
        PriceRange.BUDGET: "Budget-friendly - under ₦1000",
        PriceRange.MODERATE: "Moderate pricing - ₦1000-₦2500",
        PriceRange.EXPENSIVE: "Premium pricing - above ₦2500",
        None: "Price range unclear",
    },
    "pcm": {
        PriceRange.BUDGET: "Cheap price - under ₦1000 (pocket friendly o!)",
        PriceRange.MODERATE: "Moderate price - ₦1000-₦2500 (e dey reasonable)",
        PriceRange.EXPENSIVE: "Premium price - above ₦2500",
        None: "Price no clear",
    },
    "yo": {
        PriceRange.BUDGET: "Owo kekere - kere ju ₦1000",
        PriceRange.MODERATE: "Owo iwontunwonsi - ₦1000-₦2500",
        PriceRange.EXPENSIVE: "Owo nla - ju ₦2500 lo",
        None: "Owo ko han",
    },
}

# Line templates used by the spot formatter.
SPOT_LINES: Dict[str, Dict[str, str]] = {
    "en": {
        "intro": "Here's a great spot: {0}",
        "reviews": "{0} reviews",
        "distance": "{0:.1f}km from your location",
        "hours": "Open {0} - {1}",
        "phone": "Contact: {0}",
        "specialties": "Specialties: {0}",
        "about": "About: {0}",
    },
    "pcm": {
        "intro": "Na dis place be: {0}",
        "reviews": "{0} reviews",
        "distance": "E dey {0:.1f}km from where you dey",
        "hours": "Dem dey open from {0} to {1}",
        "phone": "You fit call dem for: {0}",
        "specialties": "Wetin dem sabi cook pass: {0}",
        "about": "About dis place: {0}",
    },
    "yo": {
        "intro": "Ibi yii ni: {0}",
        "reviews": "review {0}",
        "distance": "O jinna {0:.1f}km lati ibi ti o wa",
        "hours": "Won n si lati {0} si {1}",
        "phone": "O le pe won ni: {0}",
        "specialties": "Ohun ti won mo daradara: {0}",
        "about": "Nipa ibi yii: {0}",
    },
}


def resolve_language(language: Optional[str]) -> str:
    return normalize_language(language) or BASE_LANGUAGE


def localize(key: str, language: Optional[str], *args: Any) -> str:
    # 1) Pick the language table (unknown -> English)
    # 2) Pick the template (unknown id -> "default")
    # 3) Format positional args when given
    table = MESSAGES.get(resolve_language(language), MESSAGES[BASE_LANGUAGE])
    template = table.get(key)
    if template is None:
        return table["default"]
    return template.format(*args) if args else template


def rating_label(rating: float, language: Optional[str]) -> str:
    labels = RATING_LABELS.get(resolve_language(language), RATING_LABELS[BASE_LANGUAGE])
    for threshold, label in labels:
        if rating >= threshold:
            return label
    return labels[-1][1]


def price_label(price_range: Optional[PriceRange], language: Optional[str]) -> str:
    labels = PRICE_LABELS.get(resolve_language(language), PRICE_LABELS[BASE_LANGUAGE])
    return labels.get(price_range, labels[None])


def spot_line(key: str, language: Optional[str], *args: Any) -> str:
    lines = SPOT_LINES.get(resolve_language(language), SPOT_LINES[BASE_LANGUAGE])
    return lines[key].format(*args)
