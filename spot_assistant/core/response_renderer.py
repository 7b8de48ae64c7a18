# Role: Deterministic, localized reply text for a processed intent. Chooses a message family per intent kind,
# formats spots line by line (top 5, then "more available"), and builds clarification and error lines.
# render() never raises: any internal failure degrades to the generic localized error line.

from __future__ import annotations

import logging
from typing import List, Optional

from spot_assistant.models.intent import Intent, IntentKind
from spot_assistant.models.query_result import QueryResult
from spot_assistant.models.spot import Review, Spot
from spot_assistant.utils.messages import localize, price_label, rating_label, spot_line

logger = logging.getLogger(__name__)

MAX_LISTED_SPOTS = 5


class ResponseRenderer:
    def render(self, intent: Intent, result: QueryResult) -> str:
        try:
            return self._render(intent, result)
        except Exception:
            logger.exception("Failed to render response for intent %s", intent.kind.value)
            return self.generic_error(intent.language)

    def _render(self, intent: Intent, result: QueryResult) -> str:
        lang = intent.language

        if not result.success:
            return self.error(result.error_message or localize("processing_error", lang), lang)

        if intent.kind in (IntentKind.FIND_NEARBY, IntentKind.FILTER):
            return self._render_search(result, lang)
        if intent.kind == IntentKind.GET_DETAILS:
            return self._render_details(result, lang)
        if intent.kind == IntentKind.ADD_NEW:
            return localize("add_spot_success", lang)
        if intent.kind == IntentKind.ADD_REVIEW:
            return self._render_reviews(result.reviews, lang)
        if intent.kind == IntentKind.GET_DIRECTIONS:
            return localize("directions_not_implemented", lang)
        return localize("generic_response", lang)

    def _render_search(self, result: QueryResult, lang: str) -> str:
        if not result.spots:
            text = localize("no_spots_found", lang)
            radius = result.metadata.get("searchRadius")
            if radius is not None:
                text += f" {localize('try_expanding_search', lang)} {radius:g}km."
            return text

        lines: List[str] = [localize("found_spots", lang, len(result.spots)), ""]
        for spot in result.spots[:MAX_LISTED_SPOTS]:
            lines.extend(self.format_spot(spot, lang))
            lines.append("")

        extra = len(result.spots) - MAX_LISTED_SPOTS
        if extra > 0:
            lines.append(localize("more_spots_available", lang, extra))
        return "\n".join(lines).strip()

    def _render_details(self, result: QueryResult, lang: str) -> str:
        spot = result.single_spot
        if spot is None:
            return localize("spot_not_found", lang)

        lines = self.format_spot(spot, lang)
        if spot.phone_number:
            lines.append(spot_line("phone", lang, spot.phone_number))
        if spot.specialties:
            lines.append(spot_line("specialties", lang, ", ".join(spot.specialties)))
        if spot.description:
            lines.append(spot_line("about", lang, spot.description))
        if result.reviews:
            lines.append("")
            lines.append(self._render_reviews(result.reviews, lang))
        return "\n".join(lines)

    def _render_reviews(self, reviews: List[Review], lang: str) -> str:
        if not reviews:
            return localize("no_reviews", lang)
        lines = [localize("reviews_found", lang, len(reviews))]
        for review in reviews[:MAX_LISTED_SPOTS]:
            comment = f" - {review.comment}" if review.comment else ""
            lines.append(f"{review.rating}/5{comment}")
        return "\n".join(lines)

    def format_spot(self, spot: Spot, lang: str) -> List[str]:
        lines = [spot_line("intro", lang, spot.name)]
        if spot.address:
            lines.append(spot.address)
        lines.append(
            f"{spot.average_rating:.1f}/5 - {rating_label(spot.average_rating, lang)} "
            f"({spot_line('reviews', lang, spot.review_count)})"
        )
        lines.append(price_label(spot.price_range, lang))
        if spot.distance_km is not None:
            lines.append(spot_line("distance", lang, spot.distance_km))
        if spot.opening_time and spot.closing_time:
            lines.append(spot_line("hours", lang, spot.opening_time, spot.closing_time))
        return lines

    def clarification(self, intent: Intent, missing_info: Optional[List[str]] = None) -> str:
        # Step 1: a missing location for a nearby search is the most common gap.
        missing = missing_info or []
        if "location" in missing or (intent.kind == IntentKind.FIND_NEARBY and intent.target_location is None):
            return localize("need_location", intent.language)
        # Step 2: we could not tell what the user wants at all.
        if "goal" in missing or intent.kind == IntentKind.UNKNOWN:
            return localize("clarify_request", intent.language)
        return localize("need_more_info", intent.language)

    def error(self, message: str, language: Optional[str]) -> str:
        return f"{localize('error_prefix', language)} {message}"

    def generic_error(self, language: Optional[str]) -> str:
        return self.error(localize("processing_error", language), language)
