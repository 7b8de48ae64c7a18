# Role: Intent -> QueryResult. Dispatches by intent kind through a registration table, memoizes lookups in a
# TTL cache, ranks search results, and protects every collaborator call with retry + a guarded fallback.
# Contract: execute() never raises. Business failures (not found, not implemented) come back as success=False.

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

import spot_assistant.config as config
from spot_assistant.core.cache import TTLCache
from spot_assistant.core.ranking import rank_spots, spot_distance_km
from spot_assistant.core.resilience import FallbackPolicy, retry
from spot_assistant.models.intent import Intent, IntentKind
from spot_assistant.models.query_result import QueryResult
from spot_assistant.models.spot import PriceRange, SearchCriteria, Spot
from spot_assistant.tools.ports import Cache, GeoService, SpotSearchService
from spot_assistant.utils.lexicons import PRICE_TERMS
from spot_assistant.utils.messages import localize

logger = logging.getLogger(__name__)

Handler = Callable[[Intent], QueryResult]

# Operations whose fallback is "empty results" rather than a generic outage message.
SEARCH_OPERATIONS = frozenset({"search", "filter", "details"})

LAST_RESORT_MESSAGE = "Service unavailable. Please try again later."


def search_cache_key(intent: Intent, default_radius_km: float = config.DEFAULT_CACHE_RADIUS_KM) -> str:
    """Deterministic key from the query-shaping fields only (never from kind, text or session)."""
    loc = intent.target_location
    payload = {
        "location": f"{loc.latitude:.4f},{loc.longitude:.4f}" if loc is not None else "null",
        "radius": intent.max_distance_km if intent.max_distance_km is not None else default_radius_km,
        "budget": intent.max_budget,
        "rating": intent.min_rating,
        "preferences": sorted(intent.preferences),
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return "spot_search_" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def price_range_for_budget(budget: float) -> PriceRange:
    if budget <= 1000:
        return PriceRange.BUDGET
    if budget <= 2500:
        return PriceRange.MODERATE
    return PriceRange.EXPENSIVE


def build_search_criteria(intent: Intent) -> SearchCriteria:
    # 1) Radius: user's distance ceiling or the default search radius
    # 2) Budget -> price range bucket
    # 3) Only food preferences become specialties (price words are already covered by the budget)
    specialties = [p for p in intent.preferences if p not in PRICE_TERMS]
    return SearchCriteria(
        location=intent.target_location,
        radius_km=intent.max_distance_km if intent.max_distance_km is not None else config.DEFAULT_SEARCH_RADIUS_KM,
        min_rating=intent.min_rating,
        max_price_range=price_range_for_budget(intent.max_budget) if intent.max_budget is not None else None,
        specialties=specialties,
        limit=config.SEARCH_LIMIT,
    )


class QueryExecutor:
    def __init__(
        self,
        search_service: SpotSearchService,
        geo: Optional[GeoService] = None,
        cache: Optional[Cache] = None,
        policy: Optional[FallbackPolicy] = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.search_service = search_service
        self.geo = geo
        self.cache = cache if cache is not None else TTLCache()
        self.policy = policy or FallbackPolicy(
            max_attempts=config.QUERY_MAX_ATTEMPTS,
            retry_delay=config.QUERY_RETRY_DELAY_SECONDS,
            enabled=config.FALLBACK_ENABLED,
            timeout_seconds=config.FALLBACK_TIMEOUT_SECONDS,
        )
        self._sleep = sleep

        self._handlers: Dict[IntentKind, Tuple[Handler, str]] = {}
        self.register(IntentKind.FIND_NEARBY, self.handle_search, "search")
        self.register(IntentKind.FILTER, self.handle_search, "filter")
        self.register(IntentKind.GET_DETAILS, self.handle_details, "details")
        self.register(IntentKind.ADD_NEW, self.handle_add, "add")
        self.register(IntentKind.ADD_REVIEW, self.handle_review, "review")
        self.register(IntentKind.GET_DIRECTIONS, self.handle_directions, "directions")

    def register(self, kind: IntentKind, handler: Handler, operation: str) -> None:
        self._handlers[kind] = (handler, operation)

    def handler_for(self, kind: IntentKind) -> Tuple[Handler, str]:
        # Key line: unmapped kinds (including "unknown") go to the generic handler.
        return self._handlers.get(kind, (self.handle_generic, "generic"))

    def execute(self, intent: Intent) -> QueryResult:
        # 1) Pick handler
        # 2) Run it under retry
        # 3) On exhaustion route to the fallback step (itself guarded)
        handler, operation = self.handler_for(intent.kind)
        logger.info("Executing %s query for intent %s", operation, intent.kind.value)

        try:
            result = retry(lambda: handler(intent), self.policy.retry_policy, sleep=self._sleep)
        except Exception as e:
            logger.error("Primary %s operation failed after retries: %s", operation, e)
            if not self.policy.enabled:
                return QueryResult.failure(
                    f"{operation} failed: {e}",
                    fallback_used=False,
                    operation=operation,
                    original_error=str(e),
                )
            return self._fallback(intent, operation, e)

        result.metadata.setdefault("operation", operation)
        return result

    def _fallback(self, intent: Intent, operation: str, error: Exception) -> QueryResult:
        try:
            return self._fallback_result(intent, operation, error)
        except Exception:
            logger.exception("Fallback operation also failed for %s", operation)
            return QueryResult.failure(
                LAST_RESORT_MESSAGE,
                fallback_used=True,
                fallback_failed=True,
                operation=operation,
                original_error=str(error),
            )

    def _fallback_result(self, intent: Intent, operation: str, error: Exception) -> QueryResult:
        logger.warning("Using fallback strategy for %s", operation)
        if operation in SEARCH_OPERATIONS:
            return QueryResult.failure(
                localize("search_unavailable", intent.language),
                fallback_used=True,
                fallback_strategy="empty_results",
                operation=operation,
                original_error=str(error),
            )
        return QueryResult.failure(
            localize("service_unavailable", intent.language),
            fallback_used=True,
            fallback_strategy="service_unavailable",
            operation=operation,
            original_error=str(error),
        )

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    def _cached(self, key: str) -> Optional[QueryResult]:
        cached = self.cache.get(key)
        if cached is None:
            return None
        # Key line: hand out a copy so callers never mutate the cached entry.
        result = cached.model_copy(deep=True)
        result.metadata["fromCache"] = True
        logger.info("Returning cached result for key: %s", key)
        return result

    def _store(self, key: str, result: QueryResult, ttl_seconds: float) -> None:
        self.cache.set(key, result.model_copy(deep=True), ttl_seconds)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def handle_search(self, intent: Intent) -> QueryResult:
        if intent.target_location is None:
            return QueryResult.failure("Location is required for spot search")

        key = search_cache_key(intent)
        cached = self._cached(key)
        if cached is not None:
            return cached

        criteria = build_search_criteria(intent)
        spots = self.search_service.search(criteria)

        with_distance = [self._with_distance(s, intent) for s in spots]
        ranked = rank_spots(with_distance)

        metadata: Dict[str, Any] = {
            "searchRadius": criteria.radius_km,
            "searchLocation": intent.target_location.model_dump(),
        }
        if intent.max_budget is not None:
            metadata["maxBudget"] = intent.max_budget
        if intent.min_rating is not None:
            metadata["minRating"] = intent.min_rating
        if intent.preferences:
            metadata["preferences"] = list(intent.preferences)

        result = QueryResult(success=True, spots=ranked, total_count=len(ranked), metadata=metadata)
        self._store(key, result, config.SEARCH_CACHE_TTL_SECONDS)
        logger.info("Found %d spots for search query, cached with key: %s", len(ranked), key)
        return result

    def _with_distance(self, spot: Spot, intent: Intent) -> Spot:
        if spot.distance_km is not None:
            return spot
        distance = spot_distance_km(spot, intent.target_location, self.geo)
        if distance is None:
            return spot
        return spot.model_copy(update={"distance_km": distance})

    def handle_details(self, intent: Intent) -> QueryResult:
        spot_id = intent.slot("spot_id")
        if spot_id is None:
            logger.warning("No spot id found in intent")
            return QueryResult.failure("Please specify which amala spot you want details for")

        key = f"spot_details_{spot_id}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        spot = self.search_service.get_by_id(spot_id)
        if spot is None:
            return QueryResult.failure("Amala spot not found", spotId=spot_id)

        reviews = self.search_service.get_reviews(spot_id)
        result = QueryResult(
            success=True,
            single_spot=self._with_distance(spot, intent),
            reviews=reviews,
            total_count=1,
            metadata={"spotId": spot_id, "reviewCount": len(reviews)},
        )
        self._store(key, result, config.SEARCH_CACHE_TTL_SECONDS)
        logger.info("Retrieved details for spot: %s (id: %s)", spot.name, spot_id)
        return result

    def handle_review(self, intent: Intent) -> QueryResult:
        # 1) Explicit add_review action -> validate, then report not implemented
        # 2) A spot id -> that spot's reviews
        # 3) Otherwise the most recent reviews overall
        spot_id = intent.slot("spot_id")

        if intent.slot("action") == "add_review":
            if spot_id is None:
                return QueryResult.failure("Spot ID is required to add a review")
            rating = self._parse_rating(intent.slot("rating"))
            if rating is None:
                return QueryResult.failure("Valid rating (1-5) is required")
            logger.info("Adding review for spot %s with rating %d", spot_id, rating)
            return QueryResult.failure(
                "Review creation not yet implemented - requires ReviewService", not_implemented=True
            )

        if spot_id is not None:
            return self._reviews_for_spot(spot_id)
        return self._recent_reviews()

    def _parse_rating(self, raw: Optional[str]) -> Optional[int]:
        if raw is None:
            return None
        try:
            rating = int(raw)
        except ValueError:
            return None
        return rating if 1 <= rating <= 5 else None

    def _reviews_for_spot(self, spot_id: str) -> QueryResult:
        key = f"spot_reviews_{spot_id}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        reviews = self.search_service.get_reviews(spot_id)
        spot = self.search_service.get_by_id(spot_id)
        result = QueryResult(
            success=True,
            reviews=reviews,
            single_spot=spot,
            total_count=len(reviews),
            metadata={"spotId": spot_id, "reviewCount": len(reviews)},
        )
        self._store(key, result, config.SEARCH_CACHE_TTL_SECONDS)
        return result

    def _recent_reviews(self) -> QueryResult:
        key = "recent_reviews"
        cached = self._cached(key)
        if cached is not None:
            return cached

        logger.info("Getting recent reviews across all spots")
        reviews = self.search_service.recent_reviews()
        result = QueryResult(
            success=True,
            reviews=reviews,
            total_count=len(reviews),
            metadata={"queryType": "recent_reviews"},
        )
        self._store(key, result, config.RECENT_CACHE_TTL_SECONDS)
        return result

    def handle_add(self, intent: Intent) -> QueryResult:
        return QueryResult.failure(
            "Add spot functionality not yet implemented - requires entity extraction from NLU",
            not_implemented=True,
        )

    def handle_directions(self, intent: Intent) -> QueryResult:
        return QueryResult.failure(
            "Directions functionality not yet implemented - requires Google Maps integration",
            not_implemented=True,
        )

    def handle_generic(self, intent: Intent) -> QueryResult:
        return QueryResult.failure(
            "I didn't understand your request. Could you please rephrase it?",
            originalMessage=intent.original_message,
        )
