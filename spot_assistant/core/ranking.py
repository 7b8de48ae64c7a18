# Role: Relevance ordering for search results.
# Score = 0.4 * rating/5 + 0.2 * verified + 0.2 * min(reviews/50, 1) + 0.2 * max(0, 1 - distance/15).

from __future__ import annotations

import logging
from typing import List, Optional

from spot_assistant.models.intent import Location
from spot_assistant.models.spot import Spot
from spot_assistant.tools.ports import GeoService

logger = logging.getLogger(__name__)

RATING_WEIGHT = 0.4
VERIFIED_WEIGHT = 0.2
REVIEWS_WEIGHT = 0.2
DISTANCE_WEIGHT = 0.2

REVIEWS_SATURATION = 50
DISTANCE_HORIZON_KM = 15.0


def spot_distance_km(
    spot: Spot,
    origin: Optional[Location] = None,
    geo: Optional[GeoService] = None,
) -> Optional[float]:
    # 1) Distance the backend already reported
    # 2) Otherwise ask the geo collaborator, if we have one and an origin
    if spot.distance_km is not None:
        return spot.distance_km
    if geo is None or origin is None:
        logger.debug("No distance for spot %s (geo=%s, origin=%s); proximity term dropped", spot.id, geo, origin)
        return None
    return geo.distance_km(origin, spot)


def relevance_score(spot: Spot, distance_km: Optional[float] = None) -> float:
    score = RATING_WEIGHT * (spot.average_rating / 5.0)
    if spot.is_verified:
        score += VERIFIED_WEIGHT
    score += REVIEWS_WEIGHT * min(spot.review_count / REVIEWS_SATURATION, 1.0)
    if distance_km is not None:
        score += DISTANCE_WEIGHT * max(0.0, 1.0 - distance_km / DISTANCE_HORIZON_KM)
    return score


def rank_spots(
    spots: List[Spot],
    origin: Optional[Location] = None,
    geo: Optional[GeoService] = None,
) -> List[Spot]:
    # Key line: sorted() is stable, so equal scores keep the backend's order.
    scored = [(relevance_score(s, spot_distance_km(s, origin, geo)), s) for s in spots]
    ranked = [s for _, s in sorted(scored, key=lambda pair: pair[0], reverse=True)]
    logger.debug("Ranked %d spots", len(ranked))
    return ranked
