# Role: Shapes exchanged with the search collaborator: spots, reviews, and the criteria a search is built from.

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from spot_assistant.models.intent import Location


class PriceRange(str, Enum):
    BUDGET = "budget"
    MODERATE = "moderate"
    EXPENSIVE = "expensive"


class Spot(BaseModel):
    id: str
    name: str
    address: str = ""
    location: Optional[Location] = None

    average_rating: float = Field(0.0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    is_verified: bool = False
    price_range: Optional[PriceRange] = None
    specialties: List[str] = Field(default_factory=list)

    phone_number: Optional[str] = None
    description: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None

    # Key line: filled by the search backend when it knows the distance from the search origin.
    distance_km: Optional[float] = None


class Review(BaseModel):
    id: str
    spot_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SearchCriteria(BaseModel):
    location: Optional[Location] = None
    radius_km: float = 15.0
    min_rating: Optional[float] = None
    max_price_range: Optional[PriceRange] = None
    specialties: List[str] = Field(default_factory=list)
    limit: int = 50
