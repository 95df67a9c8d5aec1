from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Optional
from datetime import datetime


class RatingCreate(BaseModel):
    rating: Annotated[int, Field(ge=1, le=5)]
    review: Optional[str] = None


class RatingResponse(RatingCreate):
    id: int
    vendor_id: int
    user_id: int
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RatingStats(BaseModel):
    vendor_id: int
    average_rating: float
    total_ratings: int
    distribution: Dict[int, int]


class RatingPage(BaseModel):
    ratings: List[RatingResponse]
    total: int
    page: int
    limit: int
    has_more: bool
