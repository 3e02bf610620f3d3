"""Review and wishlist models"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from .common import Pagination


class ReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: str = ""


class Review(BaseModel):
    id: str
    user_id: str
    product_id: str
    rating: int
    review: str = ""
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ReviewPage(BaseModel):
    reviews: list[Review]
    average_rating: float
    total_reviews: int
    pagination: Pagination


class WishlistStatus(BaseModel):
    in_wishlist: bool
