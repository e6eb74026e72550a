"""Feedback domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

FEEDBACK_TYPES = ("checkout_satisfaction", "general")


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    feedback_type: str = "checkout_satisfaction"


class FeedbackResponse(BaseModel):
    id: int
    client_id: int
    rating: int
    emoji: str
    comment: Optional[str]
    feedback_type: str
    visit_date: date
    created_at: datetime

    class Config:
        from_attributes = True


class RatingCount(BaseModel):
    rating: int
    count: int


class FeedbackSummary(BaseModel):
    start: datetime
    end: datetime
    count: int
    average_rating: Optional[float]
    by_rating: list[RatingCount]
