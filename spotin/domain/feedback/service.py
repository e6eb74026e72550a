"""Feedback service - Satisfaction ratings and their summary"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...database import atomic
from ...models import Client, Feedback
from ...realtime import publish
from ...security_utils import sanitize_text
from ...shared.billing import utcnow
from .repository import FeedbackRepository
from .schemas import FEEDBACK_TYPES, FeedbackCreate

logger = logging.getLogger(__name__)

RATING_EMOJIS = ("😞", "😐", "🙂", "😊", "😁")


class FeedbackService:
    """Service layer for feedback business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FeedbackRepository()

    def submit(self, client: Client, data: FeedbackCreate) -> Feedback:
        """One rating per member per visit day and feedback type"""
        if data.feedback_type not in FEEDBACK_TYPES:
            raise HTTPException(
                status_code=400,
                detail=f"feedback_type must be one of {', '.join(FEEDBACK_TYPES)}",
            )

        now = utcnow()
        if self.repo.find_for_visit(self.db, client.id, now.date(), data.feedback_type):
            raise HTTPException(status_code=409, detail="Feedback for today's visit was already submitted")

        with atomic(self.db):
            feedback = self.repo.add(
                self.db,
                Feedback(
                    client_id=client.id,
                    rating=data.rating,
                    emoji=RATING_EMOJIS[data.rating - 1],
                    comment=sanitize_text(data.comment) or None,
                    feedback_type=data.feedback_type,
                    visit_date=now.date(),
                    created_at=now,
                ),
            )

        logger.info(f"⭐ Feedback {feedback.rating}/5 from {client.client_code}")
        publish("feedback", "submitted", {"feedback_id": feedback.id, "rating": feedback.rating})
        return feedback

    def _window(self, start: Optional[datetime], end: Optional[datetime]) -> tuple[datetime, datetime]:
        end = end or utcnow()
        start = start or end - timedelta(days=30)
        if start >= end:
            raise HTTPException(status_code=400, detail="start must be before end")
        return start, end

    def list_feedback(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None, limit: int = 200
    ) -> list[Feedback]:
        start, end = self._window(start, end)
        return self.repo.get_feedback(self.db, start, end, limit)

    def summary(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """Average rating and how many of each star, last 30 days by default"""
        start, end = self._window(start, end)
        counts = dict(self.repo.rating_counts(self.db, start, end))
        total = sum(counts.values())
        average = round(sum(r * c for r, c in counts.items()) / total, 2) if total else None
        return {
            "start": start,
            "end": end,
            "count": total,
            "average_rating": average,
            "by_rating": [{"rating": r, "count": counts.get(r, 0)} for r in range(5, 0, -1)],
        }
