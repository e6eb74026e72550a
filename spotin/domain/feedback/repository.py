"""Feedback repository - Database operations for member feedback"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Feedback


class FeedbackRepository:
    """Repository for feedback database operations. Callers own the commit."""

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def find_for_visit(db: Session, client_id: int, visit_date: date, feedback_type: str) -> Optional[Feedback]:
        return (
            db.query(Feedback)
            .filter(
                Feedback.client_id == client_id,
                Feedback.visit_date == visit_date,
                Feedback.feedback_type == feedback_type,
            )
            .first()
        )

    @staticmethod
    def get_feedback(db: Session, start: datetime, end: datetime, limit: int = 200) -> list[Feedback]:
        return (
            db.query(Feedback)
            .filter(Feedback.created_at >= start, Feedback.created_at < end)
            .order_by(Feedback.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def rating_counts(db: Session, start: datetime, end: datetime) -> list[tuple[int, int]]:
        """(rating, count) pairs for the window"""
        return (
            db.query(Feedback.rating, func.count(Feedback.id))
            .filter(Feedback.created_at >= start, Feedback.created_at < end)
            .group_by(Feedback.rating)
            .all()
        )
