"""Order repository - Database operations for session line items"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import SessionLineItem

OPEN_STATUSES = ("pending", "preparing", "ready")
UNFINISHED_STATUSES = ("pending", "preparing")
BILLABLE_STATUSES = ("ready", "served", "completed")


class OrderRepository:
    """Repository for order database operations. Callers own the commit."""

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_order(db: Session, order_id: int) -> Optional[SessionLineItem]:
        return db.query(SessionLineItem).filter(SessionLineItem.id == order_id).first()

    @staticmethod
    def get_order_for_update(db: Session, order_id: int) -> Optional[SessionLineItem]:
        return db.query(SessionLineItem).filter(SessionLineItem.id == order_id).with_for_update().first()

    @staticmethod
    def get_queue(db: Session, status: Optional[str] = None) -> list[SessionLineItem]:
        """Barista queue, oldest first"""
        query = db.query(SessionLineItem).filter(SessionLineItem.receipt_id.is_(None))
        if status:
            query = query.filter(SessionLineItem.status == status)
        else:
            query = query.filter(SessionLineItem.status.in_(OPEN_STATUSES))
        return query.order_by(SessionLineItem.created_at.asc(), SessionLineItem.id.asc()).all()

    @staticmethod
    def get_client_orders(db: Session, client_id: int, since: Optional[datetime] = None) -> list[SessionLineItem]:
        query = db.query(SessionLineItem).filter(SessionLineItem.client_id == client_id)
        if since is not None:
            query = query.filter(SessionLineItem.created_at >= since)
        return query.order_by(SessionLineItem.created_at.desc(), SessionLineItem.id.desc()).all()

    @staticmethod
    def get_unbilled(
        db: Session, client_id: int, statuses: tuple[str, ...], lock: bool = False
    ) -> list[SessionLineItem]:
        query = (
            db.query(SessionLineItem)
            .filter(
                SessionLineItem.client_id == client_id,
                SessionLineItem.receipt_id.is_(None),
                SessionLineItem.status.in_(statuses),
            )
            .order_by(SessionLineItem.created_at.asc(), SessionLineItem.id.asc())
        )
        if lock:
            query = query.with_for_update()
        return query.all()

    @staticmethod
    def count_open(db: Session, client_id: Optional[int] = None) -> int:
        query = db.query(SessionLineItem).filter(
            SessionLineItem.receipt_id.is_(None), SessionLineItem.status.in_(OPEN_STATUSES)
        )
        if client_id is not None:
            query = query.filter(SessionLineItem.client_id == client_id)
        return query.count()
