"""Check-in repository - Database operations for check-ins and the scan log"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import CheckIn, CheckInLog, Client


class CheckInRepository:
    """Repository for check-in database operations. Callers own the commit."""

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_open_check_ins(db: Session, client_id: int) -> list[CheckIn]:
        return (
            db.query(CheckIn)
            .filter(CheckIn.client_id == client_id, CheckIn.status == "checked_in")
            .order_by(CheckIn.checked_in_at.asc())
            .with_for_update()
            .all()
        )

    @staticmethod
    def get_checked_in_clients(db: Session) -> list[Client]:
        return (
            db.query(Client)
            .filter(Client.active.is_(True), Client.is_active.is_(True))
            .order_by(Client.full_name.asc())
            .all()
        )

    @staticmethod
    def get_stale_check_ins(db: Session, cutoff: datetime) -> list[CheckIn]:
        return (
            db.query(CheckIn)
            .filter(CheckIn.status == "checked_in", CheckIn.checked_in_at <= cutoff)
            .with_for_update()
            .all()
        )

    @staticmethod
    def get_check_ins_between(db: Session, start: datetime, end: datetime) -> list[CheckIn]:
        return (
            db.query(CheckIn)
            .filter(CheckIn.checked_in_at >= start, CheckIn.checked_in_at < end)
            .all()
        )

    @staticmethod
    def get_logs(db: Session, client_id: Optional[int] = None, limit: int = 100) -> list[CheckInLog]:
        query = db.query(CheckInLog)
        if client_id is not None:
            query = query.filter(CheckInLog.client_id == client_id)
        return query.order_by(CheckInLog.timestamp.desc(), CheckInLog.id.desc()).limit(limit).all()
