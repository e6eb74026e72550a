"""Staff repository - Database operations for staff accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import StaffUser


class StaffRepository:
    """Repository for staff database operations. Callers own the commit."""

    @staticmethod
    def count_staff(db: Session) -> int:
        return db.query(StaffUser).count()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[StaffUser]:
        return db.query(StaffUser).filter(StaffUser.email == email.strip().lower()).first()

    @staticmethod
    def get_by_id(db: Session, staff_id: int) -> Optional[StaffUser]:
        return db.query(StaffUser).filter(StaffUser.id == staff_id).first()

    @staticmethod
    def get_all(db: Session, include_inactive: bool = False) -> list[StaffUser]:
        query = db.query(StaffUser)
        if not include_inactive:
            query = query.filter(StaffUser.is_active.is_(True))
        return query.order_by(StaffUser.role.asc(), StaffUser.full_name.asc()).all()

    @staticmethod
    def count_active_with_roles(db: Session, roles: tuple) -> int:
        return (
            db.query(StaffUser)
            .filter(StaffUser.role.in_(roles), StaffUser.is_active.is_(True))
            .count()
        )

    @staticmethod
    def create(db: Session, **staff_data) -> StaffUser:
        staff = StaffUser(**staff_data)
        db.add(staff)
        db.flush()
        return staff
