"""Membership repository - Database operations for plans and client memberships"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Client, ClientMembership, MembershipPlan


class MembershipRepository:
    """Repository for membership database operations. Callers own the commit."""

    @staticmethod
    def get_plans(db: Session, include_inactive: bool = False) -> list[MembershipPlan]:
        query = db.query(MembershipPlan)
        if not include_inactive:
            query = query.filter(MembershipPlan.is_active.is_(True))
        return query.order_by(MembershipPlan.price.asc()).all()

    @staticmethod
    def get_plan(db: Session, plan_id: int) -> Optional[MembershipPlan]:
        return db.query(MembershipPlan).filter(MembershipPlan.id == plan_id).first()

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_active_membership(db: Session, client_id: int, now: datetime) -> Optional[ClientMembership]:
        """The membership currently granting a discount, if any"""
        return (
            db.query(ClientMembership)
            .filter(
                ClientMembership.client_id == client_id,
                ClientMembership.is_active.is_(True),
                ClientMembership.start_date <= now,
                or_(ClientMembership.end_date.is_(None), ClientMembership.end_date > now),
            )
            .order_by(ClientMembership.start_date.desc())
            .first()
        )

    @staticmethod
    def get_active_memberships(db: Session, client_id: int) -> list[ClientMembership]:
        return (
            db.query(ClientMembership)
            .filter(ClientMembership.client_id == client_id, ClientMembership.is_active.is_(True))
            .all()
        )

    @staticmethod
    def get_history(db: Session, client_id: int) -> list[ClientMembership]:
        return (
            db.query(ClientMembership)
            .filter(ClientMembership.client_id == client_id)
            .order_by(ClientMembership.start_date.desc())
            .all()
        )

    @staticmethod
    def get_all_active(db: Session, now: datetime) -> list[ClientMembership]:
        return (
            db.query(ClientMembership)
            .filter(
                ClientMembership.is_active.is_(True),
                or_(ClientMembership.end_date.is_(None), ClientMembership.end_date > now),
            )
            .order_by(ClientMembership.end_date.asc())
            .all()
        )

    @staticmethod
    def get_expired_but_active(db: Session, now: datetime) -> list[ClientMembership]:
        return (
            db.query(ClientMembership)
            .filter(
                ClientMembership.is_active.is_(True),
                ClientMembership.end_date.isnot(None),
                ClientMembership.end_date <= now,
            )
            .all()
        )

    @staticmethod
    def search_clients(db: Session, query: str, limit: int = 20) -> list[Client]:
        pattern = f"%{query.strip()}%"
        return (
            db.query(Client)
            .filter(
                Client.is_active.is_(True),
                or_(
                    Client.full_name.ilike(pattern),
                    Client.phone.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.client_code.ilike(pattern),
                ),
            )
            .order_by(Client.full_name.asc())
            .limit(limit)
            .all()
        )
