"""Membership service - Plans, assignment and membership discounts"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...database import atomic
from ...models import Client, ClientMembership, MembershipPlan, StaffUser
from ...realtime import publish
from ...shared.billing import PAYMENT_METHODS, round_money, utcnow
from ..receipts.repository import ReceiptRepository
from .repository import MembershipRepository
from .schemas import MembershipAssign, PlanCreate, PlanUpdate

logger = logging.getLogger(__name__)

PLAN_DURATION_DAYS = {
    "weekly": 7,
    "monthly": 30,
    "6months": 182,
    "annual": 365,
}


def membership_end_date(start: datetime, duration_type: str) -> datetime:
    return start + timedelta(days=PLAN_DURATION_DAYS[duration_type])


def serialize_membership(membership: ClientMembership, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    days_remaining = None
    if membership.end_date:
        days_remaining = max(0, (membership.end_date - now).days)
    return {
        "id": membership.id,
        "client_id": membership.client_id,
        "client_name": membership.client.full_name if membership.client else None,
        "plan_id": membership.plan_id,
        "plan_name": membership.plan_name,
        "discount_percentage": membership.discount_percentage,
        "perks": membership.perks or [],
        "start_date": membership.start_date,
        "end_date": membership.end_date,
        "is_active": membership.is_active,
        "days_remaining": days_remaining,
        "total_savings": membership.total_savings,
        "receipt_id": membership.receipt_id,
    }


class MembershipService:
    """Service layer for membership business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MembershipRepository()

    # ============================================================================
    # PLANS
    # ============================================================================

    def list_plans(self, include_inactive: bool = False) -> list[MembershipPlan]:
        return self.repo.get_plans(self.db, include_inactive)

    def get_plan(self, plan_id: int) -> MembershipPlan:
        plan = self.repo.get_plan(self.db, plan_id)
        if not plan:
            raise HTTPException(status_code=404, detail="Membership plan not found")
        return plan

    def create_plan(self, data: PlanCreate) -> MembershipPlan:
        with atomic(self.db):
            plan = self.repo.add(self.db, MembershipPlan(**data.model_dump()))
        logger.info(f"🎫 Membership plan created: {plan.plan_name} ({plan.discount_percentage}% off)")
        return plan

    def update_plan(self, plan_id: int, data: PlanUpdate) -> MembershipPlan:
        """Plan edits never change memberships already sold"""
        plan = self.get_plan(plan_id)
        with atomic(self.db):
            for key, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(plan, key, value)
        return plan

    def deactivate_plan(self, plan_id: int) -> MembershipPlan:
        plan = self.get_plan(plan_id)
        with atomic(self.db):
            plan.is_active = False
        logger.info(f"🎫 Membership plan retired: {plan.plan_name}")
        return plan

    # ============================================================================
    # CLIENT MEMBERSHIPS
    # ============================================================================

    def assign(self, data: MembershipAssign, staff: Optional[StaffUser]) -> dict:
        """
        Give a client a membership. Any previous active membership ends; a paid
        plan produces a membership receipt in the same transaction.
        """
        plan = self.get_plan(data.plan_id)
        if not plan.is_active:
            raise HTTPException(status_code=409, detail="This membership plan is no longer offered")

        price = round_money(plan.price)
        if price > 0 and data.payment_method not in PAYMENT_METHODS:
            raise HTTPException(
                status_code=400,
                detail=f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
            )

        with atomic(self.db):
            client = self.db.query(Client).filter(Client.id == data.client_id).with_for_update().first()
            if not client or not client.is_active:
                raise HTTPException(status_code=404, detail="Client not found")

            now = utcnow()
            for previous in self.repo.get_active_memberships(self.db, client.id):
                previous.is_active = False
                if previous.end_date is None or previous.end_date > now:
                    previous.end_date = now
                logger.info(f"🎫 Membership {previous.id} replaced for client {client.client_code}")

            receipt = None
            if price > 0:
                receipt = ReceiptRepository.create_receipt(
                    self.db,
                    client_id=client.id,
                    staff_id=staff.id if staff else None,
                    transaction_type="membership",
                    line_items=[
                        {
                            "kind": "membership",
                            "name": plan.plan_name,
                            "quantity": 1,
                            "unit_price": price,
                            "total": price,
                        }
                    ],
                    amount=price,
                    discount_amount=0,
                    total_amount=price,
                    payment_method=data.payment_method,
                    status="closed",
                    receipt_date=now,
                )

            membership = self.repo.add(
                self.db,
                ClientMembership(
                    client_id=client.id,
                    plan_id=plan.id,
                    plan_name=plan.plan_name,
                    discount_percentage=plan.discount_percentage,
                    perks=list(plan.perks or []),
                    start_date=now,
                    end_date=membership_end_date(now, plan.duration_type),
                    is_active=True,
                    total_savings=0,
                    receipt_id=receipt.id if receipt else None,
                    created_by=staff.id if staff else None,
                ),
            )

        logger.info(
            f"✅ {plan.plan_name} assigned to {client.client_code} until {membership.end_date:%Y-%m-%d}"
        )
        publish("memberships", "assigned", {"client_id": client.id, "membership_id": membership.id})
        if receipt:
            invalidate_finance_cache()
            publish("receipts", "created", {"receipt_id": receipt.id, "client_id": client.id})
        return serialize_membership(membership)

    def end_membership(self, membership_id: int) -> dict:
        membership = self.db.query(ClientMembership).filter(ClientMembership.id == membership_id).first()
        if not membership:
            raise HTTPException(status_code=404, detail="Membership not found")
        if not membership.is_active:
            raise HTTPException(status_code=409, detail="Membership is already inactive")

        with atomic(self.db):
            membership.is_active = False
            membership.end_date = utcnow()
        publish("memberships", "ended", {"client_id": membership.client_id, "membership_id": membership.id})
        return serialize_membership(membership)

    def get_active_membership(self, client_id: int) -> Optional[dict]:
        now = utcnow()
        membership = self.repo.get_active_membership(self.db, client_id, now)
        return serialize_membership(membership, now) if membership else None

    def list_active(self) -> list[dict]:
        now = utcnow()
        return [serialize_membership(m, now) for m in self.repo.get_all_active(self.db, now)]

    def history(self, client_id: int) -> list[dict]:
        now = utcnow()
        return [serialize_membership(m, now) for m in self.repo.get_history(self.db, client_id)]

    def search_clients(self, query: str) -> list[dict]:
        """Client picker for the membership assignment dialog"""
        if not query or len(query.strip()) < 2:
            return []
        now = utcnow()
        results = []
        for client in self.repo.search_clients(self.db, query):
            membership = self.repo.get_active_membership(self.db, client.id, now)
            results.append(
                {
                    "id": client.id,
                    "client_code": client.client_code,
                    "full_name": client.full_name,
                    "phone": client.phone,
                    "email": client.email,
                    "active_membership": membership.plan_name if membership else None,
                }
            )
        return results
