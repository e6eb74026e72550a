"""
API endpoint for status automation and occupancy analytics
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import require_roles
from ..database import get_db
from ..domain.memberships.repository import MembershipRepository
from ..domain.orders.repository import OrderRepository
from ..models import Client, ClientTicket, StaffUser
from ..permissions import AUTOMATION, FRONT_DESK
from ..services.status_automation import run_status_automation
from ..shared.billing import utcnow

router = APIRouter(prefix="/status", tags=["status"])


class StatusSummary(BaseModel):
    checked_in: int
    active_memberships: int
    active_tickets: int
    open_orders: int


class AutomationResult(BaseModel):
    expired_memberships: int
    expired_tickets: int
    closed_sessions: int
    total_updated: int


@router.get("/analytics", response_model=StatusSummary)
async def get_status_analytics(
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)), db: Session = Depends(get_db)
):
    """Live counts for the reception header"""
    now = utcnow()
    return StatusSummary(
        checked_in=db.query(Client).filter(Client.active.is_(True)).count(),
        active_memberships=len(MembershipRepository.get_all_active(db, now)),
        active_tickets=db.query(ClientTicket).filter(ClientTicket.expiry_date > now).count(),
        open_orders=OrderRepository.count_open(db),
    )


@router.post("/automation/run", response_model=AutomationResult)
async def run_automation(
    current_staff: StaffUser = Depends(require_roles(*AUTOMATION)), db: Session = Depends(get_db)
):
    """
    Manually trigger status automation
    (In production this runs nightly from the arq worker)
    """
    result = run_status_automation(db)
    return AutomationResult(**result)
