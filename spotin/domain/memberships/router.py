"""Membership router - FastAPI endpoints for plans and client memberships"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import StaffUser
from ...permissions import FRONT_DESK, PLAN_MANAGERS
from .schemas import (
    ClientSearchResult,
    MembershipAssign,
    MembershipResponse,
    PlanCreate,
    PlanResponse,
    PlanUpdate,
)
from .service import MembershipService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/memberships", tags=["Memberships"])


def get_membership_service(db: Session = Depends(get_db)) -> MembershipService:
    """Dependency injection for MembershipService"""
    return MembershipService(db)


# ============================================================================
# PLANS
# ============================================================================


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(
    include_inactive: bool = Query(False),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.list_plans(include_inactive)


@router.post("/plans", response_model=PlanResponse, status_code=201)
async def create_plan(
    data: PlanCreate,
    current_staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.create_plan(data)


@router.patch("/plans/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: int,
    data: PlanUpdate,
    current_staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.update_plan(plan_id, data)


@router.delete("/plans/{plan_id}", response_model=PlanResponse)
async def deactivate_plan(
    plan_id: int,
    current_staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.deactivate_plan(plan_id)


# ============================================================================
# CLIENT MEMBERSHIPS
# ============================================================================


@router.get("/clients/search", response_model=list[ClientSearchResult])
async def search_clients(
    q: str = Query(..., min_length=1),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.search_clients(q)


@router.get("/active", response_model=list[MembershipResponse])
async def list_active_memberships(
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    """Memberships currently in force, soonest to expire first"""
    return service.list_active()


@router.post("", response_model=MembershipResponse, status_code=201)
async def assign_membership(
    data: MembershipAssign,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    """Assign a plan to a client, replacing any current membership"""
    return service.assign(data, current_staff)


@router.get("/client/{client_id}", response_model=Optional[MembershipResponse])
async def get_active_membership(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.get_active_membership(client_id)


@router.get("/client/{client_id}/history", response_model=list[MembershipResponse])
async def membership_history(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    return service.history(client_id)


@router.post("/{membership_id}/end", response_model=MembershipResponse)
async def end_membership(
    membership_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: MembershipService = Depends(get_membership_service),
):
    """End a membership early"""
    return service.end_membership(membership_id)
