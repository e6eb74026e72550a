"""Ticket router - FastAPI endpoints for the ticket catalogue and client tickets"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import StaffUser
from ...permissions import FRONT_DESK, PLAN_MANAGERS
from .schemas import (
    ClientTicketResponse,
    FreeDrinkClaim,
    FreeDrinkResult,
    TicketAssign,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
)
from .service import TicketService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def get_ticket_service(db: Session = Depends(get_db)) -> TicketService:
    """Dependency injection for TicketService"""
    return TicketService(db)


@router.get("", response_model=list[TicketResponse])
async def list_tickets(
    include_inactive: bool = Query(False),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.list_tickets(include_inactive)


@router.post("", response_model=TicketResponse, status_code=201)
async def create_ticket(
    data: TicketCreate,
    current_staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.create_ticket(data)


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    current_staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.update_ticket(ticket_id, data)


@router.delete("/{ticket_id}", response_model=TicketResponse)
async def deactivate_ticket(
    ticket_id: int,
    current_staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.deactivate_ticket(ticket_id)


# ============================================================================
# CLIENT TICKETS
# ============================================================================


@router.post("/assign", response_model=ClientTicketResponse, status_code=201)
async def assign_ticket(
    data: TicketAssign,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: TicketService = Depends(get_ticket_service),
):
    """Sell a day-use ticket now, or leave it pending to be billed at checkout"""
    return service.assign(data, current_staff)


@router.get("/client/{client_id}/active", response_model=Optional[ClientTicketResponse])
async def active_ticket(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.active_ticket(client_id)


@router.get("/client/{client_id}", response_model=list[ClientTicketResponse])
async def client_tickets(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.client_tickets(client_id)


@router.post("/free-drink", response_model=FreeDrinkResult, status_code=201)
async def claim_free_drink(
    data: FreeDrinkClaim,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.claim_free_drink(data.client_id, data.client_ticket_id, data.product_id, current_staff)
