"""Portal router - Member self-service: status, menu, own orders, tickets, receipts, events"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_client
from ...database import get_db
from ...models import Client
from ..clients.schemas import ClientStatus
from ..clients.service import ClientService
from ..events.router import queue_confirmation
from ..events.schemas import EventResponse, RegistrationCreate, RegistrationResponse
from ..events.service import EventService
from ..memberships.schemas import MembershipResponse
from ..memberships.service import MembershipService
from ..orders.schemas import OrderResponse, PortalOrderCreate
from ..orders.service import OrderService
from ..receipts.schemas import ReceiptResponse
from ..receipts.service import ReceiptService
from ..stock.schemas import MenuItem
from ..stock.service import StockService
from ..tickets.schemas import ClientTicketResponse, FreeDrinkResult
from ..tickets.service import TicketService
from .schemas import PortalEventRegistration, PortalFreeDrinkClaim

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal", tags=["Member Portal"])


@router.get("/me", response_model=ClientStatus)
async def my_status(current_client: Client = Depends(get_current_client), db: Session = Depends(get_db)):
    """Profile, check-in state, membership and ticket"""
    return ClientService(db).get_status(current_client.id)


@router.get("/menu", response_model=list[MenuItem])
async def menu(current_client: Client = Depends(get_current_client), db: Session = Depends(get_db)):
    return StockService(db).menu()


@router.post("/orders", response_model=list[OrderResponse], status_code=201)
async def place_my_order(
    data: PortalOrderCreate,
    current_client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    """Order from your seat; only while checked in"""
    return OrderService(db).place_order(current_client.id, data.items)


@router.get("/orders", response_model=list[OrderResponse])
async def my_orders(
    since_check_in: bool = Query(True),
    current_client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    return OrderService(db).client_orders(current_client.id, since_check_in)


@router.get("/ticket", response_model=Optional[ClientTicketResponse])
async def my_ticket(current_client: Client = Depends(get_current_client), db: Session = Depends(get_db)):
    return TicketService(db).active_ticket(current_client.id)


@router.post("/ticket/free-drink", response_model=FreeDrinkResult, status_code=201)
async def claim_my_free_drink(
    data: PortalFreeDrinkClaim,
    current_client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    return TicketService(db).claim_free_drink(current_client.id, data.client_ticket_id, data.product_id)


@router.get("/memberships", response_model=list[MembershipResponse])
async def my_memberships(current_client: Client = Depends(get_current_client), db: Session = Depends(get_db)):
    return MembershipService(db).history(current_client.id)


@router.get("/receipts", response_model=list[ReceiptResponse])
async def my_receipts(
    limit: int = Query(50, ge=1, le=500),
    current_client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    return ReceiptService(db).list_receipts(client_id=current_client.id, limit=limit)


@router.get("/events", response_model=list[EventResponse])
async def upcoming_events(current_client: Client = Depends(get_current_client), db: Session = Depends(get_db)):
    return EventService(db).list_upcoming()


@router.get("/events/registrations", response_model=list[RegistrationResponse])
async def my_registrations(current_client: Client = Depends(get_current_client), db: Session = Depends(get_db)):
    return EventService(db).client_registrations(current_client.id)


@router.post("/events/{event_id}/register", response_model=RegistrationResponse, status_code=201)
async def register_for_event(
    event_id: int,
    data: PortalEventRegistration,
    background_tasks: BackgroundTasks,
    current_client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    """Register with the details on your member profile"""
    if not current_client.email:
        raise HTTPException(status_code=400, detail="Add an email address to your profile to register")

    registration = RegistrationCreate(
        attendee_name=current_client.full_name,
        attendee_email=current_client.email,
        attendee_phone=current_client.phone,
        special_requests=data.special_requests,
    )
    result = EventService(db).register(event_id, registration, client=current_client)
    queue_confirmation(background_tasks, result)
    return result["registration"]
