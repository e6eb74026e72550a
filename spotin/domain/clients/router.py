"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...email_service import send_welcome_email
from ...models import StaffUser
from ...permissions import FRONT_DESK
from .schemas import ClientCreate, ClientHistory, ClientResponse, ClientSignup, ClientStatus, ClientUpdate
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("/signup", response_model=ClientResponse, status_code=201)
async def signup(
    data: ClientSignup,
    background_tasks: BackgroundTasks,
    service: ClientService = Depends(get_client_service),
):
    """Self-service signup from the website; creates a portal login"""
    client = service.create_client(data)
    background_tasks.add_task(
        send_welcome_email, client.email, client.first_name, client.client_code, client.barcode
    )
    return client


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    checked_in: Optional[bool] = Query(None),
    include_inactive: bool = Query(False),
    limit: int = Query(200, ge=1, le=1000),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    """Search clients by name, phone, email, member code or barcode"""
    return service.get_clients(search, checked_in, include_inactive, limit)


@router.get("/export")
async def export_clients_csv(
    search: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    """Export clients as CSV"""
    logger.info(f"📊 CSV Export requested by {current_staff.email}")
    return service.export_clients_csv(search)


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    background_tasks: BackgroundTasks,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    """Register a walk-in client at the front desk"""
    client = service.create_client(data, current_staff)
    if client.email:
        background_tasks.add_task(
            send_welcome_email, client.email, client.first_name, client.client_code, client.barcode
        )
    return client


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    return service.get_client(client_id)


@router.get("/{client_id}/status", response_model=ClientStatus)
async def get_client_status(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    """Checked-in state, active membership and active ticket"""
    return service.get_status(client_id)


@router.get("/{client_id}/history", response_model=ClientHistory)
async def get_client_history(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    """Past visits and receipts"""
    return service.get_history(client_id)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    return service.update_client(client_id, data)


@router.delete("/{client_id}", response_model=ClientResponse)
async def deactivate_client(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: ClientService = Depends(get_client_service),
):
    """Disable a client account (history is kept)"""
    return service.deactivate_client(client_id)
