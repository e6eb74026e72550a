"""Check-in router - FastAPI endpoints for the front desk"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...config import SCAN_RATE_LIMIT
from ...database import get_db
from ...models import StaffUser
from ...permissions import FRONT_DESK
from ...rate_limiter import create_rate_limiter
from .schemas import (
    ActiveSession,
    CheckInLogResponse,
    CheckInRequest,
    CheckInResult,
    CheckoutPreview,
    CheckoutRequest,
    CheckoutResult,
    ScanRequest,
    ScanResult,
)
from .service import CheckInService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkins", tags=["Check-ins"])

scan_rate_limit = create_rate_limiter(limit=SCAN_RATE_LIMIT, window_seconds=60, key_prefix="scan")


def get_checkin_service(db: Session = Depends(get_db)) -> CheckInService:
    """Dependency injection for CheckInService"""
    return CheckInService(db)


@router.post("/scan", response_model=ScanResult)
async def scan_barcode(
    data: ScanRequest,
    _: None = Depends(scan_rate_limit),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: CheckInService = Depends(get_checkin_service),
):
    """Scan a membership card: checks the client in, or out if already checked in"""
    return service.scan(data.barcode, data.payment_method, current_staff)


@router.post("", response_model=CheckInResult, status_code=201)
async def check_in(
    data: CheckInRequest,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: CheckInService = Depends(get_checkin_service),
):
    return service.check_in(data.client_id, current_staff, data.ticket_id, data.ticket_payment_method)


@router.get("/active", response_model=list[ActiveSession])
async def active_sessions(
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: CheckInService = Depends(get_checkin_service),
):
    """Everyone currently in the space"""
    return service.active_sessions()


@router.get("/logs", response_model=list[CheckInLogResponse])
async def check_in_logs(
    client_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: CheckInService = Depends(get_checkin_service),
):
    return service.logs(client_id, limit)


@router.get("/{client_id}/checkout-preview", response_model=CheckoutPreview)
async def checkout_preview(
    client_id: int,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: CheckInService = Depends(get_checkin_service),
):
    return service.checkout_preview(client_id)


@router.post("/{client_id}/checkout", response_model=CheckoutResult)
async def checkout(
    client_id: int,
    data: CheckoutRequest,
    current_staff: StaffUser = Depends(require_roles(*FRONT_DESK)),
    service: CheckInService = Depends(get_checkin_service),
):
    """Bill the session and check the client out"""
    return service.checkout(client_id, data.payment_method, data.force, current_staff)
