"""Receipt router - FastAPI endpoints for receipts"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...email_service import send_receipt_email
from ...models import StaffUser
from ...permissions import RECEIPT_CANCELLERS, RECEIPT_VIEWERS
from .schemas import CancellationReport, ReceiptCancelRequest, ReceiptResponse
from .service import ReceiptService, serialize_receipt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/receipts", tags=["Receipts"])


def get_receipt_service(db: Session = Depends(get_db)) -> ReceiptService:
    """Dependency injection for ReceiptService"""
    return ReceiptService(db)


@router.get("", response_model=list[ReceiptResponse])
async def list_receipts(
    status: Optional[str] = Query(None),
    transaction_type: Optional[str] = Query(None),
    client_id: Optional[int] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    current_staff: StaffUser = Depends(require_roles(*RECEIPT_VIEWERS)),
    service: ReceiptService = Depends(get_receipt_service),
):
    return service.list_receipts(status, transaction_type, client_id, start, end, limit)


@router.get("/cancellations", response_model=CancellationReport)
async def cancellation_report(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*RECEIPT_VIEWERS)),
    service: ReceiptService = Depends(get_receipt_service),
):
    """Cancelled receipts grouped by reason"""
    return service.cancellation_report(start, end)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(
    receipt_id: int,
    current_staff: StaffUser = Depends(require_roles(*RECEIPT_VIEWERS)),
    service: ReceiptService = Depends(get_receipt_service),
):
    return serialize_receipt(service.get_receipt(receipt_id))


@router.post("/{receipt_id}/cancel", response_model=ReceiptResponse)
async def cancel_receipt(
    receipt_id: int,
    data: ReceiptCancelRequest,
    current_staff: StaffUser = Depends(require_roles(*RECEIPT_CANCELLERS)),
    service: ReceiptService = Depends(get_receipt_service),
):
    """Cancel a receipt with a reason, optionally returning ingredients to stock"""
    return service.cancel_receipt(receipt_id, data, current_staff)


@router.post("/{receipt_id}/email")
async def email_receipt(
    receipt_id: int,
    background_tasks: BackgroundTasks,
    current_staff: StaffUser = Depends(require_roles(*RECEIPT_VIEWERS)),
    service: ReceiptService = Depends(get_receipt_service),
):
    """Send the receipt to the client's email address"""
    receipt = service.get_receipt(receipt_id)
    if not receipt.client or not receipt.client.email:
        raise HTTPException(status_code=400, detail="This client has no email address on file")

    background_tasks.add_task(
        send_receipt_email, receipt.client.email, receipt.client.first_name, serialize_receipt(receipt)
    )
    logger.info(f"📧 Receipt {receipt.receipt_number} queued for {receipt.client.email}")
    return {"message": "Receipt email queued"}
