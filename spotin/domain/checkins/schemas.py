"""Check-in domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..clients.schemas import ClientResponse, MembershipBadge, TicketBadge
from ..orders.schemas import OrderResponse
from ..receipts.schemas import ReceiptLine, ReceiptResponse


class ScanRequest(BaseModel):
    barcode: str = Field(..., min_length=1, max_length=50)
    payment_method: str = "cash"  # used when the scan checks the client out


class CheckInRequest(BaseModel):
    client_id: int
    ticket_id: Optional[int] = None
    ticket_payment_method: str = "pending"


class CheckoutRequest(BaseModel):
    payment_method: str
    force: bool = False  # cancel pending/preparing orders instead of blocking


class CheckInResult(BaseModel):
    action: str  # checked_in
    client: ClientResponse
    check_in_id: int
    checked_in_at: datetime
    cancelled_orders: int = 0
    ticket_id: Optional[int] = None


class CheckoutPreview(BaseModel):
    client: ClientResponse
    checked_in_at: Optional[datetime]
    pending_orders: list[OrderResponse]
    line_items: list[ReceiptLine]
    tickets: list[ReceiptLine]
    membership: Optional[MembershipBadge] = None
    product_subtotal: float
    subtotal: float
    discount: float
    total: float
    can_checkout: bool


class CheckoutResult(BaseModel):
    action: str  # checked_out
    client: ClientResponse
    receipt: Optional[ReceiptResponse] = None
    cancelled_orders: int = 0
    duration_minutes: Optional[int] = None


class ScanResult(BaseModel):
    action: str  # checked_in, checked_out
    check_in: Optional[CheckInResult] = None
    checkout: Optional[CheckoutResult] = None


class ActiveSession(BaseModel):
    client: ClientResponse
    checked_in_at: Optional[datetime]
    elapsed_minutes: Optional[int]
    open_orders: int
    membership: Optional[MembershipBadge] = None
    ticket: Optional[TicketBadge] = None


class CheckInLogResponse(BaseModel):
    id: int
    client_id: int
    action: str
    scanned_barcode: Optional[str]
    scanned_by: Optional[int]
    notes: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True
