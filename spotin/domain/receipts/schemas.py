"""Receipt domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ReceiptLine(BaseModel):
    kind: str  # product, ticket, membership, event
    name: str
    quantity: int
    unit_price: float
    total: float
    product_id: Optional[int] = None
    line_item_id: Optional[int] = None


class ReceiptResponse(BaseModel):
    id: int
    receipt_number: str
    client_id: Optional[int]
    client_name: Optional[str] = None
    staff_id: Optional[int]
    transaction_type: str
    line_items: list[ReceiptLine]
    amount: float
    discount_amount: float
    total_amount: float
    payment_method: str
    status: str
    receipt_date: datetime
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None


class ReceiptCancelRequest(BaseModel):
    reason: str
    restock: bool = True


class CancellationReasonTotal(BaseModel):
    reason: str
    count: int
    total_amount: float


class CancellationReport(BaseModel):
    count: int
    total_amount: float
    by_reason: list[CancellationReasonTotal]
    receipts: list[ReceiptResponse]
