"""Order domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

ORDER_STATUSES = ("pending", "preparing", "ready", "served", "completed", "cancelled")


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1, le=50)
    notes: Optional[str] = Field(None, max_length=500)


class OrderCreate(BaseModel):
    client_id: int
    items: list[OrderItemIn] = Field(..., min_length=1)


class PortalOrderCreate(BaseModel):
    items: list[OrderItemIn] = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    status: str


class OrderResponse(BaseModel):
    id: int
    client_id: Optional[int]
    client_name: Optional[str] = None
    product_id: Optional[int]
    item_name: str
    quantity: int
    price: float
    total: float
    status: str
    notes: Optional[str]
    receipt_id: Optional[int]
    created_at: datetime
    updated_at: Optional[datetime]
    waiting_minutes: Optional[int] = None


class DirectSaleRequest(BaseModel):
    items: list[OrderItemIn] = Field(..., min_length=1)
    payment_method: str
    client_id: Optional[int] = None


class DirectSaleResponse(BaseModel):
    receipt_id: int
    receipt_number: str
    amount: float
    discount_amount: float
    total_amount: float
    items: list[OrderResponse]
