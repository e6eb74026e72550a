"""Order router - FastAPI endpoints for the bar"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import StaffUser
from ...permissions import BAR
from .schemas import (
    DirectSaleRequest,
    DirectSaleResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
)
from .service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db)


@router.post("", response_model=list[OrderResponse], status_code=201)
async def place_order(
    data: OrderCreate,
    current_staff: StaffUser = Depends(require_roles(*BAR)),
    service: OrderService = Depends(get_order_service),
):
    """Order for a checked-in client; billed at checkout"""
    return service.place_order(data.client_id, data.items, current_staff)


@router.get("/queue", response_model=list[OrderResponse])
async def order_queue(
    status: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*BAR)),
    service: OrderService = Depends(get_order_service),
):
    """Open orders, oldest first"""
    return service.queue(status)


@router.post("/direct-sale", response_model=DirectSaleResponse, status_code=201)
async def direct_sale(
    data: DirectSaleRequest,
    current_staff: StaffUser = Depends(require_roles(*BAR)),
    service: OrderService = Depends(get_order_service),
):
    return service.direct_sale(data, current_staff)


@router.get("/client/{client_id}", response_model=list[OrderResponse])
async def client_orders(
    client_id: int,
    since_check_in: bool = Query(True),
    current_staff: StaffUser = Depends(require_roles(*BAR)),
    service: OrderService = Depends(get_order_service),
):
    return service.client_orders(client_id, since_check_in)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    current_staff: StaffUser = Depends(require_roles(*BAR)),
    service: OrderService = Depends(get_order_service),
):
    return service.update_status(order_id, data.status)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    current_staff: StaffUser = Depends(require_roles(*BAR)),
    service: OrderService = Depends(get_order_service),
):
    """Cancel an unbilled order and return its ingredients to stock"""
    return service.cancel_order(order_id)
