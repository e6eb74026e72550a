"""Order service - Session orders, the barista queue and counter sales"""

import logging
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...database import atomic
from ...models import Client, Product, SessionLineItem, StaffUser
from ...realtime import publish
from ...shared.billing import PAYMENT_METHODS, line_total, percentage_of, round_money, utcnow
from ..clients.repository import ClientRepository
from ..memberships.repository import MembershipRepository
from ..receipts.repository import ReceiptRepository
from ..stock.service import StockService
from ..tickets.repository import TicketRepository
from .repository import OrderRepository
from .schemas import ORDER_STATUSES, DirectSaleRequest, OrderItemIn

logger = logging.getLogger(__name__)

# Allowed status moves for an unbilled order
TRANSITIONS = {
    "pending": ("preparing", "cancelled"),
    "preparing": ("ready", "cancelled"),
    "ready": ("served", "completed", "cancelled"),
    "served": ("completed",),
}


def serialize_order(item: SessionLineItem, now=None) -> dict:
    waiting = None
    if item.status in ("pending", "preparing", "ready"):
        now = now or utcnow()
        waiting = max(0, int((now - item.created_at).total_seconds() // 60))
    return {
        "id": item.id,
        "client_id": item.client_id,
        "client_name": item.client.full_name if item.client else None,
        "product_id": item.product_id,
        "item_name": item.item_name,
        "quantity": item.quantity,
        "price": item.price,
        "total": line_total(item.price, item.quantity),
        "status": item.status,
        "notes": item.notes,
        "receipt_id": item.receipt_id,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "waiting_minutes": waiting,
    }


def receipt_line(item: SessionLineItem) -> dict:
    """Snapshot of a line item as it appears on a receipt"""
    return {
        "kind": "product",
        "name": item.item_name,
        "quantity": item.quantity,
        "unit_price": round_money(item.price),
        "total": line_total(item.price, item.quantity),
        "product_id": item.product_id,
        "line_item_id": item.id,
    }


class OrderService:
    """Service layer for order business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository()
        self.stock = StockService(db)

    def _load_products(self, items: list[OrderItemIn]) -> list[tuple[Product, OrderItemIn]]:
        resolved = []
        for item in items:
            product = self.stock.get_product(item.product_id)
            if not product.is_available:
                raise HTTPException(status_code=409, detail=f"{product.name} is not available right now")
            resolved.append((product, item))
        return resolved

    def _create_items(
        self,
        client_id: Optional[int],
        resolved: list[tuple[Product, OrderItemIn]],
        status: str,
        staff: Optional[StaffUser],
    ) -> list[SessionLineItem]:
        """Deduct stock for the whole order, then write one line item per product"""
        self.stock.consume((product.id, item.quantity) for product, item in resolved)
        now = utcnow()
        return [
            self.repo.add(
                self.db,
                SessionLineItem(
                    client_id=client_id,
                    product_id=product.id,
                    item_name=product.name,
                    quantity=item.quantity,
                    price=round_money(product.price),
                    status=status,
                    notes=(item.notes or "").strip() or None,
                    placed_by=staff.id if staff else None,
                    created_at=now,
                ),
            )
            for product, item in resolved
        ]

    def cancel_items(self, items: Iterable[SessionLineItem], restock: bool = True) -> int:
        """Cancel unbilled items inside the caller's transaction"""
        items = [i for i in items if i.receipt_id is None and i.status != "cancelled"]
        if restock:
            self.stock.restock((i.product_id, i.quantity) for i in items if i.product_id)
        now = utcnow()
        for item in items:
            item.status = "cancelled"
            item.updated_at = now

        # a cancelled free drink can be claimed again
        free = [i.id for i in items if i.price == 0]
        if free:
            for ticket in TicketRepository.get_tickets_claimed_by_orders(self.db, free):
                ticket.free_drink_claimed = False
                ticket.free_drink_claimed_at = None
                ticket.claimed_drink_name = None
                ticket.free_drink_order_id = None
                logger.info(f"☕ Free drink on ticket {ticket.id} released by order cancellation")
        return len(items)

    # ============================================================================
    # SESSION ORDERS
    # ============================================================================

    def place_order(self, client_id: int, items: list[OrderItemIn], staff: Optional[StaffUser] = None) -> list[dict]:
        resolved = self._load_products(items)

        with atomic(self.db):
            client = ClientRepository.get_client_for_update(self.db, client_id)
            if not client or not client.is_active:
                raise HTTPException(status_code=404, detail="Client not found")
            if not client.active:
                raise HTTPException(status_code=409, detail="Client must be checked in to order")
            created = self._create_items(client.id, resolved, "pending", staff)

        logger.info(f"☕ {len(created)} item(s) ordered for {client.client_code}")
        for item in created:
            publish("orders", "created", {"order_id": item.id, "client_id": client.id})
        return [serialize_order(item) for item in created]

    def queue(self, status: Optional[str] = None) -> list[dict]:
        if status and status not in ORDER_STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
        now = utcnow()
        return [serialize_order(item, now) for item in self.repo.get_queue(self.db, status)]

    def get_order(self, order_id: int) -> SessionLineItem:
        order = self.repo.get_order(self.db, order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def update_status(self, order_id: int, new_status: str) -> dict:
        if new_status not in ORDER_STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown status: {new_status}")

        with atomic(self.db):
            order = self.repo.get_order_for_update(self.db, order_id)
            if not order:
                raise HTTPException(status_code=404, detail="Order not found")
            if order.receipt_id is not None:
                raise HTTPException(status_code=409, detail="Billed orders cannot be changed")
            if new_status not in TRANSITIONS.get(order.status, ()):
                raise HTTPException(
                    status_code=409,
                    detail=f"Cannot move an order from {order.status} to {new_status}",
                )

            previous = order.status
            if new_status == "cancelled":
                self.cancel_items([order])
            else:
                order.status = new_status
                order.updated_at = utcnow()

        logger.info(f"🔄 Order {order.id} ({order.item_name}) {previous} → {new_status}")
        publish("orders", new_status, {"order_id": order.id, "client_id": order.client_id})
        if new_status == "cancelled":
            publish("stock", "restocked", {"order_id": order.id})
        return serialize_order(order)

    def cancel_order(self, order_id: int) -> dict:
        return self.update_status(order_id, "cancelled")

    def client_orders(self, client_id: int, since_check_in: bool = True) -> list[dict]:
        since = None
        if since_check_in:
            open_check_in = ClientRepository.get_open_check_in(self.db, client_id)
            if not open_check_in:
                return []
            since = open_check_in.checked_in_at
        now = utcnow()
        return [serialize_order(item, now) for item in self.repo.get_client_orders(self.db, client_id, since)]

    # ============================================================================
    # COUNTER SALES
    # ============================================================================

    def direct_sale(self, data: DirectSaleRequest, staff: StaffUser) -> dict:
        """
        Sell over the counter: stock is deducted, items are written completed and
        billed on an order receipt right away.
        """
        if data.payment_method not in PAYMENT_METHODS:
            raise HTTPException(
                status_code=400,
                detail=f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
            )
        resolved = self._load_products(data.items)

        with atomic(self.db):
            client: Optional[Client] = None
            if data.client_id is not None:
                client = ClientRepository.get_client_for_update(self.db, data.client_id)
                if not client or not client.is_active:
                    raise HTTPException(status_code=404, detail="Client not found")

            items = self._create_items(client.id if client else None, resolved, "completed", staff)
            lines = [receipt_line(item) for item in items]
            subtotal = round_money(sum(line["total"] for line in lines))

            discount = 0.0
            now = utcnow()
            membership = MembershipRepository.get_active_membership(self.db, client.id, now) if client else None
            if membership:
                discount = percentage_of(subtotal, membership.discount_percentage)
                membership.total_savings = round_money(membership.total_savings + discount)

            receipt = ReceiptRepository.create_receipt(
                self.db,
                client_id=client.id if client else None,
                staff_id=staff.id,
                transaction_type="order",
                line_items=lines,
                amount=subtotal,
                discount_amount=discount,
                total_amount=round_money(subtotal - discount),
                payment_method=data.payment_method,
                status="closed",
                receipt_date=now,
            )
            for item in items:
                item.receipt_id = receipt.id
                item.updated_at = now

        logger.info(
            f"💵 Counter sale {receipt.receipt_number}: {receipt.total_amount} "
            f"({len(items)} item(s), {data.payment_method})"
        )
        invalidate_finance_cache()
        publish("receipts", "created", {"receipt_id": receipt.id, "client_id": receipt.client_id})
        publish("stock", "consumed", {"receipt_id": receipt.id})
        return {
            "receipt_id": receipt.id,
            "receipt_number": receipt.receipt_number,
            "amount": receipt.amount,
            "discount_amount": receipt.discount_amount,
            "total_amount": receipt.total_amount,
            "items": [serialize_order(item) for item in items],
        }
