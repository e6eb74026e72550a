"""Ticket service - Day-use tickets, their billing and the free drink perk"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...config import DAY_USE_TICKET_HOURS, DRINK_CATEGORIES
from ...database import atomic
from ...models import Client, ClientTicket, SessionLineItem, StaffUser, Ticket
from ...realtime import publish
from ...shared.billing import PAYMENT_METHODS, hours_until, round_money, utcnow
from ..receipts.repository import ReceiptRepository
from ..stock.service import StockService
from .repository import TicketRepository
from .schemas import TicketAssign, TicketCreate, TicketUpdate

logger = logging.getLogger(__name__)


def serialize_client_ticket(ticket: ClientTicket, now=None) -> dict:
    now = now or utcnow()
    return {
        "id": ticket.id,
        "client_id": ticket.client_id,
        "ticket_id": ticket.ticket_id,
        "ticket_name": ticket.ticket_name,
        "ticket_price": ticket.ticket_price,
        "includes_free_drink": ticket.includes_free_drink,
        "purchase_date": ticket.purchase_date,
        "expiry_date": ticket.expiry_date,
        "hours_remaining": hours_until(ticket.expiry_date, now),
        "is_expired": ticket.expiry_date <= now,
        "payment_method": ticket.payment_method,
        "is_paid": ticket.is_paid,
        "receipt_id": ticket.receipt_id,
        "free_drink_claimed": ticket.free_drink_claimed,
        "free_drink_claimed_at": ticket.free_drink_claimed_at,
        "claimed_drink_name": ticket.claimed_drink_name,
    }


def ticket_receipt_line(ticket: ClientTicket) -> dict:
    price = round_money(ticket.ticket_price)
    return {"kind": "ticket", "name": ticket.ticket_name, "quantity": 1, "unit_price": price, "total": price}


class TicketService:
    """Service layer for ticket business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TicketRepository()

    # ============================================================================
    # CATALOGUE
    # ============================================================================

    def list_tickets(self, include_inactive: bool = False) -> list[Ticket]:
        return self.repo.get_tickets(self.db, include_inactive)

    def get_ticket(self, ticket_id: int) -> Ticket:
        ticket = self.repo.get_ticket(self.db, ticket_id)
        if not ticket:
            raise HTTPException(status_code=404, detail="Ticket not found")
        return ticket

    def create_ticket(self, data: TicketCreate) -> Ticket:
        with atomic(self.db):
            ticket = self.repo.add(self.db, Ticket(**data.model_dump()))
        logger.info(f"🎟️ Ticket type created: {ticket.name} ({ticket.price})")
        return ticket

    def update_ticket(self, ticket_id: int, data: TicketUpdate) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        with atomic(self.db):
            for key, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(ticket, key, value)
        return ticket

    def deactivate_ticket(self, ticket_id: int) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        with atomic(self.db):
            ticket.is_active = False
        return ticket

    # ============================================================================
    # CLIENT TICKETS
    # ============================================================================

    def issue(self, client: Client, ticket: Ticket, payment_method: str, staff: Optional[StaffUser]) -> ClientTicket:
        """
        Create a client ticket inside the caller's transaction.
        Paying up front writes a day_use_ticket receipt; "pending" leaves it for checkout.
        """
        if payment_method != "pending" and payment_method not in PAYMENT_METHODS:
            raise HTTPException(
                status_code=400,
                detail=f"payment_method must be pending or one of {', '.join(PAYMENT_METHODS)}",
            )
        if not ticket.is_active:
            raise HTTPException(status_code=409, detail="This ticket is no longer offered")

        now = utcnow()
        if self.repo.get_active_ticket(self.db, client.id, now):
            raise HTTPException(status_code=409, detail="Client already has an active ticket")

        client_ticket = self.repo.add(
            self.db,
            ClientTicket(
                client_id=client.id,
                ticket_id=ticket.id,
                ticket_name=ticket.name,
                ticket_price=round_money(ticket.price),
                includes_free_drink=ticket.includes_free_drink,
                purchase_date=now,
                expiry_date=now + timedelta(hours=ticket.duration_hours or DAY_USE_TICKET_HOURS),
                payment_method=payment_method,
                is_paid=False,
                assigned_by=staff.id if staff else None,
            ),
        )

        if payment_method != "pending":
            price = client_ticket.ticket_price
            receipt = ReceiptRepository.create_receipt(
                self.db,
                client_id=client.id,
                staff_id=staff.id if staff else None,
                transaction_type="day_use_ticket",
                line_items=[ticket_receipt_line(client_ticket)],
                amount=price,
                discount_amount=0,
                total_amount=price,
                payment_method=payment_method,
                status="closed",
                receipt_date=now,
            )
            client_ticket.receipt_id = receipt.id
            client_ticket.is_paid = True

        return client_ticket

    def assign(self, data: TicketAssign, staff: Optional[StaffUser]) -> dict:
        ticket = self.get_ticket(data.ticket_id)
        with atomic(self.db):
            client = self.db.query(Client).filter(Client.id == data.client_id).with_for_update().first()
            if not client or not client.is_active:
                raise HTTPException(status_code=404, detail="Client not found")
            client_ticket = self.issue(client, ticket, data.payment_method, staff)

        logger.info(
            f"🎟️ {ticket.name} assigned to {client.client_code} "
            f"(expires {client_ticket.expiry_date:%Y-%m-%d %H:%M}, {client_ticket.payment_method})"
        )
        publish("tickets", "assigned", {"client_id": client.id, "client_ticket_id": client_ticket.id})
        if client_ticket.receipt_id:
            invalidate_finance_cache()
            publish("receipts", "created", {"receipt_id": client_ticket.receipt_id, "client_id": client.id})
        return serialize_client_ticket(client_ticket)

    def active_ticket(self, client_id: int) -> Optional[dict]:
        now = utcnow()
        ticket = self.repo.get_active_ticket(self.db, client_id, now)
        return serialize_client_ticket(ticket, now) if ticket else None

    def client_tickets(self, client_id: int) -> list[dict]:
        now = utcnow()
        return [serialize_client_ticket(t, now) for t in self.repo.get_client_tickets(self.db, client_id)]

    def claim_free_drink(
        self, client_id: int, client_ticket_id: int, product_id: int, staff: Optional[StaffUser] = None
    ) -> dict:
        """
        Redeem the ticket's free drink: a zero-priced pending order goes to the
        bar queue and its ingredients leave stock. One claim per ticket.
        """
        stock = StockService(self.db)
        product = stock.get_product(product_id)
        if product.category not in DRINK_CATEGORIES:
            raise HTTPException(status_code=400, detail="The free drink must be a drink")
        if not product.is_available:
            raise HTTPException(status_code=409, detail=f"{product.name} is not available right now")

        with atomic(self.db):
            ticket = self.repo.get_client_ticket_for_update(self.db, client_ticket_id)
            if not ticket or ticket.client_id != client_id:
                raise HTTPException(status_code=404, detail="Ticket not found for this client")
            if not ticket.includes_free_drink:
                raise HTTPException(status_code=400, detail="This ticket does not include a free drink")
            if ticket.free_drink_claimed:
                raise HTTPException(status_code=409, detail="The free drink has already been claimed")
            now = utcnow()
            if ticket.expiry_date <= now:
                raise HTTPException(status_code=409, detail="This ticket has expired")

            stock.consume([(product.id, 1)])
            order = self.repo.add(
                self.db,
                SessionLineItem(
                    client_id=client_id,
                    product_id=product.id,
                    item_name=product.name,
                    quantity=1,
                    price=0,
                    status="pending",
                    notes=f"Free drink from ticket: {ticket.ticket_name}",
                    placed_by=staff.id if staff else None,
                    created_at=now,
                ),
            )
            ticket.free_drink_claimed = True
            ticket.free_drink_claimed_at = now
            ticket.claimed_drink_name = product.name
            ticket.free_drink_order_id = order.id

        logger.info(f"☕ Free {product.name} claimed on ticket {ticket.id} by client {client_id}")
        publish("tickets", "drink_claimed", {"client_id": client_id, "client_ticket_id": ticket.id})
        publish("orders", "created", {"order_id": order.id, "client_id": client_id})
        return {"ticket": serialize_client_ticket(ticket), "order_id": order.id, "drink_name": product.name}
