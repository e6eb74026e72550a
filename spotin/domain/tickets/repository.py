"""Ticket repository - Database operations for the ticket catalogue and client tickets"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ClientTicket, Ticket


class TicketRepository:
    """Repository for ticket database operations. Callers own the commit."""

    @staticmethod
    def get_tickets(db: Session, include_inactive: bool = False) -> list[Ticket]:
        query = db.query(Ticket)
        if not include_inactive:
            query = query.filter(Ticket.is_active.is_(True))
        return query.order_by(Ticket.price.asc()).all()

    @staticmethod
    def get_ticket(db: Session, ticket_id: int) -> Optional[Ticket]:
        return db.query(Ticket).filter(Ticket.id == ticket_id).first()

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_active_ticket(db: Session, client_id: int, now: datetime) -> Optional[ClientTicket]:
        """The client's unexpired ticket, newest first"""
        return (
            db.query(ClientTicket)
            .filter(ClientTicket.client_id == client_id, ClientTicket.expiry_date > now)
            .order_by(ClientTicket.purchase_date.desc())
            .first()
        )

    @staticmethod
    def get_client_ticket_for_update(db: Session, client_ticket_id: int) -> Optional[ClientTicket]:
        return (
            db.query(ClientTicket)
            .filter(ClientTicket.id == client_ticket_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_unpaid_tickets(db: Session, client_id: int) -> list[ClientTicket]:
        """Tickets assigned on credit, billed at checkout"""
        return (
            db.query(ClientTicket)
            .filter(
                ClientTicket.client_id == client_id,
                ClientTicket.is_paid.is_(False),
                ClientTicket.payment_method == "pending",
                ClientTicket.receipt_id.is_(None),
            )
            .order_by(ClientTicket.purchase_date.asc())
            .all()
        )

    @staticmethod
    def get_client_tickets(db: Session, client_id: int) -> list[ClientTicket]:
        return (
            db.query(ClientTicket)
            .filter(ClientTicket.client_id == client_id)
            .order_by(ClientTicket.purchase_date.desc())
            .all()
        )

    @staticmethod
    def count_expired_since(db: Session, since: datetime, now: datetime) -> int:
        return (
            db.query(ClientTicket)
            .filter(ClientTicket.expiry_date > since, ClientTicket.expiry_date <= now)
            .count()
        )

    @staticmethod
    def get_tickets_claimed_by_orders(db: Session, order_ids: list[int]) -> list[ClientTicket]:
        return (
            db.query(ClientTicket)
            .filter(ClientTicket.free_drink_order_id.in_(order_ids))
            .with_for_update()
            .all()
        )
