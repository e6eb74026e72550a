"""Client service - Business logic for client operations"""

import csv
import logging
import secrets
from datetime import datetime
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...database import atomic
from ...models import Client, ClientMembership, ClientTicket, StaffUser
from ...realtime import publish
from ...security_utils import hash_password
from ...shared.billing import hours_until, round_money, utcnow
from ..memberships.repository import MembershipRepository
from ..receipts.repository import ReceiptRepository
from ..receipts.service import serialize_receipt
from ..tickets.repository import TicketRepository
from .repository import ClientRepository
from .schemas import ClientCreate, ClientSignup, ClientUpdate

logger = logging.getLogger(__name__)

# no 0/O or 1/I
BARCODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_barcode() -> str:
    """BC followed by 8 random uppercase alphanumerics"""
    return "BC" + "".join(secrets.choice(BARCODE_ALPHABET) for _ in range(8))


def membership_badge(membership: Optional[ClientMembership]) -> Optional[dict]:
    if not membership:
        return None
    return {
        "id": membership.id,
        "plan_name": membership.plan_name,
        "discount_percentage": membership.discount_percentage,
        "end_date": membership.end_date,
    }


def ticket_badge(ticket: Optional[ClientTicket], now: datetime) -> Optional[dict]:
    if not ticket:
        return None
    return {
        "id": ticket.id,
        "ticket_name": ticket.ticket_name,
        "expiry_date": ticket.expiry_date,
        "hours_remaining": hours_until(ticket.expiry_date, now),
        "is_paid": ticket.is_paid,
        "includes_free_drink": ticket.includes_free_drink,
        "free_drink_claimed": ticket.free_drink_claimed,
    }


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(
        self,
        search: Optional[str] = None,
        checked_in: Optional[bool] = None,
        include_inactive: bool = False,
        limit: int = 200,
    ) -> list[Client]:
        return self.repo.get_clients(self.db, search, checked_in, include_inactive, limit)

    def get_client(self, client_id: int) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def _ensure_unique(self, phone: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
        if phone and self.repo.phone_taken(self.db, phone, exclude_id):
            raise HTTPException(status_code=409, detail="A client with this phone number already exists")
        if email and self.repo.email_taken(self.db, email, exclude_id):
            raise HTTPException(status_code=409, detail="A client with this email already exists")

    def _new_barcode(self) -> str:
        for _ in range(10):
            barcode = generate_barcode()
            if not self.repo.barcode_taken(self.db, barcode):
                return barcode
        raise HTTPException(status_code=500, detail="Could not allocate a unique barcode")

    def create_client(self, data: ClientCreate, staff: Optional[StaffUser] = None) -> Client:
        """Register a new client with a member code and barcode"""
        logger.info(f"📥 Registering client {data.first_name} {data.last_name}")

        self._ensure_unique(data.phone, data.email)

        password_hash = None
        if isinstance(data, ClientSignup):
            if not data.email:
                raise HTTPException(status_code=400, detail="Email is required to create an account")
            password_hash = hash_password(data.password)

        with atomic(self.db):
            client = self.repo.create_client(
                self.db,
                client_code=f"C{self.repo.next_client_number(self.db):05d}",
                barcode=self._new_barcode(),
                first_name=data.first_name,
                last_name=data.last_name,
                full_name=f"{data.first_name} {data.last_name}",
                phone=data.phone,
                email=data.email,
                job_title=data.job_title,
                how_did_you_find_us=data.how_did_you_find_us,
                password_hash=password_hash,
            )

        registered_by = staff.email if staff else "self-signup"
        logger.info(f"✅ Client {client.client_code} registered ({registered_by})")
        publish("clients", "created", {"client_id": client.id})
        return client

    def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        client = self.get_client(client_id)
        updates = data.model_dump(exclude_unset=True)
        self._ensure_unique(updates.get("phone"), updates.get("email"), exclude_id=client.id)

        with atomic(self.db):
            for key, value in updates.items():
                if value is not None and hasattr(client, key):
                    setattr(client, key, value)
            client.full_name = f"{client.first_name} {client.last_name}"

        publish("clients", "updated", {"client_id": client.id})
        return client

    def deactivate_client(self, client_id: int) -> Client:
        client = self.get_client(client_id)
        if client.active:
            raise HTTPException(
                status_code=409, detail="Client is checked in. Check them out before deactivating."
            )
        with atomic(self.db):
            client.is_active = False
        logger.info(f"🚫 Client {client.client_code} deactivated")
        publish("clients", "deactivated", {"client_id": client.id})
        return client

    def get_status(self, client_id: int) -> dict:
        """Everything the front desk shows for a client at a glance"""
        client = self.get_client(client_id)
        now = utcnow()
        open_check_in = self.repo.get_open_check_in(self.db, client.id)
        return {
            "client": client,
            "checked_in": bool(client.active),
            "checked_in_at": open_check_in.checked_in_at if open_check_in else None,
            "membership": membership_badge(
                MembershipRepository.get_active_membership(self.db, client.id, now)
            ),
            "ticket": ticket_badge(TicketRepository.get_active_ticket(self.db, client.id, now), now),
        }

    def get_history(self, client_id: int) -> dict:
        client = self.get_client(client_id)
        visits = []
        for visit in self.repo.get_visits(self.db, client.id):
            duration = None
            if visit.checked_out_at:
                duration = int((visit.checked_out_at - visit.checked_in_at).total_seconds() // 60)
            visits.append(
                {
                    "id": visit.id,
                    "status": visit.status,
                    "checked_in_at": visit.checked_in_at,
                    "checked_out_at": visit.checked_out_at,
                    "duration_minutes": duration,
                }
            )

        receipts = ReceiptRepository.get_receipts(self.db, client_id=client.id)
        total_spent = sum(r.total_amount for r in receipts if r.status != "cancelled")
        return {
            "client": client,
            "visits": visits,
            "receipts": [serialize_receipt(r) for r in receipts],
            "total_spent": round_money(total_spent),
        }

    def export_clients_csv(self, search: Optional[str] = None) -> StreamingResponse:
        """Export clients as CSV"""
        clients = self.repo.get_clients(self.db, search=search, include_inactive=True, limit=100000)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(
            [
                "Client Code",
                "Barcode",
                "First Name",
                "Last Name",
                "Phone",
                "Email",
                "Job Title",
                "How Did You Find Us",
                "Account Active",
                "Checked In",
                "Created At",
            ]
        )
        for client in clients:
            writer.writerow(
                [
                    client.client_code,
                    client.barcode,
                    client.first_name,
                    client.last_name,
                    client.phone,
                    client.email or "",
                    client.job_title or "",
                    client.how_did_you_find_us or "",
                    "Yes" if client.is_active else "No",
                    "Yes" if client.active else "No",
                    client.created_at.strftime("%Y-%m-%d %H:%M:%S") if client.created_at else "",
                ]
            )

        output.seek(0)
        filename = f"clients_export_{utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"✅ CSV export successful: {filename} ({len(clients)} clients)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )
