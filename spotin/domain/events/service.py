"""Event service - Community events, capacity and registrations"""

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...config import FRONTEND_URL
from ...database import atomic
from ...models import Client, Event, EventRegistration, StaffUser
from ...realtime import publish
from ...security_utils import generate_timed_token, sanitize_text, verify_timed_token
from ...shared.billing import PAYMENT_METHODS, round_money, utcnow
from ..receipts.repository import ReceiptRepository
from .repository import EventRepository
from .schemas import EventCreate, EventUpdate, RegistrationCreate

logger = logging.getLogger(__name__)

CANCEL_TOKEN_SALT = "event-registration-cancel"
CANCEL_TOKEN_MAX_AGE = int(timedelta(days=90).total_seconds())

SANITIZED_FIELDS = ("title", "description", "category", "location")


def serialize_event(event: Event) -> dict:
    spots_left = max(0, event.capacity - event.registered_attendees)
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "category": event.category,
        "location": event.location,
        "event_date": event.event_date,
        "start_time": event.start_time,
        "end_time": event.end_time,
        "capacity": event.capacity,
        "price": event.price,
        "registered_attendees": event.registered_attendees,
        "spots_left": spots_left,
        "is_full": spots_left == 0,
        "is_active": event.is_active,
    }


def build_cancel_url(registration: EventRegistration) -> str:
    token = generate_timed_token({"registration_id": registration.id}, salt=CANCEL_TOKEN_SALT)
    return f"{FRONTEND_URL}/events/cancel?token={token}"


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()

    def _check_times(self, start_time: Optional[str], end_time: Optional[str]):
        if start_time and end_time and end_time <= start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

    # ============================================================================
    # EVENTS
    # ============================================================================

    def list_upcoming(self) -> list[dict]:
        return [serialize_event(e) for e in self.repo.get_events(self.db, from_date=utcnow().date())]

    def list_all(self, include_inactive: bool = True) -> list[dict]:
        return [serialize_event(e) for e in self.repo.get_events(self.db, include_inactive=include_inactive)]

    def get_event(self, event_id: int) -> Event:
        event = self.repo.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    def create_event(self, data: EventCreate, staff: StaffUser) -> dict:
        self._check_times(data.start_time, data.end_time)
        values = data.model_dump()
        for field in SANITIZED_FIELDS:
            values[field] = sanitize_text(values[field])

        with atomic(self.db):
            event = self.repo.add(self.db, Event(**values, registered_attendees=0, created_by=staff.id))

        logger.info(f"📅 Event created: {event.title} on {event.event_date} (capacity {event.capacity})")
        publish("events", "created", {"event_id": event.id})
        return serialize_event(event)

    def update_event(self, event_id: int, data: EventUpdate) -> dict:
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        for field in SANITIZED_FIELDS:
            if field in updates:
                updates[field] = sanitize_text(updates[field])

        with atomic(self.db):
            event = self.repo.get_event_for_update(self.db, event_id)
            if not event:
                raise HTTPException(status_code=404, detail="Event not found")
            if "capacity" in updates and updates["capacity"] < event.registered_attendees:
                raise HTTPException(
                    status_code=409,
                    detail=f"Capacity cannot be lower than the {event.registered_attendees} registered attendees",
                )
            self._check_times(updates.get("start_time", event.start_time), updates.get("end_time", event.end_time))
            for key, value in updates.items():
                setattr(event, key, value)

        publish("events", "updated", {"event_id": event.id})
        return serialize_event(event)

    def deactivate_event(self, event_id: int) -> dict:
        event = self.get_event(event_id)
        with atomic(self.db):
            event.is_active = False
        logger.info(f"📅 Event cancelled: {event.title}")
        publish("events", "deactivated", {"event_id": event.id})
        return serialize_event(event)

    # ============================================================================
    # REGISTRATIONS
    # ============================================================================

    def register(
        self,
        event_id: int,
        data: RegistrationCreate,
        staff: Optional[StaffUser] = None,
        client: Optional[Client] = None,
    ) -> dict:
        """
        Take a seat at an event. The attendee count is checked and incremented
        under a row lock, so two last-seat registrations cannot both succeed.
        """
        payment_method = data.payment_method if staff else None
        if payment_method is not None and payment_method not in PAYMENT_METHODS:
            raise HTTPException(
                status_code=400,
                detail=f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
            )

        with atomic(self.db):
            event = self.repo.get_event_for_update(self.db, event_id)
            if not event or not event.is_active:
                raise HTTPException(status_code=404, detail="Event not found")
            if event.event_date < utcnow().date():
                raise HTTPException(status_code=409, detail="Registration is closed for this event")
            if event.registered_attendees >= event.capacity:
                raise HTTPException(status_code=409, detail="Event is full")
            if self.repo.find_active_registration(self.db, event.id, data.attendee_email):
                raise HTTPException(status_code=409, detail="This email is already registered for the event")

            client_id = client.id if client else (data.client_id if staff else None)
            if client is None and client_id is not None:
                linked = self.db.query(Client).filter(Client.id == client_id).first()
                if not linked or not linked.is_active:
                    raise HTTPException(status_code=404, detail="Client not found")

            now = utcnow()
            registration = self.repo.add(
                self.db,
                EventRegistration(
                    event_id=event.id,
                    client_id=client_id,
                    attendee_name=sanitize_text(data.attendee_name),
                    attendee_email=data.attendee_email,
                    attendee_phone=data.attendee_phone,
                    special_requests=sanitize_text(data.special_requests),
                    status="registered",
                    registered_at=now,
                ),
            )
            event.registered_attendees += 1

            receipt = None
            price = round_money(event.price)
            if price > 0 and payment_method:
                receipt = ReceiptRepository.create_receipt(
                    self.db,
                    client_id=client_id,
                    staff_id=staff.id,
                    transaction_type="event",
                    line_items=[
                        {"kind": "event", "name": event.title, "quantity": 1, "unit_price": price, "total": price}
                    ],
                    amount=price,
                    discount_amount=0,
                    total_amount=price,
                    payment_method=payment_method,
                    status="closed",
                    receipt_date=now,
                )
                registration.receipt_id = receipt.id

        logger.info(
            f"🎉 {registration.attendee_email} registered for {event.title} "
            f"({event.registered_attendees}/{event.capacity})"
        )
        publish("events", "registered", {"event_id": event.id, "registration_id": registration.id})
        if receipt:
            invalidate_finance_cache()
            publish("receipts", "created", {"receipt_id": receipt.id, "client_id": client_id})
        return {"registration": registration, "event": event, "cancel_url": build_cancel_url(registration)}

    def cancel_registration(self, registration_id: int) -> EventRegistration:
        """Release the seat. A receipt for a paid seat is refunded separately from /receipts."""
        with atomic(self.db):
            registration = self.repo.get_registration_for_update(self.db, registration_id)
            if not registration:
                raise HTTPException(status_code=404, detail="Registration not found")
            if registration.status == "cancelled":
                raise HTTPException(status_code=409, detail="Registration is already cancelled")

            registration.status = "cancelled"
            registration.cancelled_at = utcnow()
            event = self.repo.get_event_for_update(self.db, registration.event_id)
            if event and event.registered_attendees > 0:
                event.registered_attendees -= 1

        logger.info(f"🚫 Registration {registration.id} for event {registration.event_id} cancelled")
        publish("events", "registration_cancelled", {"event_id": registration.event_id})
        return registration

    def cancel_by_token(self, token: str) -> EventRegistration:
        """Cancellation from the link in the confirmation email"""
        data = verify_timed_token(token, max_age=CANCEL_TOKEN_MAX_AGE, salt=CANCEL_TOKEN_SALT)
        if not data or "registration_id" not in data:
            raise HTTPException(status_code=400, detail="Invalid or expired cancellation link")
        return self.cancel_registration(int(data["registration_id"]))

    def registrations(self, event_id: int, include_cancelled: bool = True) -> list[EventRegistration]:
        self.get_event(event_id)
        return self.repo.get_registrations(self.db, event_id, include_cancelled)

    def client_registrations(self, client_id: int) -> list[EventRegistration]:
        return self.repo.get_client_registrations(self.db, client_id)

    def registrations_on(self, event_date: date) -> list[EventRegistration]:
        return self.repo.get_registrations_on(self.db, event_date)
