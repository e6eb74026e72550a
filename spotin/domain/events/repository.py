"""Event repository - Database operations for events and registrations"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Event, EventRegistration


class EventRepository:
    """Repository for event database operations. Callers own the commit."""

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_events(db: Session, from_date: Optional[date] = None, include_inactive: bool = False) -> list[Event]:
        query = db.query(Event)
        if not include_inactive:
            query = query.filter(Event.is_active.is_(True))
        if from_date is not None:
            query = query.filter(Event.event_date >= from_date)
        return query.order_by(Event.event_date.asc(), Event.start_time.asc()).all()

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_event_for_update(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).with_for_update().first()

    @staticmethod
    def get_registration_for_update(db: Session, registration_id: int) -> Optional[EventRegistration]:
        return (
            db.query(EventRegistration)
            .filter(EventRegistration.id == registration_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def find_active_registration(db: Session, event_id: int, email: str) -> Optional[EventRegistration]:
        return (
            db.query(EventRegistration)
            .filter(
                EventRegistration.event_id == event_id,
                func.lower(EventRegistration.attendee_email) == email.lower(),
                EventRegistration.status == "registered",
            )
            .first()
        )

    @staticmethod
    def get_registrations(db: Session, event_id: int, include_cancelled: bool = True) -> list[EventRegistration]:
        query = db.query(EventRegistration).filter(EventRegistration.event_id == event_id)
        if not include_cancelled:
            query = query.filter(EventRegistration.status == "registered")
        return query.order_by(EventRegistration.registered_at.asc()).all()

    @staticmethod
    def get_client_registrations(db: Session, client_id: int) -> list[EventRegistration]:
        return (
            db.query(EventRegistration)
            .filter(EventRegistration.client_id == client_id)
            .order_by(EventRegistration.registered_at.desc())
            .all()
        )

    @staticmethod
    def get_registrations_on(db: Session, event_date: date) -> list[EventRegistration]:
        """Active registrations for active events on a given day"""
        return (
            db.query(EventRegistration)
            .join(Event, Event.id == EventRegistration.event_id)
            .filter(
                Event.event_date == event_date,
                Event.is_active.is_(True),
                EventRegistration.status == "registered",
            )
            .all()
        )
