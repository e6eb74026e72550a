"""Event router - Public event listing and registration, staff event management"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...email_service import send_event_registration_email
from ...models import StaffUser
from ...permissions import EVENT_MANAGERS, FRONT_DESK
from ...rate_limiter import create_rate_limiter
from .schemas import EventCreate, EventResponse, EventUpdate, RegistrationCreate, RegistrationResponse
from .service import EventService, serialize_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])

registration_rate_limit = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="event_register")


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db)


def queue_confirmation(background_tasks: BackgroundTasks, result: dict):
    registration, event = result["registration"], result["event"]
    background_tasks.add_task(
        send_event_registration_email,
        registration.attendee_email,
        registration.attendee_name,
        event.title,
        event.event_date.strftime("%A %d %B %Y"),
        event.start_time,
        event.location,
        result["cancel_url"],
    )


# ============================================================================
# STAFF
# ============================================================================


@router.get("/manage", response_model=list[EventResponse])
async def list_all_events(
    include_inactive: bool = Query(True),
    current_staff: StaffUser = Depends(require_roles(*EVENT_MANAGERS)),
    service: EventService = Depends(get_event_service),
):
    """Every event, past ones included"""
    return service.list_all(include_inactive)


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    data: EventCreate,
    current_staff: StaffUser = Depends(require_roles(*EVENT_MANAGERS)),
    service: EventService = Depends(get_event_service),
):
    return service.create_event(data, current_staff)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    data: EventUpdate,
    current_staff: StaffUser = Depends(require_roles(*EVENT_MANAGERS)),
    service: EventService = Depends(get_event_service),
):
    return service.update_event(event_id, data)


@router.delete("/{event_id}", response_model=EventResponse)
async def deactivate_event(
    event_id: int,
    current_staff: StaffUser = Depends(require_roles(*EVENT_MANAGERS)),
    service: EventService = Depends(get_event_service),
):
    return service.deactivate_event(event_id)


@router.get("/{event_id}/registrations", response_model=list[RegistrationResponse])
async def list_registrations(
    event_id: int,
    include_cancelled: bool = Query(True),
    current_staff: StaffUser = Depends(require_roles(*(EVENT_MANAGERS + FRONT_DESK))),
    service: EventService = Depends(get_event_service),
):
    return service.registrations(event_id, include_cancelled)


@router.post("/{event_id}/registrations", response_model=RegistrationResponse, status_code=201)
async def register_at_desk(
    event_id: int,
    data: RegistrationCreate,
    background_tasks: BackgroundTasks,
    current_staff: StaffUser = Depends(require_roles(*(EVENT_MANAGERS + FRONT_DESK))),
    service: EventService = Depends(get_event_service),
):
    """Register an attendee at the desk, optionally taking payment"""
    result = service.register(event_id, data, staff=current_staff)
    queue_confirmation(background_tasks, result)
    return result["registration"]


@router.post("/registrations/{registration_id}/cancel", response_model=RegistrationResponse)
async def cancel_registration(
    registration_id: int,
    current_staff: StaffUser = Depends(require_roles(*(EVENT_MANAGERS + FRONT_DESK))),
    service: EventService = Depends(get_event_service),
):
    return service.cancel_registration(registration_id)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("", response_model=list[EventResponse])
async def list_upcoming_events(service: EventService = Depends(get_event_service)):
    """Upcoming events with the seats still available"""
    return service.list_upcoming()


@router.post("/registrations/cancel", response_model=RegistrationResponse)
async def cancel_registration_by_link(
    token: str = Query(..., min_length=10),
    service: EventService = Depends(get_event_service),
):
    """Cancellation link from the confirmation email"""
    return service.cancel_by_token(token)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: int, service: EventService = Depends(get_event_service)):
    event = service.get_event(event_id)
    return serialize_event(event)


@router.post("/{event_id}/register", response_model=RegistrationResponse, status_code=201)
async def register(
    event_id: int,
    data: RegistrationCreate,
    background_tasks: BackgroundTasks,
    _: None = Depends(registration_rate_limit),
    service: EventService = Depends(get_event_service),
):
    """Public registration from the website; payment is taken at the door"""
    result = service.register(event_id, data)
    queue_confirmation(background_tasks, result)
    return result["registration"]
