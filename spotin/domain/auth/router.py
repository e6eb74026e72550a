"""Auth router - Sign-in endpoints and staff management"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_staff, require_roles
from ...config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from ...database import get_db
from ...models import StaffUser
from ...permissions import MANAGEMENT
from ...rate_limiter import create_rate_limiter
from .schemas import (
    ClientLoginRequest,
    FirstAdminSetup,
    PasswordChange,
    StaffCreate,
    StaffLoginRequest,
    StaffResponse,
    StaffUpdate,
    TokenResponse,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])
staff_router = APIRouter(prefix="/staff", tags=["Staff"])

staff_login_rate_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="staff_login"
)
client_login_rate_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="client_login"
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


@router.post("/setup", response_model=StaffResponse, status_code=201)
async def setup_first_admin(data: FirstAdminSetup, service: AuthService = Depends(get_auth_service)):
    """Create the first admin account on a fresh installation"""
    return service.setup_first_admin(data)


@router.post("/login", response_model=TokenResponse)
async def staff_login(
    data: StaffLoginRequest,
    _: None = Depends(staff_login_rate_limit),
    service: AuthService = Depends(get_auth_service),
):
    return service.staff_login(data.email, data.password)


@router.post("/client/login", response_model=TokenResponse)
async def client_login(
    data: ClientLoginRequest,
    _: None = Depends(client_login_rate_limit),
    service: AuthService = Depends(get_auth_service),
):
    """Member portal sign-in with phone, email or member code"""
    return service.client_login(data.identifier, data.password)


@router.get("/me", response_model=StaffResponse)
async def me(current_staff: StaffUser = Depends(get_current_staff)):
    return current_staff


@router.post("/password")
async def change_password(
    data: PasswordChange,
    current_staff: StaffUser = Depends(get_current_staff),
    service: AuthService = Depends(get_auth_service),
):
    service.change_password(current_staff, data)
    return {"message": "Password updated"}


# ============================================================================
# STAFF MANAGEMENT
# ============================================================================


@staff_router.get("", response_model=list[StaffResponse])
async def list_staff(
    include_inactive: bool = Query(False),
    current_staff: StaffUser = Depends(require_roles(*MANAGEMENT)),
    service: AuthService = Depends(get_auth_service),
):
    return service.list_staff(include_inactive)


@staff_router.post("", response_model=StaffResponse, status_code=201)
async def create_staff(
    data: StaffCreate,
    current_staff: StaffUser = Depends(require_roles(*MANAGEMENT)),
    service: AuthService = Depends(get_auth_service),
):
    return service.create_staff(data, current_staff)


@staff_router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: int,
    data: StaffUpdate,
    current_staff: StaffUser = Depends(require_roles(*MANAGEMENT)),
    service: AuthService = Depends(get_auth_service),
):
    """Change role, contact details or deactivate"""
    return service.update_staff(staff_id, data, current_staff)
