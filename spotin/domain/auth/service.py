"""Auth service - Sign-in for staff and clients, staff account management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import create_client_token, create_staff_token
from ...config import ACCESS_TOKEN_EXPIRE_MINUTES, CLIENT_TOKEN_EXPIRE_MINUTES
from ...database import atomic
from ...models import StaffUser
from ...permissions import MANAGEMENT, ROLES
from ...security_utils import check_password_strength, hash_password, verify_password
from ...shared.billing import utcnow
from ..clients.repository import ClientRepository
from .repository import StaffRepository
from .schemas import FirstAdminSetup, PasswordChange, StaffCreate, StaffUpdate

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Service layer for authentication and staff accounts"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = StaffRepository()

    # ============================================================================
    # SIGN-IN
    # ============================================================================

    def staff_login(self, email: str, password: str) -> dict:
        staff = self.repo.get_by_email(self.db, email)
        if not staff or not verify_password(password, staff.password_hash):
            logger.warning(f"⚠️ Failed staff login for {email}")
            raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)
        if not staff.is_active:
            logger.warning(f"⚠️ Disabled staff account tried to sign in: {email}")
            raise HTTPException(status_code=401, detail="This account has been disabled")

        with atomic(self.db):
            staff.last_login_at = utcnow()

        logger.info(f"🔐 Staff signed in: {staff.email} ({staff.role})")
        return {
            "access_token": create_staff_token(staff),
            "token_type": "bearer",
            "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "kind": "staff",
            "role": staff.role,
        }

    def client_login(self, identifier: str, password: str) -> dict:
        client = ClientRepository.get_client_by_login(self.db, identifier)
        if not client or not verify_password(password, client.password_hash):
            logger.warning(f"⚠️ Failed client login for {identifier}")
            raise HTTPException(status_code=401, detail="Invalid credentials")
        if not client.is_active:
            raise HTTPException(status_code=401, detail="This account has been disabled")

        logger.info(f"🔐 Client signed in: {client.client_code}")
        return {
            "access_token": create_client_token(client),
            "token_type": "bearer",
            "expires_in": CLIENT_TOKEN_EXPIRE_MINUTES * 60,
            "kind": "client",
        }

    # ============================================================================
    # STAFF ACCOUNTS
    # ============================================================================

    def _validate_password(self, password: str):
        problems = check_password_strength(password)
        if problems:
            raise HTTPException(status_code=400, detail="; ".join(problems))

    def setup_first_admin(self, data: FirstAdminSetup) -> StaffUser:
        """Bootstrap: only possible while no staff account exists"""
        if self.repo.count_staff(self.db) > 0:
            raise HTTPException(status_code=409, detail="Setup has already been completed")
        self._validate_password(data.password)

        with atomic(self.db):
            staff = self.repo.create(
                self.db,
                email=data.email,
                full_name=data.full_name.strip(),
                role="admin",
                password_hash=hash_password(data.password),
            )
        logger.info(f"🆕 First admin created: {staff.email}")
        return staff

    def create_staff(self, data: StaffCreate, created_by: StaffUser) -> StaffUser:
        if data.role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role. Choose one of: {', '.join(ROLES)}")
        if data.role == "admin" and created_by.role != "admin":
            raise HTTPException(status_code=403, detail="Only admins can create admin accounts")
        if self.repo.get_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="A staff member with this email already exists")
        self._validate_password(data.password)

        with atomic(self.db):
            staff = self.repo.create(
                self.db,
                email=data.email,
                full_name=data.full_name,
                phone=data.phone,
                role=data.role,
                password_hash=hash_password(data.password),
            )
        logger.info(f"🆕 Staff account {staff.email} ({staff.role}) created by {created_by.email}")
        return staff

    def list_staff(self, include_inactive: bool = False) -> list[StaffUser]:
        return self.repo.get_all(self.db, include_inactive)

    def get_staff(self, staff_id: int) -> StaffUser:
        staff = self.repo.get_by_id(self.db, staff_id)
        if not staff:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return staff

    def update_staff(self, staff_id: int, data: StaffUpdate, updated_by: StaffUser) -> StaffUser:
        staff = self.get_staff(staff_id)
        updates = data.model_dump(exclude_unset=True)

        role: Optional[str] = updates.get("role")
        if role is not None and role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role. Choose one of: {', '.join(ROLES)}")
        if role == "admin" and updated_by.role != "admin":
            raise HTTPException(status_code=403, detail="Only admins can grant the admin role")

        demoting = (role is not None and role not in MANAGEMENT) or updates.get("is_active") is False
        if (
            demoting
            and staff.role in MANAGEMENT
            and staff.is_active
            and self.repo.count_active_with_roles(self.db, MANAGEMENT) <= 1
        ):
            raise HTTPException(status_code=409, detail="At least one active admin or CEO account is required")

        with atomic(self.db):
            for key, value in updates.items():
                if value is not None:
                    setattr(staff, key, value)

        logger.info(f"✏️ Staff {staff.email} updated by {updated_by.email}: {list(updates)}")
        return staff

    def change_password(self, staff: StaffUser, data: PasswordChange):
        if not verify_password(data.current_password, staff.password_hash):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        self._validate_password(data.new_password)
        with atomic(self.db):
            staff.password_hash = hash_password(data.new_password)
        logger.info(f"🔑 Password changed for {staff.email}")
