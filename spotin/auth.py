import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, CLIENT_TOKEN_EXPIRE_MINUTES
from .database import get_db
from .models import Client, StaffUser
from .security_utils import create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

NOT_AUTHENTICATED = "Not authenticated. Please provide a valid Bearer token in the Authorization header."


def create_staff_token(staff: StaffUser) -> str:
    return create_jwt_token(
        {"sub": str(staff.id), "kind": "staff", "role": staff.role},
        timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_client_token(client: Client) -> str:
    return create_jwt_token(
        {"sub": str(client.id), "kind": "client"},
        timedelta(minutes=CLIENT_TOKEN_EXPIRE_MINUTES),
    )


def _decode_credentials(
    credentials: Optional[HTTPAuthorizationCredentials], expected_kind: str
) -> int:
    """Validate a bearer token and return the subject id"""
    if not credentials:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received: token length: {len(token)}")
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    payload = verify_jwt_token(token)
    if not payload:
        raise HTTPException(
            status_code=401,
            detail="Token is invalid or has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        )

    if payload.get("kind") != expected_kind:
        logger.warning(f"⚠️ {payload.get('kind')} token used on a {expected_kind} endpoint")
        raise HTTPException(status_code=403, detail="This account cannot access this resource")

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token claims") from e


async def get_current_staff(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> StaffUser:
    """Get the signed-in staff member from the bearer token"""
    staff_id = _decode_credentials(credentials, "staff")

    staff = db.query(StaffUser).filter(StaffUser.id == staff_id).first()
    if not staff or not staff.is_active:
        logger.warning(f"⚠️ Token for missing or inactive staff user {staff_id}")
        raise HTTPException(status_code=401, detail="Account not found or disabled")

    return staff


async def get_current_client(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Client:
    """Get the signed-in client (member portal) from the bearer token"""
    client_id = _decode_credentials(credentials, "client")

    client = db.query(Client).filter(Client.id == client_id).first()
    if not client or not client.is_active:
        logger.warning(f"⚠️ Token for missing or inactive client {client_id}")
        raise HTTPException(status_code=401, detail="Account not found or disabled")

    return client


def require_roles(*roles: str):
    """
    Dependency factory restricting a route to the given staff roles

    Example usage:
        @router.post("/plans")
        async def create_plan(staff: StaffUser = Depends(require_roles(*PLAN_MANAGERS))):
            ...
    """

    async def role_checker(staff: StaffUser = Depends(get_current_staff)) -> StaffUser:
        if staff.role not in roles:
            logger.warning(f"🚫 {staff.email} ({staff.role}) denied; requires one of {roles}")
            raise HTTPException(
                status_code=403,
                detail="You do not have permission to perform this action",
            )
        return staff

    return role_checker
