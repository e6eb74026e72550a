"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import CheckIn, Client


class ClientRepository:
    """Repository for client database operations. Callers own the commit."""

    @staticmethod
    def get_clients(
        db: Session,
        search: Optional[str] = None,
        checked_in: Optional[bool] = None,
        include_inactive: bool = False,
        limit: int = 200,
    ) -> list[Client]:
        query = db.query(Client)
        if not include_inactive:
            query = query.filter(Client.is_active.is_(True))
        if checked_in is not None:
            query = query.filter(Client.active.is_(checked_in))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Client.full_name.ilike(pattern),
                    Client.phone.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.client_code.ilike(pattern),
                    Client.barcode.ilike(pattern),
                )
            )
        return query.order_by(Client.created_at.desc(), Client.id.desc()).limit(limit).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: int) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def get_client_for_update(db: Session, client_id: int) -> Optional[Client]:
        """Row lock serialising check-in / checkout of the same client"""
        return db.query(Client).filter(Client.id == client_id).with_for_update().first()

    @staticmethod
    def get_client_by_code(db: Session, code: str) -> Optional[Client]:
        """Match a scanned value against barcode or client code"""
        code = code.strip()
        return (
            db.query(Client)
            .filter(
                Client.is_active.is_(True),
                or_(
                    func.upper(Client.barcode) == code.upper(),
                    func.upper(Client.client_code) == code.upper(),
                ),
            )
            .first()
        )

    @staticmethod
    def get_client_by_login(db: Session, identifier: str) -> Optional[Client]:
        identifier = identifier.strip()
        return (
            db.query(Client)
            .filter(
                or_(
                    Client.phone == identifier,
                    Client.email == identifier.lower(),
                    func.upper(Client.client_code) == identifier.upper(),
                )
            )
            .first()
        )

    @staticmethod
    def phone_taken(db: Session, phone: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Client.id).filter(Client.phone == phone)
        if exclude_id:
            query = query.filter(Client.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Client.id).filter(Client.email == email)
        if exclude_id:
            query = query.filter(Client.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def barcode_taken(db: Session, barcode: str) -> bool:
        return db.query(Client.id).filter(Client.barcode == barcode).first() is not None

    @staticmethod
    def next_client_number(db: Session) -> int:
        return (db.query(func.max(Client.id)).scalar() or 0) + 1

    @staticmethod
    def create_client(db: Session, **client_data) -> Client:
        client = Client(**client_data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def get_open_check_in(db: Session, client_id: int) -> Optional[CheckIn]:
        return (
            db.query(CheckIn)
            .filter(CheckIn.client_id == client_id, CheckIn.status == "checked_in")
            .order_by(CheckIn.checked_in_at.desc())
            .first()
        )

    @staticmethod
    def get_visits(db: Session, client_id: int, limit: int = 50) -> list[CheckIn]:
        return (
            db.query(CheckIn)
            .filter(CheckIn.client_id == client_id)
            .order_by(CheckIn.checked_in_at.desc())
            .limit(limit)
            .all()
        )
