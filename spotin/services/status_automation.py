"""
Automated status transitions for memberships, tickets and sessions
Handles active → expired for memberships past their end date,
counts day-use tickets that ran out, and closes sessions left open overnight
"""

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from ..config import STALE_SESSION_HOURS
from ..database import atomic
from ..domain.checkins.service import CheckInService
from ..domain.memberships.repository import MembershipRepository
from ..domain.tickets.repository import TicketRepository
from ..realtime import publish
from ..shared.billing import utcnow

logger = logging.getLogger(__name__)


def expire_memberships(db: Session) -> int:
    """Active memberships whose end date has passed become inactive"""
    now = utcnow()
    with atomic(db):
        expired = MembershipRepository.get_expired_but_active(db, now)
        for membership in expired:
            membership.is_active = False
            logger.info(f"✅ Membership {membership.id} ({membership.plan_name}) expired for client {membership.client_id}")

    for membership in expired:
        publish("memberships", "expired", {"client_id": membership.client_id, "membership_id": membership.id})
    return len(expired)


def expire_tickets(db: Session, lookback_hours: int = 24) -> int:
    """
    Tickets need no write to expire: the active-ticket query ignores them once
    expiry_date has passed. This only reports how many ran out recently.
    """
    now = utcnow()
    count = TicketRepository.count_expired_since(db, now - timedelta(hours=lookback_hours), now)
    if count:
        logger.info(f"🎟️ {count} day-use ticket(s) expired in the last {lookback_hours}h")
    return count


def run_status_automation(db: Session, max_session_hours: int = STALE_SESSION_HOURS) -> dict:
    """
    Run every automated transition
    Should be run as a scheduled job (nightly cron)

    Returns:
        dict: Summary of status changes made
    """
    summary = {
        "expired_memberships": expire_memberships(db),
        "expired_tickets": expire_tickets(db),
        "closed_sessions": CheckInService(db).close_stale_sessions(max_session_hours),
    }
    summary["total_updated"] = summary["expired_memberships"] + summary["closed_sessions"]

    if summary["total_updated"] or summary["expired_tickets"]:
        logger.info(f"📊 Status automation summary: {summary}")
    else:
        logger.debug("ℹ️ No membership/session status updates needed")
    return summary
