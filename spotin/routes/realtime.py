"""
Server-sent event stream of data changes for the staff dashboards
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..auth import get_current_staff, security
from ..database import get_db
from ..realtime import TOPICS, change_feed, stream_changes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


def parse_topics(topics: Optional[str]) -> list[str]:
    if not topics:
        return list(TOPICS)
    requested = [t.strip() for t in topics.split(",") if t.strip()]
    unknown = [t for t in requested if t not in TOPICS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown topics: {', '.join(unknown)}")
    return requested


@router.get("/stream")
async def stream(
    request: Request,
    topics: Optional[str] = Query(None, description="Comma separated, e.g. orders,clients"),
    token: Optional[str] = Query(None, description="Bearer token for EventSource clients"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """
    Subscribe to changes. EventSource cannot send headers, so the staff token
    may also be passed as ?token=
    """
    if credentials is None and token:
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    staff = await get_current_staff(credentials, db)
    wanted = parse_topics(topics)

    sub = change_feed.subscribe(wanted)
    logger.info(f"📡 {staff.email} subscribed to {', '.join(wanted)}")
    return StreamingResponse(
        stream_changes(sub, request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
