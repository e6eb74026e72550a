"""Feedback router - Members rate their visit; staff read the results"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_client, require_roles
from ...database import get_db
from ...models import Client, StaffUser
from ...permissions import ANALYTICS
from .schemas import FeedbackCreate, FeedbackResponse, FeedbackSummary
from .service import FeedbackService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["Feedback"])


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    """Dependency injection for FeedbackService"""
    return FeedbackService(db)


@router.post("", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    data: FeedbackCreate,
    current_client: Client = Depends(get_current_client),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Rate today's visit, usually from the checkout screen"""
    return service.submit(current_client, data)


@router.get("", response_model=list[FeedbackResponse])
async def list_feedback(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    current_staff: StaffUser = Depends(require_roles(*ANALYTICS)),
    service: FeedbackService = Depends(get_feedback_service),
):
    return service.list_feedback(start, end, limit)


@router.get("/summary", response_model=FeedbackSummary)
async def feedback_summary(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*ANALYTICS)),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Average rating over the window"""
    return service.summary(start, end)
