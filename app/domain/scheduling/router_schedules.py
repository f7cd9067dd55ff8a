"""Schedule router - FastAPI endpoints for recurring weekly schedules"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import RecurringSchedule, User
from ...services.notification_service import deliver_emails
from .schemas import (
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
    ScheduleValidateRequest,
    ValidationResponse,
)
from .service import ScheduleService, serialize_validation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedules", tags=["Schedules"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Dependency injection for ScheduleService"""
    return ScheduleService(db)


def to_response(s: RecurringSchedule) -> ScheduleResponse:
    return ScheduleResponse(
        id=s.id,
        dayOfWeek=s.day_of_week,
        startTime=s.start_time,
        endTime=s.end_time,
        category=s.category,
        title=s.title,
        maxParticipants=s.max_participants,
        isActive=s.is_active,
        createdAt=s.created_at,
    )


@router.get("", response_model=list[ScheduleResponse])
async def list_schedules(
    dayOfWeek: Optional[int] = Query(None, ge=0, le=6),
    category: Optional[str] = Query(None),
    activeOnly: bool = Query(False),
    current_user: User = Depends(get_current_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """List recurring schedules ordered by day and start time"""
    return [to_response(s) for s in service.list_schedules(dayOfWeek, category, activeOnly)]


@router.post("/validate", response_model=ValidationResponse)
async def validate_schedule(
    data: ScheduleValidateRequest,
    current_user: User = Depends(get_current_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Check a proposed schedule for conflicts without saving anything"""
    result = service.validate(
        data.dayOfWeek,
        data.startTime,
        data.endTime,
        data.category,
        grace_minutes=data.graceMinutes,
        exclude_id=data.excludeId,
        title=data.title,
    )
    return ValidationResponse(**serialize_validation(result))


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create a recurring schedule; conflicts are rejected with 409 unless allowConflicts is set"""
    logger.info(f"📥 Creating schedule requested by {current_user.email}")
    schedule, dispatch = service.create_schedule(data)
    if dispatch.emails:
        background_tasks.add_task(deliver_emails, dispatch.emails)
    return to_response(schedule)


@router.patch("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: int,
    data: ScheduleUpdate,
    current_user: User = Depends(get_current_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Update a schedule, re-validating it against every other schedule"""
    return to_response(service.update_schedule(schedule_id, data))


@router.delete("/{schedule_id}")
async def delete_schedule(
    schedule_id: int,
    current_user: User = Depends(get_current_admin),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Delete a schedule"""
    return service.delete_schedule(schedule_id)
