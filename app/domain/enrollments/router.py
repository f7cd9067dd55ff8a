"""Enrollment router - FastAPI endpoints for training enrollments"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Enrollment, User
from ...services.notification_service import deliver_emails
from .schemas import EnrollmentCreate, EnrollmentResponse
from .service import EnrollmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    """Dependency injection for EnrollmentService"""
    return EnrollmentService(db)


def to_response(enrollment: Enrollment) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=enrollment.id,
        userId=enrollment.user_id,
        userEmail=enrollment.user.email,
        userName=enrollment.user.full_name,
        category=enrollment.category,
        trainingName=enrollment.training_name,
        price=enrollment.price,
        isActive=enrollment.is_active,
        createdAt=enrollment.created_at,
    )


@router.get("", response_model=list[EnrollmentResponse])
async def list_enrollments(
    category: Optional[str] = Query(None),
    current_user: User = Depends(get_current_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """List enrollments, newest first"""
    return [to_response(e) for e in service.list_enrollments(category)]


@router.post("", response_model=EnrollmentResponse, status_code=201)
async def create_enrollment(
    data: EnrollmentCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """Enroll a registered user in a training category and send the welcome emails"""
    enrollment, dispatch = service.enroll(data)
    if dispatch.emails:
        background_tasks.add_task(deliver_emails, dispatch.emails)
    return to_response(enrollment)
