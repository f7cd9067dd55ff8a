"""Enrollment service - Business logic for training enrollments"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Enrollment
from ...services.notification_service import NotificationDispatch, notify_enrollment_created
from ...shared.errors import ConflictError, NotFoundError
from .repository import EnrollmentRepository
from .schemas import EnrollmentCreate

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Service layer for enrollments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EnrollmentRepository()

    def list_enrollments(self, category: Optional[str] = None) -> list[Enrollment]:
        return self.repo.get_enrollments(self.db, category)

    def enroll(self, data: EnrollmentCreate) -> tuple[Enrollment, NotificationDispatch]:
        user = self.repo.get_user_by_email(self.db, data.userEmail)
        if not user:
            raise NotFoundError(f"No user registered with email {data.userEmail}")

        if self.repo.get_enrollment(self.db, user.id, data.category):
            raise ConflictError(f"{data.userEmail} is already enrolled in {data.category}")

        enrollment = self.repo.create_enrollment(
            self.db,
            user.id,
            category=data.category,
            training_name=data.trainingName,
            price=data.price,
            is_active=True,
        )
        logger.info(f"🎓 Enrolled {user.email} in {enrollment.category}")

        try:
            dispatch = notify_enrollment_created(self.db, enrollment, user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create enrollment notifications for {user.email}: {e}")
            dispatch = NotificationDispatch()
        return enrollment, dispatch
