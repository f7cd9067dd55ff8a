"""Enrollment repository - Database operations for enrollments"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import Enrollment, User
from ...shared.errors import ConflictError


class EnrollmentRepository:
    """Repository for enrollment database operations"""

    @staticmethod
    def get_enrollments(db: Session, category: Optional[str] = None) -> list[Enrollment]:
        query = db.query(Enrollment).options(joinedload(Enrollment.user))
        if category:
            query = query.filter(Enrollment.category == category)
        return query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc()).all()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_enrollment(db: Session, user_id: int, category: str) -> Optional[Enrollment]:
        return (
            db.query(Enrollment)
            .filter(Enrollment.user_id == user_id, Enrollment.category == category)
            .first()
        )

    @staticmethod
    def create_enrollment(db: Session, user_id: int, **enrollment_data) -> Enrollment:
        """Create an enrollment; the (user, category) pair is unique"""
        enrollment = Enrollment(user_id=user_id, **enrollment_data)
        db.add(enrollment)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError("User is already enrolled in this category") from e
        db.refresh(enrollment)
        return enrollment
