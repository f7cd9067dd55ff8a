"""Scheduling repository - Database operations for time slots and recurring schedules"""

import enum
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import RecurringSchedule, TimeSlot
from ...shared.errors import ConflictError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class InsertOutcome(enum.Enum):
    INSERTED = "inserted"
    SKIPPED = "skipped"  # Unique key already taken; expected during idempotent bulk runs


def _commit_insert(db: Session, record) -> InsertOutcome:
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return InsertOutcome.SKIPPED
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to save record: {e}") from e
    db.refresh(record)
    return InsertOutcome.INSERTED


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to {action}: {e}") from e


class SlotRepository:
    """Repository for time slot database operations"""

    @staticmethod
    def find_by_filter(
        db: Session,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        available_only: bool = False,
        **filters,
    ) -> list[TimeSlot]:
        query = db.query(TimeSlot).filter_by(**filters)

        if category:
            query = query.filter(TimeSlot.category == category)
        if start_date:
            query = query.filter(TimeSlot.date >= start_date)
        if end_date:
            query = query.filter(TimeSlot.date <= end_date)
        if available_only:
            query = query.filter(TimeSlot.is_available.is_(True), TimeSlot.is_booked.is_(False))

        return query.order_by(TimeSlot.date.asc(), TimeSlot.time.asc()).all()

    @staticmethod
    def get_by_id(db: Session, slot_id: int) -> Optional[TimeSlot]:
        return db.query(TimeSlot).filter(TimeSlot.id == slot_id).first()

    @staticmethod
    def exists(db: Session, slot_date: date, time: str, category: str) -> bool:
        return (
            db.query(TimeSlot.id)
            .filter(TimeSlot.date == slot_date, TimeSlot.time == time, TimeSlot.category == category)
            .first()
            is not None
        )

    @staticmethod
    def insert_if_absent(db: Session, slot: TimeSlot) -> InsertOutcome:
        """Insert guarded by the (date, time, category) unique constraint"""
        return _commit_insert(db, slot)

    @staticmethod
    def update_by_id(db: Session, slot_id: int, **patch) -> TimeSlot:
        slot = SlotRepository.get_by_id(db, slot_id)
        if not slot:
            raise NotFoundError("Slot not found")
        if slot.is_booked:
            raise ConflictError("Slot is booked and cannot be edited until it is released")

        for key, value in patch.items():
            if value is not None and hasattr(slot, key):
                setattr(slot, key, value)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError("Another slot already exists for that date, time and category") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to update slot: {e}") from e
        db.refresh(slot)
        return slot

    @staticmethod
    def release(db: Session, slot_id: int) -> TimeSlot:
        slot = SlotRepository.get_by_id(db, slot_id)
        if not slot:
            raise NotFoundError("Slot not found")

        slot.is_booked = False
        slot.is_available = True
        slot.booked_by = None
        slot.booked_at = None
        _commit(db, "release slot")
        db.refresh(slot)
        return slot

    @staticmethod
    def delete_by_id(db: Session, slot_id: int) -> None:
        slot = SlotRepository.get_by_id(db, slot_id)
        if not slot:
            raise NotFoundError("Slot not found")
        if slot.is_booked:
            raise ConflictError("Slot is booked and cannot be deleted until it is released")

        db.delete(slot)
        _commit(db, "delete slot")

    @staticmethod
    def delete_unbooked(
        db: Session, category: Optional[str] = None, before: Optional[date] = None
    ) -> tuple[int, int]:
        """
        Delete every unbooked slot matching the filters.
        Returns (deleted_count, booked_kept_count)
        """
        query = db.query(TimeSlot)
        if category:
            query = query.filter(TimeSlot.category == category)
        if before:
            query = query.filter(TimeSlot.date < before)

        booked_kept = query.filter(TimeSlot.is_booked.is_(True)).count()
        deleted = query.filter(TimeSlot.is_booked.is_(False)).delete(synchronize_session=False)
        _commit(db, "clean slots")
        return deleted, booked_kept


class ScheduleRepository:
    """Repository for recurring schedule database operations"""

    @staticmethod
    def find_by_filter(
        db: Session,
        day_of_week: Optional[int] = None,
        categories: Optional[set[str]] = None,
        active_only: bool = False,
        exclude_id: Optional[int] = None,
    ) -> list[RecurringSchedule]:
        query = db.query(RecurringSchedule)

        if day_of_week is not None:
            query = query.filter(RecurringSchedule.day_of_week == day_of_week)
        if categories:
            query = query.filter(RecurringSchedule.category.in_(categories))
        if active_only:
            query = query.filter(RecurringSchedule.is_active.is_(True))
        if exclude_id is not None:
            query = query.filter(RecurringSchedule.id != exclude_id)

        return query.order_by(
            RecurringSchedule.day_of_week.asc(), RecurringSchedule.start_time.asc()
        ).all()

    @staticmethod
    def get_by_id(db: Session, schedule_id: int) -> Optional[RecurringSchedule]:
        return db.query(RecurringSchedule).filter(RecurringSchedule.id == schedule_id).first()

    @staticmethod
    def create(db: Session, **schedule_data) -> RecurringSchedule:
        schedule = RecurringSchedule(**schedule_data)
        if _commit_insert(db, schedule) is InsertOutcome.SKIPPED:
            raise PersistenceError("Schedule could not be saved")
        return schedule

    @staticmethod
    def update_by_id(db: Session, schedule_id: int, **patch) -> RecurringSchedule:
        schedule = ScheduleRepository.get_by_id(db, schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")

        for key, value in patch.items():
            if value is not None and hasattr(schedule, key):
                setattr(schedule, key, value)

        _commit(db, "update schedule")
        db.refresh(schedule)
        return schedule

    @staticmethod
    def delete_by_id(db: Session, schedule_id: int) -> None:
        schedule = ScheduleRepository.get_by_id(db, schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")

        db.delete(schedule)
        _commit(db, "delete schedule")
