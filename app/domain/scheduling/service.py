"""Scheduling service - Business logic for time slots and recurring schedules"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import (
    CONFLICT_DOMAINS,
    DEFAULT_GRACE_MINUTES,
    MAX_SCHEDULE_SUGGESTIONS,
    SCHEDULE_DAY_END,
    SCHEDULE_DAY_START,
)
from ...models import RecurringSchedule, TimeSlot
from ...services.notification_service import (
    NotificationDispatch,
    notify_schedule_published,
    notify_slots_published,
)
from ...shared.errors import ConflictError, InvalidRangeError, NotFoundError, PersistenceError
from .conflict_validator import ConflictDomains, ScheduleWindow, ValidationResult, validate_schedule
from .range_expander import expand
from .repository import InsertOutcome, ScheduleRepository, SlotRepository
from .schemas import BulkSlotRequest, ScheduleCreate, ScheduleUpdate, SlotCreate, SlotUpdate
from .time_calculator import (
    day_of_week_index,
    iter_dates,
    normalize_time,
    parse_calendar_date,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)


def _notify_safely(
    db: Session, notify: Callable[..., NotificationDispatch], *args
) -> NotificationDispatch:
    """The record is already committed; a notification failure is logged, not raised"""
    try:
        return notify(db, *args)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to create notifications via {notify.__name__}: {e}")
        return NotificationDispatch()


def serialize_validation(result: ValidationResult) -> dict:
    return {
        "isValid": result.is_valid,
        "message": result.message,
        "conflicts": [
            {
                "id": c.id,
                "dayOfWeek": c.day_of_week,
                "startTime": c.start_time,
                "endTime": c.end_time,
                "category": c.category,
                "title": c.title,
            }
            for c in result.conflicts
        ],
        "suggestions": result.suggestions,
        "graceMinutes": result.grace_minutes,
    }


@dataclass
class BulkSlotResult:
    created_slots: list[str] = field(default_factory=list)
    skipped_slots: list[str] = field(default_factory=list)
    error_slots: list[str] = field(default_factory=list)
    created_dates: list[date] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "created": len(self.created_slots),
            "skipped": len(self.skipped_slots),
            "errors": len(self.error_slots),
            "details": {
                "createdSlots": self.created_slots,
                "skippedSlots": self.skipped_slots,
                "errorSlots": self.error_slots,
            },
        }


class SlotService:
    """Service layer for bookable time slots"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()

    def list_slots(
        self,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        available_only: bool = False,
    ) -> list[TimeSlot]:
        return self.repo.find_by_filter(
            self.db,
            category=category,
            start_date=parse_calendar_date(start_date) if start_date else None,
            end_date=parse_calendar_date(end_date) if end_date else None,
            available_only=available_only,
        )

    def create_slot(self, data: SlotCreate) -> TimeSlot:
        slot = TimeSlot(
            date=parse_calendar_date(data.date),
            time=normalize_time(data.time),
            category=data.category,
            duration_minutes=data.durationMinutes,
            price=data.price,
            is_available=True,
            is_booked=False,
        )
        label = f"{slot.date.isoformat()} {slot.time}"

        if self.repo.insert_if_absent(self.db, slot) is InsertOutcome.SKIPPED:
            raise ConflictError(f"A {data.category} slot already exists for {label}")

        logger.info(f"✅ Created {data.category} slot {label}")
        return slot

    def _write_slot(
        self,
        result: BulkSlotResult,
        slot_date: date,
        time: str,
        category: str,
        duration_minutes: int,
        price: Optional[float],
        skip_existing: bool,
    ) -> None:
        """Write one candidate, recording it as created, skipped or failed"""
        label = f"{slot_date.isoformat()} {time}"
        try:
            if skip_existing and self.repo.exists(self.db, slot_date, time, category):
                result.skipped_slots.append(label)
                return

            slot = TimeSlot(
                date=slot_date,
                time=time,
                category=category,
                duration_minutes=duration_minutes,
                price=price,
                is_available=True,
                is_booked=False,
            )
            outcome = self.repo.insert_if_absent(self.db, slot)
        except (PersistenceError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error(f"❌ Error creating slot {label}: {e}")
            result.error_slots.append(label)
            return

        if outcome is InsertOutcome.INSERTED:
            result.created_slots.append(label)
            result.created_dates.append(slot_date)
        else:
            result.skipped_slots.append(label)

    def _announce(self, category: str, result: BulkSlotResult) -> NotificationDispatch:
        logger.info(
            f"✅ Slot creation finished: created={len(result.created_slots)}, "
            f"skipped={len(result.skipped_slots)}, errors={len(result.error_slots)}"
        )
        if not result.created_dates:
            return NotificationDispatch()
        return _notify_safely(
            self.db,
            notify_slots_published,
            category,
            len(result.created_dates),
            min(result.created_dates).isoformat(),
            max(result.created_dates).isoformat(),
        )

    def create_bulk(self, data: BulkSlotRequest) -> tuple[BulkSlotResult, NotificationDispatch]:
        """
        Expand the range and write one slot per candidate.

        Input errors abort before anything is written. After that every
        candidate is independent: duplicates are skipped, write failures are
        counted, and the loop always runs to the end.
        """
        candidates = expand(data.startDate, data.endDate, data.timesOfDay, data.skipWeekends)
        logger.info(
            f"🚀 Creating up to {len(candidates)} {data.category} slots "
            f"({data.startDate} → {data.endDate}, times: {', '.join(data.timesOfDay)})"
        )

        result = BulkSlotResult()
        for candidate in candidates:
            self._write_slot(
                result,
                candidate.date,
                candidate.time,
                data.category,
                data.durationMinutes,
                data.price,
                data.skipExisting,
            )
        return result, self._announce(data.category, result)

    def generate_from_schedules(
        self,
        category: str,
        start_date: str,
        end_date: str,
        price: Optional[float] = None,
    ) -> tuple[BulkSlotResult, NotificationDispatch]:
        """
        Materialize the category's active weekly schedules as dated slots.

        Every day in the range gets one slot per active schedule on that
        weekday, starting at the schedule's start time and lasting as long as
        the schedule. Existing slots are skipped, so reruns are safe.
        """
        start = parse_calendar_date(start_date)
        end = parse_calendar_date(end_date)
        if end < start:
            raise InvalidRangeError(
                f"endDate ({end.isoformat()}) must be on or after startDate ({start.isoformat()})"
            )

        by_day: dict[int, list[RecurringSchedule]] = defaultdict(list)
        for schedule in ScheduleRepository.find_by_filter(
            self.db, categories={category}, active_only=True
        ):
            by_day[schedule.day_of_week].append(schedule)

        logger.info(
            f"🔁 Generating {category} slots from {sum(len(s) for s in by_day.values())} "
            f"active schedules ({start.isoformat()} → {end.isoformat()})"
        )

        result = BulkSlotResult()
        for day in iter_dates(start, end):
            for schedule in by_day.get(day_of_week_index(day), []):
                self._write_slot(
                    result,
                    day,
                    schedule.start_time,
                    category,
                    parse_time_of_day(schedule.end_time) - parse_time_of_day(schedule.start_time),
                    price,
                    skip_existing=True,
                )
        return result, self._announce(category, result)

    def update_slot(self, slot_id: int, data: SlotUpdate) -> TimeSlot:
        patch = {
            "date": parse_calendar_date(data.date) if data.date is not None else None,
            "time": normalize_time(data.time) if data.time is not None else None,
            "category": data.category,
            "duration_minutes": data.durationMinutes,
            "price": data.price,
            "is_available": data.isAvailable,
        }
        return self.repo.update_by_id(self.db, slot_id, **patch)

    def delete_slot(self, slot_id: int) -> dict:
        self.repo.delete_by_id(self.db, slot_id)
        logger.info(f"🗑️ Deleted slot {slot_id}")
        return {"message": "Slot deleted"}

    def release_slot(self, slot_id: int) -> TimeSlot:
        slot = self.repo.release(self.db, slot_id)
        logger.info(f"🔓 Released slot {slot_id}")
        return slot

    def clean_unbooked_slots(
        self, category: Optional[str] = None, before: Optional[str] = None
    ) -> dict:
        deleted, booked_kept = self.repo.delete_unbooked(
            self.db, category=category, before=parse_calendar_date(before) if before else None
        )
        logger.info(f"🗑️ Cleaned {deleted} unbooked slots ({booked_kept} booked slots kept)")
        return {"deletedCount": deleted, "bookedKept": booked_kept}


class ScheduleService:
    """Service layer for recurring weekly schedules"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()
        self.domains = ConflictDomains(CONFLICT_DOMAINS)
        self.operating_window = (
            parse_time_of_day(SCHEDULE_DAY_START),
            parse_time_of_day(SCHEDULE_DAY_END),
        )

    def list_schedules(
        self,
        day_of_week: Optional[int] = None,
        category: Optional[str] = None,
        active_only: bool = False,
    ) -> list[RecurringSchedule]:
        return self.repo.find_by_filter(
            self.db,
            day_of_week=day_of_week,
            categories={category} if category else None,
            active_only=active_only,
        )

    def get_schedule(self, schedule_id: int) -> RecurringSchedule:
        schedule = self.repo.get_by_id(self.db, schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def validate(
        self,
        day_of_week: int,
        start_time: str,
        end_time: str,
        category: str,
        grace_minutes: Optional[int] = None,
        exclude_id: Optional[int] = None,
        title: Optional[str] = None,
    ) -> ValidationResult:
        """Check a proposal against the active schedules of its conflict domain on that day"""
        proposed = ScheduleWindow.from_times(day_of_week, start_time, end_time, category, title=title)
        grace = DEFAULT_GRACE_MINUTES if grace_minutes is None else grace_minutes

        existing = self.repo.find_by_filter(
            self.db,
            day_of_week=day_of_week,
            categories=self.domains.peers(category),
            active_only=True,
            exclude_id=exclude_id,
        )
        windows = [
            ScheduleWindow.from_times(
                s.day_of_week, s.start_time, s.end_time, s.category, id=s.id, title=s.title
            )
            for s in existing
        ]

        result = validate_schedule(
            proposed,
            windows,
            grace,
            self.domains,
            operating_window=self.operating_window,
            max_suggestions=MAX_SCHEDULE_SUGGESTIONS,
        )
        logger.info(
            f"🔍 Validated {category} on day {day_of_week} {start_time}-{end_time}: "
            f"valid={result.is_valid}, conflicts={len(result.conflicts)}"
        )
        return result

    def _enforce(self, result: ValidationResult, allow_conflicts: bool) -> None:
        if result.is_valid:
            return
        if not allow_conflicts:
            raise ConflictError(result.message, payload=serialize_validation(result))
        logger.warning(f"⚠️ Saving schedule despite conflicts (override): {result.message}")

    def create_schedule(
        self, data: ScheduleCreate
    ) -> tuple[RecurringSchedule, NotificationDispatch]:
        window = ScheduleWindow.from_times(data.dayOfWeek, data.startTime, data.endTime, data.category)

        # Inactive schedules never block others, so they are not checked either
        if data.isActive:
            result = self.validate(
                data.dayOfWeek,
                data.startTime,
                data.endTime,
                data.category,
                grace_minutes=data.graceMinutes,
                title=data.title,
            )
            self._enforce(result, data.allowConflicts)

        schedule = self.repo.create(
            self.db,
            day_of_week=data.dayOfWeek,
            start_time=window.start_time,
            end_time=window.end_time,
            category=data.category,
            title=data.title,
            max_participants=data.maxParticipants,
            is_active=data.isActive,
        )
        logger.info(f"✅ Created schedule {schedule.id} ({schedule.category})")

        dispatch = NotificationDispatch()
        if schedule.is_active:
            dispatch = _notify_safely(self.db, notify_schedule_published, schedule)
        return schedule, dispatch

    def update_schedule(self, schedule_id: int, data: ScheduleUpdate) -> RecurringSchedule:
        schedule = self.get_schedule(schedule_id)

        day_of_week = data.dayOfWeek if data.dayOfWeek is not None else schedule.day_of_week
        start_time = data.startTime if data.startTime is not None else schedule.start_time
        end_time = data.endTime if data.endTime is not None else schedule.end_time
        category = data.category if data.category is not None else schedule.category
        is_active = data.isActive if data.isActive is not None else schedule.is_active

        window = ScheduleWindow.from_times(day_of_week, start_time, end_time, category)

        if is_active:
            result = self.validate(
                day_of_week,
                start_time,
                end_time,
                category,
                grace_minutes=data.graceMinutes,
                exclude_id=schedule_id,
                title=data.title or schedule.title,
            )
            self._enforce(result, data.allowConflicts)

        updated = self.repo.update_by_id(
            self.db,
            schedule_id,
            day_of_week=day_of_week,
            start_time=window.start_time,
            end_time=window.end_time,
            category=category,
            title=data.title,
            max_participants=data.maxParticipants,
            is_active=is_active,
        )
        logger.info(f"✅ Updated schedule {schedule_id}")
        return updated

    def delete_schedule(self, schedule_id: int) -> dict:
        self.repo.delete_by_id(self.db, schedule_id)
        logger.info(f"🗑️ Deleted schedule {schedule_id}")
        return {"message": "Schedule deleted"}
