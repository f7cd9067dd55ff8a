"""Slot router - FastAPI endpoints for bookable time slots"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import TimeSlot, User
from ...services.notification_service import deliver_emails
from .schemas import (
    BulkSlotRequest,
    BulkSlotResponse,
    CleanSlotsResponse,
    SlotCreate,
    SlotGenerateRequest,
    SlotResponse,
    SlotUpdate,
)
from .service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slots", tags=["Slots"])


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    """Dependency injection for SlotService"""
    return SlotService(db)


def to_response(slot: TimeSlot) -> SlotResponse:
    return SlotResponse(
        id=slot.id,
        date=slot.date,
        time=slot.time,
        durationMinutes=slot.duration_minutes,
        category=slot.category,
        price=slot.price,
        isAvailable=slot.is_available,
        isBooked=slot.is_booked,
        bookedBy=slot.booked_by,
        createdAt=slot.created_at,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[SlotResponse])
async def list_slots(
    category: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    availableOnly: bool = Query(False),
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """List slots ordered by date and time"""
    slots = service.list_slots(category, startDate, endDate, availableOnly)
    return [to_response(s) for s in slots]


@router.post("", response_model=SlotResponse, status_code=201)
async def create_slot(
    data: SlotCreate,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Create a single slot; 409 if one already exists for the same date, time and category"""
    return to_response(service.create_slot(data))


@router.patch("/{slot_id}", response_model=SlotResponse)
async def update_slot(
    slot_id: int,
    data: SlotUpdate,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Edit an unbooked slot"""
    return to_response(service.update_slot(slot_id, data))


@router.delete("/{slot_id}")
async def delete_slot(
    slot_id: int,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Delete an unbooked slot; booked slots answer 409"""
    return service.delete_slot(slot_id)


@router.post("/{slot_id}/release", response_model=SlotResponse)
async def release_slot(
    slot_id: int,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Clear a slot's booking so it can be edited, deleted or booked again"""
    return to_response(service.release_slot(slot_id))


# ============================================================================
# BULK OPERATIONS
# ============================================================================


@router.post("/bulk", response_model=BulkSlotResponse)
async def create_slots_bulk(
    data: BulkSlotRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Create one slot per (date, time) in the range; duplicates are skipped, failures counted"""
    logger.info(f"📥 Bulk slot creation requested by {current_user.email}")
    result, dispatch = service.create_bulk(data)
    if dispatch.emails:
        background_tasks.add_task(deliver_emails, dispatch.emails)
    return BulkSlotResponse(**result.summary())


@router.delete("", response_model=CleanSlotsResponse)
async def clean_slots(
    category: Optional[str] = Query(None),
    before: Optional[str] = Query(None, description="Only slots dated before this day"),
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Delete every unbooked slot matching the filters; booked slots are kept"""
    return CleanSlotsResponse(**service.clean_unbooked_slots(category, before))


@router.post("/generate", response_model=BulkSlotResponse)
async def generate_slots_from_schedules(
    data: SlotGenerateRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: SlotService = Depends(get_slot_service),
):
    """Create the dated slots implied by the category's active weekly schedules"""
    logger.info(f"📥 Slot generation from schedules requested by {current_user.email}")
    result, dispatch = service.generate_from_schedules(
        data.category, data.startDate, data.endDate, data.price
    )
    if dispatch.emails:
        background_tasks.add_task(deliver_emails, dispatch.emails)
    return BulkSlotResponse(**result.summary())
