"""
Scheduling Domain

Recurring weekly schedules and concrete bookable time slots.

Structure:
- time_calculator.py    # HH:MM <-> minutes, date parsing, interval predicate
- range_expander.py     # Date range x times of day -> slot candidates
- conflict_validator.py # Grace-period overlap checks and suggested start times
- repository.py         # Slot and schedule database queries
- service.py            # SlotService / ScheduleService business logic
- router_schedules.py   # /schedules endpoints
- router_slots.py       # /slots endpoints
"""

from .router_schedules import router as schedules_router
from .router_slots import router as slots_router

__all__ = ["schedules_router", "slots_router"]
