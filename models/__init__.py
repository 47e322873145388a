from models.time_slot import (
    SlotType,
    TimeSlot,
    TimeSlotCreate,
    TimeSlotUpdate,
    TimetableFilter,
    WeekDay,
)

__all__ = [
    "SlotType",
    "TimeSlot",
    "TimeSlotCreate",
    "TimeSlotUpdate",
    "TimetableFilter",
    "WeekDay",
]
