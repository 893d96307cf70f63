# clinic/schemas/schedule/schedule.py
from typing import Optional
from datetime import date, datetime

from ..common.common import CamelModel


class ScheduleRequest(CamelModel):
    schedule_date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    break_start_time: Optional[str] = None
    break_end_time: Optional[str] = None
    slot_duration_minutes: int = 30
    max_concurrent_per_slot: int = 1
    is_active: bool = True
    doctor_id: Optional[str] = None  # admins only


class ScheduleResponse(CamelModel):
    id: str
    doctor_id: str
    schedule_date: date
    start_time: str
    end_time: str
    break_start_time: Optional[str] = None
    break_end_time: Optional[str] = None
    slot_duration_minutes: int
    max_concurrent_per_slot: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
