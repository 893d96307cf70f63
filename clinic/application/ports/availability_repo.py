from dataclasses import dataclass
from typing import List, Optional, Protocol, ContextManager
from datetime import datetime, date


@dataclass
class AvailabilityDto:
    id: str
    doctor_id: str
    schedule_date: date
    start_time: str
    end_time: str
    break_start_time: Optional[str]
    break_end_time: Optional[str]
    slot_duration_minutes: int
    max_concurrent_per_slot: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AvailabilityRepository(Protocol):
    def transaction(self) -> ContextManager:
        ...

    def get_for_date(self, doctor_id: str, schedule_date: date, lock: bool = False) -> Optional[AvailabilityDto]:
        ...

    def get_by_id(self, availability_id: str) -> Optional[AvailabilityDto]:
        ...

    def list_upcoming(self, from_date: date, doctor_id: Optional[str] = None) -> List[AvailabilityDto]:
        ...

    def upsert(self, doctor_id: str, schedule_date: date, start_time: str, end_time: str,
               break_start_time: Optional[str], break_end_time: Optional[str],
               slot_duration_minutes: int, max_concurrent_per_slot: int, is_active: bool) -> AvailabilityDto:
        ...

    def delete(self, availability_id: str) -> None:
        ...

    def doctor_exists(self, doctor_id: str) -> bool:
        ...
