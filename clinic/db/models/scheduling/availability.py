# clinic/db/models/scheduling/availability.py
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint
from sqlalchemy import DateTime
from datetime import datetime, date, timezone
import uuid

class Availability(SQLModel, table=True):
    """A doctor's working window for one calendar date."""
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint("doctor_id", "schedule_date", name="uq_availability_doctor_date"),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    schedule_date: date = Field(index=True)
    start_time: str = Field(max_length=5)  # HH:MM
    end_time: str = Field(max_length=5)  # HH:MM
    break_start_time: Optional[str] = Field(default=None, max_length=5)
    break_end_time: Optional[str] = Field(default=None, max_length=5)
    slot_duration_minutes: int = Field(default=30)
    max_concurrent_per_slot: int = Field(default=1)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
