# clinic/db/models/clinical/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import DateTime
from datetime import datetime, date, timezone
import uuid

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    patient_id: str = Field(foreign_key="patient_profiles.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    appointment_date: date = Field(index=True)
    appointment_time: str = Field(max_length=5)
    status: str = Field(default="PENDING", max_length=12, index=True)
    symptoms: str
    general_notes: Optional[str] = Field(default=None)
    payment_status: str = Field(default="PENDING", max_length=10)

    # Approval / decline
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    approved_by: Optional[str] = Field(default=None)
    declined_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    declined_by: Optional[str] = Field(default=None)
    decline_reason: Optional[str] = Field(default=None)

    # Cancellation
    cancellation_reason: Optional[str] = Field(default=None)
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    cancelled_by: Optional[str] = Field(default=None)

    # Rescheduling, original_* are written once
    original_appointment_date: Optional[date] = Field(default=None)
    original_appointment_time: Optional[str] = Field(default=None, max_length=5)
    rescheduled_by: Optional[str] = Field(default=None)
    rescheduled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    reschedule_reason: Optional[str] = Field(default=None)

    version: int = Field(default=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))

    # Relationships
    patient: Optional["PatientProfile"] = Relationship(back_populates="appointments")
