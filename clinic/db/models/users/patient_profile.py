# clinic/db/models/users/patient_profile.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import DateTime
from datetime import datetime, date, timezone
import uuid

class PatientProfile(SQLModel, table=True):
    __tablename__ = "patient_profiles"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    date_of_birth: Optional[date] = Field(default=None)
    gender: Optional[str] = Field(default=None, max_length=10)
    blood_group: Optional[str] = Field(default=None, max_length=5)
    address: Optional[str] = Field(default=None)
    emergency_contact: Optional[str] = Field(default=None, max_length=50)
    has_completed_medical_history: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="patient")
