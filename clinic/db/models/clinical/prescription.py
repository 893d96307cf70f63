# clinic/db/models/clinical/prescription.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import DateTime
from datetime import datetime, date, timezone
import uuid

class Prescription(SQLModel, table=True):
    __tablename__ = "prescriptions"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", unique=True, index=True)
    diagnosis: str
    notes: Optional[str] = Field(default=None)
    follow_up_date: Optional[date] = Field(default=None)
    attachment_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))

    # Relationships
    medications: List["Medication"] = Relationship(back_populates="prescription")


class Medication(SQLModel, table=True):
    __tablename__ = "medications"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    prescription_id: str = Field(foreign_key="prescriptions.id", index=True)
    medicine_name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = Field(default=None)

    prescription: Optional["Prescription"] = Relationship(back_populates="medications")
