# clinic/db/models/clinical/payment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime, timezone
import uuid

class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", unique=True, index=True)
    amount: float
    method: str = Field(default="CASH", max_length=12)
    status: str = Field(default="PENDING", max_length=10)
    paid_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
