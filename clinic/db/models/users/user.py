# clinic/db/models/users/user.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime, timezone
import uuid

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=100)
    email: Optional[str] = Field(max_length=100, default=None, index=True)
    phone: Optional[str] = Field(max_length=20, default=None)
    role: str = Field(default="PATIENT", max_length=10, index=True)  # PATIENT | DOCTOR | ADMIN
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))
