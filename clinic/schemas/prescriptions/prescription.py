# clinic/schemas/prescriptions/prescription.py
from pydantic import Field
from typing import List, Optional
from datetime import date, datetime

from ..common.common import CamelModel


class MedicationIn(CamelModel):
    # Left optional so missing fields are reported per medication by the service
    medicine_name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class PrescriptionCreate(CamelModel):
    appointment_id: str
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[str] = None
    attachment_url: Optional[str] = None
    medications: List[MedicationIn] = Field(default_factory=list)
    consultation_fee: Optional[float] = None
    payment_method: Optional[str] = None


class MedicationResponse(CamelModel):
    id: Optional[str] = None
    medicine_name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None


class PrescriptionResponse(CamelModel):
    id: str
    appointment_id: str
    diagnosis: str
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    attachment_url: Optional[str] = None
    created_at: datetime
    medications: List[MedicationResponse] = Field(default_factory=list)


class PaymentRequest(CamelModel):
    appointment_id: str
    amount: Optional[float] = None
    method: Optional[str] = None
    is_paid: bool = False
    notes: Optional[str] = None


class PaymentResponse(CamelModel):
    id: str
    appointment_id: str
    amount: float
    method: str
    status: str
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
