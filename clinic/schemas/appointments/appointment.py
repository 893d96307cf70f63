# clinic/schemas/appointments/appointment.py
from pydantic import Field
from typing import List, Optional
from datetime import date, datetime

from ..common.common import CamelModel
from ..prescriptions.prescription import PaymentResponse, PrescriptionResponse


class AppointmentCreate(CamelModel):
    doctor_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    symptoms: str
    notes: Optional[str] = None


class AppointmentUpdate(CamelModel):
    status: str
    notes: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None


class ReasonRequest(CamelModel):
    reason: Optional[str] = None


class RescheduleRequest(CamelModel):
    new_date: Optional[str] = None
    new_time: Optional[str] = None
    reason: Optional[str] = None


class AvailableSlotsResponse(CamelModel):
    slots: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    reason: Optional[str] = None


class PatientSummary(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class AppointmentResponse(CamelModel):
    id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    appointment_time: str
    status: str
    symptoms: str
    general_notes: Optional[str] = None
    payment_status: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    declined_at: Optional[datetime] = None
    declined_by: Optional[str] = None
    decline_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    original_appointment_date: Optional[date] = None
    original_appointment_time: Optional[str] = None
    rescheduled_by: Optional[str] = None
    rescheduled_at: Optional[datetime] = None
    reschedule_reason: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime


class AppointmentListItem(AppointmentResponse):
    patient: Optional[PatientSummary] = None
    allowed_actions: List[str] = Field(default_factory=list)


class AppointmentDetailResponse(AppointmentListItem):
    prescription: Optional[PrescriptionResponse] = None
    payment: Optional[PaymentResponse] = None
