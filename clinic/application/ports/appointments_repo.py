from collections import Counter
from dataclasses import dataclass
from typing import Any, ContextManager, Dict, Iterable, List, Optional, Protocol
from datetime import datetime, date


@dataclass
class PatientDto:
    id: str
    user_id: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    has_completed_medical_history: bool


@dataclass
class AppointmentDto:
    id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    appointment_time: str
    status: str
    symptoms: str
    general_notes: Optional[str]
    payment_status: str
    approved_at: Optional[datetime]
    approved_by: Optional[str]
    declined_at: Optional[datetime]
    declined_by: Optional[str]
    decline_reason: Optional[str]
    cancellation_reason: Optional[str]
    cancelled_at: Optional[datetime]
    cancelled_by: Optional[str]
    original_appointment_date: Optional[date]
    original_appointment_time: Optional[str]
    rescheduled_by: Optional[str]
    rescheduled_at: Optional[datetime]
    reschedule_reason: Optional[str]
    version: int
    created_at: datetime
    updated_at: datetime


class AppointmentsRepository(Protocol):
    def transaction(self) -> ContextManager:
        ...

    def get_patient_by_user(self, user_id: str) -> Optional[PatientDto]:
        ...

    def get_patients(self, patient_ids: Iterable[str]) -> Dict[str, PatientDto]:
        ...

    def occupancy(self, doctor_id: str, appointment_date: date, exclude_appointment_id: Optional[str] = None) -> Counter:
        """Count non-terminal appointments per start time."""
        ...

    def create(self, patient_id: str, doctor_id: str, appointment_date: date, appointment_time: str,
               symptoms: str, general_notes: Optional[str]) -> AppointmentDto:
        ...

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def list_appointments(self, doctor_id: Optional[str] = None, patient_id: Optional[str] = None) -> List[AppointmentDto]:
        ...

    def apply_changes(self, appointment_id: str, expected_version: int, changes: Dict[str, Any]) -> AppointmentDto:
        """Write changes only if the row is still at expected_version, else raise StaleUpdateError."""
        ...
