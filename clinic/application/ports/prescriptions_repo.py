from dataclasses import dataclass, field
from typing import ContextManager, Iterable, List, Optional, Protocol
from datetime import datetime, date


@dataclass
class MedicationDto:
    medicine_name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None
    id: Optional[str] = None


@dataclass
class PrescriptionDto:
    id: str
    appointment_id: str
    diagnosis: str
    notes: Optional[str]
    follow_up_date: Optional[date]
    attachment_url: Optional[str]
    created_at: datetime
    medications: List[MedicationDto] = field(default_factory=list)


@dataclass
class PaymentDto:
    id: str
    appointment_id: str
    amount: float
    method: str
    status: str
    paid_at: Optional[datetime]
    notes: Optional[str]
    created_at: datetime


class PrescriptionsRepository(Protocol):
    def transaction(self) -> ContextManager:
        ...

    def get_for_appointment(self, appointment_id: str) -> Optional[PrescriptionDto]:
        ...

    def list_for_appointments(self, appointment_ids: Iterable[str]) -> List[PrescriptionDto]:
        ...

    def create(self, appointment_id: str, diagnosis: str, notes: Optional[str], follow_up_date: Optional[date],
               attachment_url: Optional[str], medications: List[MedicationDto]) -> PrescriptionDto:
        ...


class PaymentsRepository(Protocol):
    def get_for_appointment(self, appointment_id: str) -> Optional[PaymentDto]:
        ...

    def create(self, appointment_id: str, amount: float, method: str, notes: Optional[str]) -> PaymentDto:
        ...

    def update(self, appointment_id: str, amount: float, method: str, status: str,
               paid_at: Optional[datetime], notes: Optional[str]) -> PaymentDto:
        ...
