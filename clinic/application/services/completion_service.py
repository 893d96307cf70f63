from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, List, Optional
import logging

from ...exceptions import ConflictError, NotFoundError, PermissionDeniedError, TransitionError, ValidationError
from ...utils import local_now, parse_date
from ..ports.appointments_repo import AppointmentDto, AppointmentsRepository
from ..ports.audit_logger import AuditLogger
from ..ports.prescriptions_repo import (
    MedicationDto,
    PaymentDto,
    PaymentsRepository,
    PrescriptionDto,
    PrescriptionsRepository,
)
from .appointment_lifecycle import (
    Actor,
    AppointmentStatus,
    PaymentStatus,
    Role,
    Transition,
    check_transition,
    ensure_role_can,
)
from .appointment_views import load_visible

logger = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI_MANUAL = "UPI_MANUAL"
    UPI_QR = "UPI_QR"
    ONLINE = "ONLINE"


MEDICATION_REQUIRED_FIELDS = ("medicine_name", "dosage", "frequency", "duration")


@dataclass
class CompletionResult:
    appointment: AppointmentDto
    prescription: PrescriptionDto
    payment: PaymentDto


def _payment_method(value: Optional[str], default: str) -> str:
    try:
        return PaymentMethod((value or default).upper()).value
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Invalid payment method. Must be one of: {allowed}", field="method")


def _amount(value: Optional[float], field_name: str) -> float:
    if value is None or value <= 0:
        raise ValidationError("Amount must be positive", field=field_name)
    return float(value)


def validate_medications(medications: List[MedicationDto]) -> List[MedicationDto]:
    if not medications:
        raise ValidationError("At least one medication is required", field="medications")
    cleaned = []
    for index, med in enumerate(medications):
        for name in MEDICATION_REQUIRED_FIELDS:
            if not (getattr(med, name) or "").strip():
                raise ValidationError(f"Medication {index + 1}: {name.replace('_', ' ')} is required",
                                      field=f"medications.{index}.{name}")
        cleaned.append(MedicationDto(
            medicine_name=med.medicine_name.strip(),
            dosage=med.dosage.strip(),
            frequency=med.frequency.strip(),
            duration=med.duration.strip(),
            instructions=(med.instructions or "").strip() or None,
        ))
    return cleaned


@dataclass
class CompletionService:
    """Marks a visit done together with its prescription and a pending payment."""
    appointments_repo: AppointmentsRepository
    prescriptions_repo: PrescriptionsRepository
    payments_repo: PaymentsRepository
    audit: AuditLogger
    clock: Callable[[], datetime] = field(default=local_now)
    default_fee: float = 500.0
    default_method: str = PaymentMethod.CASH.value

    def complete(self, actor: Actor, appointment_id: str, diagnosis: Optional[str], notes: Optional[str],
                 follow_up_date: Optional[str], medications: List[MedicationDto],
                 attachment_url: Optional[str] = None, consultation_fee: Optional[float] = None,
                 payment_method: Optional[str] = None) -> CompletionResult:
        ensure_role_can(actor.role, Transition.COMPLETE)

        with self.appointments_repo.transaction():
            appt = load_visible(self.appointments_repo, actor, appointment_id)
            rule = check_transition(actor.role, Transition.COMPLETE, AppointmentStatus(appt.status))

            # Everything is validated before the first write
            diagnosis = (diagnosis or "").strip()
            if not diagnosis:
                raise ValidationError("Diagnosis is required", field="diagnosis")
            if not follow_up_date:
                raise ValidationError("Follow-up date is required", field="followUpDate")
            follow_up: date = parse_date(follow_up_date, "followUpDate")
            if follow_up < appt.appointment_date:
                raise ValidationError("Follow-up date cannot be before the appointment", field="followUpDate")
            meds = validate_medications(medications)
            fee = _amount(consultation_fee if consultation_fee is not None else self.default_fee, "consultationFee")
            method = _payment_method(payment_method, self.default_method)

            if self.prescriptions_repo.get_for_appointment(appt.id) is not None:
                raise ConflictError("A prescription already exists for this appointment")

            prescription = self.prescriptions_repo.create(
                appointment_id=appt.id,
                diagnosis=diagnosis,
                notes=(notes or "").strip() or None,
                follow_up_date=follow_up,
                attachment_url=attachment_url,
                medications=meds,
            )
            payment = self.payments_repo.create(appt.id, fee, method, None)
            updated = self.appointments_repo.apply_changes(appt.id, appt.version, {
                "status": rule.target.value,
                "payment_status": PaymentStatus.PENDING.value,
            })

        logger.info(f"Appointment {appt.id} completed with prescription {prescription.id}")
        self.audit.log("appointment.complete", actor.user_id, appt.id,
                       details={"from": appt.status, "prescription_id": prescription.id, "amount": fee})
        return CompletionResult(appointment=updated, prescription=prescription, payment=payment)

    def record_payment(self, actor: Actor, appointment_id: str, amount: Optional[float], method: Optional[str],
                       is_paid: bool, notes: Optional[str] = None) -> PaymentDto:
        """Payment received / not paid yet, decoupled from completion."""
        if actor.role not in (Role.DOCTOR, Role.ADMIN):
            raise PermissionDeniedError("Only doctors and admins can record payments")
        amount = _amount(amount, "amount")
        method = _payment_method(method, self.default_method)

        with self.appointments_repo.transaction():
            appt = load_visible(self.appointments_repo, actor, appointment_id)
            if appt.status != AppointmentStatus.COMPLETED.value:
                raise TransitionError("Payments can only be recorded for completed appointments")
            existing = self.payments_repo.get_for_appointment(appt.id)
            if existing is None:
                raise NotFoundError("No payment record for this appointment")

            status = PaymentStatus.PAID if is_paid else PaymentStatus.PENDING
            paid_at = None
            if is_paid:
                paid_at = existing.paid_at or self.clock()
            payment = self.payments_repo.update(
                appointment_id=appt.id,
                amount=amount,
                method=method,
                status=status.value,
                paid_at=paid_at,
                notes=(notes or "").strip() or existing.notes,
            )
            self.appointments_repo.apply_changes(appt.id, appt.version, {"payment_status": status.value})

        self.audit.log("payment.recorded", actor.user_id, appt.id, details={"status": status.value, "amount": amount})
        return payment
