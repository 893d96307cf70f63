from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional
import logging

from ...exceptions import NotFoundError, PermissionDeniedError, TransitionError, ValidationError
from ...utils import local_now, parse_date
from ..ports.appointments_repo import AppointmentDto, AppointmentsRepository
from ..ports.audit_logger import AuditLogger
from ..ports.availability_repo import AvailabilityRepository
from .appointment_lifecycle import (
    Actor,
    AppointmentStatus,
    Role,
    TRANSITION_FOR_TARGET,
    Transition,
    check_transition,
    ensure_role_can,
    validate_reason,
)
from .appointment_views import load_visible
from .booking_guard import BookingGuard
from .slot_generator import SlotResult

logger = logging.getLogger(__name__)


@dataclass
class AppointmentsService:
    """Booking plus every lifecycle transition except completion."""
    repo: AppointmentsRepository
    availability_repo: AvailabilityRepository
    audit: AuditLogger
    clock: Callable[[], datetime] = field(default=local_now)
    min_reason_length: int = 10
    min_symptoms_length: int = 10

    @property
    def guard(self) -> BookingGuard:
        return BookingGuard(self.availability_repo, self.repo, clock=self.clock)

    def available_slots(self, doctor_id: str, date_str: str) -> SlotResult:
        day = parse_date(date_str, "date")
        if not doctor_id:
            raise ValidationError("doctorId is required", field="doctorId")
        if not self.availability_repo.doctor_exists(doctor_id):
            raise NotFoundError("Doctor not found")
        return self.guard.available_slots(doctor_id, day)

    def book(self, actor: Actor, doctor_id: str, date_str: str, time: str, symptoms: str,
             notes: Optional[str] = None) -> AppointmentDto:
        if actor.role != Role.PATIENT:
            raise PermissionDeniedError("Only patients can book appointments")

        day = parse_date(date_str, "date")
        symptoms = (symptoms or "").strip()
        if len(symptoms) < self.min_symptoms_length:
            raise ValidationError(
                f"Please describe your symptoms in at least {self.min_symptoms_length} characters",
                field="symptoms",
            )

        patient = self.repo.get_patient_by_user(actor.user_id)
        if patient is None:
            raise NotFoundError("Patient profile not found")
        if not patient.has_completed_medical_history:
            raise ValidationError("Please complete your medical history first", field="medicalHistory")
        if not self.availability_repo.doctor_exists(doctor_id):
            raise NotFoundError("Doctor not found")

        with self.repo.transaction():
            self.guard.ensure_bookable(doctor_id, day, time)
            appt = self.repo.create(
                patient_id=patient.id,
                doctor_id=doctor_id,
                appointment_date=day,
                appointment_time=time,
                symptoms=symptoms,
                general_notes=(notes or "").strip() or None,
            )

        logger.info(f"Appointment {appt.id} requested for {day} {time} with doctor {doctor_id}")
        self.audit.log("appointment.requested", actor.user_id, appt.id, details={"date": day.isoformat(), "time": time})
        return appt

    def _transition(self, actor: Actor, appointment_id: str, transition: Transition,
                    build_changes: Callable[[AppointmentDto, Optional[str]], Dict[str, Any]],
                    reason: Optional[str] = None) -> AppointmentDto:
        ensure_role_can(actor.role, transition)
        with self.repo.transaction():
            appt = load_visible(self.repo, actor, appointment_id)
            rule = check_transition(actor.role, transition, AppointmentStatus(appt.status))
            if rule.requires_reason:
                reason = validate_reason(reason, self.min_reason_length)
            changes = build_changes(appt, reason)
            changes["status"] = rule.target.value
            updated = self.repo.apply_changes(appt.id, appt.version, changes)

        self.audit.log(
            f"appointment.{transition.value}",
            actor.user_id,
            appointment_id,
            details={"from": appt.status, "to": updated.status},
        )
        return updated

    def approve(self, actor: Actor, appointment_id: str) -> AppointmentDto:
        now = self.clock()
        return self._transition(actor, appointment_id, Transition.APPROVE, lambda appt, _: {
            "approved_at": now,
            "approved_by": actor.user_id,
        })

    def decline(self, actor: Actor, appointment_id: str, reason: Optional[str]) -> AppointmentDto:
        now = self.clock()

        def changes(appt: AppointmentDto, cleaned: str) -> Dict[str, Any]:
            return {
                "decline_reason": cleaned,
                "declined_at": now,
                "declined_by": actor.user_id,
            }

        return self._transition(actor, appointment_id, Transition.DECLINE, changes, reason)

    def cancel(self, actor: Actor, appointment_id: str, reason: Optional[str]) -> AppointmentDto:
        now = self.clock()

        def changes(appt: AppointmentDto, cleaned: str) -> Dict[str, Any]:
            return {
                "cancellation_reason": cleaned,
                "cancelled_at": now,
                "cancelled_by": actor.user_id,
            }

        return self._transition(actor, appointment_id, Transition.CANCEL, changes, reason)

    def reschedule(self, actor: Actor, appointment_id: str, new_date: Optional[str], new_time: Optional[str],
                   reason: Optional[str] = None) -> AppointmentDto:
        ensure_role_can(actor.role, Transition.RESCHEDULE)
        if not new_date or not new_time:
            raise ValidationError("New date and time are required", field="newDate" if not new_date else "newTime")
        day = parse_date(new_date, "newDate")
        now = self.clock()

        def changes(appt: AppointmentDto, _reason: Optional[str]) -> Dict[str, Any]:
            self.guard.ensure_bookable(appt.doctor_id, day, new_time,
                                       exclude_appointment_id=appt.id, field_name="newTime")
            out = {
                "appointment_date": day,
                "appointment_time": new_time,
                "rescheduled_by": actor.user_id,
                "rescheduled_at": now,
                "reschedule_reason": (reason or "").strip() or None,
            }
            # The very first booking stays traceable through any number of moves
            if appt.original_appointment_date is None:
                out["original_appointment_date"] = appt.appointment_date
                out["original_appointment_time"] = appt.appointment_time
            return out

        return self._transition(actor, appointment_id, Transition.RESCHEDULE, changes)

    def update_status(self, actor: Actor, appointment_id: str, status: str, notes: Optional[str] = None,
                      appointment_date: Optional[str] = None, appointment_time: Optional[str] = None) -> AppointmentDto:
        """Generic PATCH: route the requested status to its transition."""
        try:
            target = AppointmentStatus((status or "").upper())
        except ValueError:
            raise ValidationError(f"Invalid status {status!r}", field="status")

        transition = TRANSITION_FOR_TARGET.get(target)
        if transition is None:
            raise TransitionError(f"Appointments cannot be moved to {target.value.lower()}")

        if transition == Transition.APPROVE:
            return self.approve(actor, appointment_id)
        if transition == Transition.DECLINE:
            return self.decline(actor, appointment_id, notes)
        if transition == Transition.CANCEL:
            return self.cancel(actor, appointment_id, notes)
        if transition == Transition.RESCHEDULE:
            return self.reschedule(actor, appointment_id, appointment_date, appointment_time, notes)

        # Completion without a prescription is never allowed
        ensure_role_can(actor.role, Transition.COMPLETE)
        appt = load_visible(self.repo, actor, appointment_id)
        check_transition(actor.role, Transition.COMPLETE, AppointmentStatus(appt.status))
        raise ValidationError("Completing an appointment requires a prescription", field="prescription")
