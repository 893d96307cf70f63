"""Role-scoped read views over appointments."""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ...exceptions import NotFoundError
from ..ports.appointments_repo import AppointmentDto, AppointmentsRepository, PatientDto
from ..ports.prescriptions_repo import PaymentDto, PaymentsRepository, PrescriptionDto, PrescriptionsRepository
from .appointment_lifecycle import Actor, AppointmentStatus, Role, allowed_transitions

# Actionable items first
STATUS_PRIORITY = {
    AppointmentStatus.PENDING.value: 0,
    AppointmentStatus.SCHEDULED.value: 1,
    AppointmentStatus.RESCHEDULED.value: 2,
    AppointmentStatus.COMPLETED.value: 3,
    AppointmentStatus.CANCELLED.value: 4,
    AppointmentStatus.DECLINED.value: 5,
}


def sort_appointments(appointments: Iterable[AppointmentDto]) -> List[AppointmentDto]:
    """Status priority, then newest date (and time) first within a status."""
    newest_first = sorted(appointments, key=lambda a: (a.appointment_date, a.appointment_time), reverse=True)
    return sorted(newest_first, key=lambda a: STATUS_PRIORITY.get(a.status, len(STATUS_PRIORITY)))


def scope_for(repo: AppointmentsRepository, actor: Actor) -> Optional[Tuple[Optional[str], Optional[str]]]:
    """(doctor_id, patient_id) filters for the actor; None when they can see nothing."""
    if actor.role == Role.ADMIN:
        return None, None
    if actor.role == Role.DOCTOR:
        return actor.user_id, None
    patient = repo.get_patient_by_user(actor.user_id)
    if patient is None:
        return None
    return None, patient.id


def load_visible(repo: AppointmentsRepository, actor: Actor, appointment_id: str) -> AppointmentDto:
    """Fetch an appointment the actor may see, otherwise NotFoundError."""
    appt = repo.get_by_id(appointment_id)
    if appt is None:
        raise NotFoundError("Appointment not found")
    scope = scope_for(repo, actor)
    if scope is None:
        raise NotFoundError("Appointment not found")
    doctor_id, patient_id = scope
    if doctor_id is not None and appt.doctor_id != doctor_id:
        raise NotFoundError("Appointment not found")
    if patient_id is not None and appt.patient_id != patient_id:
        raise NotFoundError("Appointment not found")
    return appt


@dataclass
class AppointmentView:
    appointment: AppointmentDto
    patient: Optional[PatientDto] = None
    allowed_actions: List[str] = field(default_factory=list)


@dataclass
class AppointmentDetail(AppointmentView):
    prescription: Optional[PrescriptionDto] = None
    payment: Optional[PaymentDto] = None


@dataclass
class AppointmentViews:
    repo: AppointmentsRepository
    prescriptions_repo: PrescriptionsRepository
    payments_repo: PaymentsRepository

    def _actions(self, actor: Actor, appt: AppointmentDto) -> List[str]:
        return [t.value for t in allowed_transitions(actor.role, AppointmentStatus(appt.status))]

    def list_for_actor(self, actor: Actor) -> List[AppointmentView]:
        scope = scope_for(self.repo, actor)
        if scope is None:
            return []
        doctor_id, patient_id = scope
        appts = sort_appointments(self.repo.list_appointments(doctor_id=doctor_id, patient_id=patient_id))

        # Staff get patient contact details alongside each row
        patients = {}
        if actor.role in (Role.DOCTOR, Role.ADMIN):
            patients = self.repo.get_patients({a.patient_id for a in appts})
        return [
            AppointmentView(appointment=a, patient=patients.get(a.patient_id), allowed_actions=self._actions(actor, a))
            for a in appts
        ]

    def detail(self, actor: Actor, appointment_id: str) -> AppointmentDetail:
        appt = load_visible(self.repo, actor, appointment_id)
        patient = self.repo.get_patients([appt.patient_id]).get(appt.patient_id)
        return AppointmentDetail(
            appointment=appt,
            patient=patient,
            allowed_actions=self._actions(actor, appt),
            prescription=self.prescriptions_repo.get_for_appointment(appt.id),
            payment=self.payments_repo.get_for_appointment(appt.id),
        )

    def prescriptions_for_actor(self, actor: Actor) -> List[PrescriptionDto]:
        scope = scope_for(self.repo, actor)
        if scope is None:
            return []
        doctor_id, patient_id = scope
        appts = self.repo.list_appointments(doctor_id=doctor_id, patient_id=patient_id)
        prescriptions = self.prescriptions_repo.list_for_appointments([a.id for a in appts])
        return sorted(prescriptions, key=lambda p: p.created_at, reverse=True)
