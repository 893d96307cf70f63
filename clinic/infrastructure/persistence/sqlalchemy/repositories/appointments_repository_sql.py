from collections import Counter
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import func, update
from sqlmodel import Session, select

from .....database import transaction
from .....utils import utc_now
from .....db.models import Appointment, PatientProfile, User
from .....exceptions import StaleUpdateError
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    PatientDto,
)
from .....application.services.appointment_lifecycle import ACTIVE_STATUSES

_ACTIVE = [s.value for s in ACTIVE_STATUSES]


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def transaction(self):
        return transaction(self.session)

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            appointment_date=a.appointment_date,
            appointment_time=a.appointment_time,
            status=a.status,
            symptoms=a.symptoms,
            general_notes=a.general_notes,
            payment_status=a.payment_status,
            approved_at=a.approved_at,
            approved_by=a.approved_by,
            declined_at=a.declined_at,
            declined_by=a.declined_by,
            decline_reason=a.decline_reason,
            cancellation_reason=a.cancellation_reason,
            cancelled_at=a.cancelled_at,
            cancelled_by=a.cancelled_by,
            original_appointment_date=a.original_appointment_date,
            original_appointment_time=a.original_appointment_time,
            rescheduled_by=a.rescheduled_by,
            rescheduled_at=a.rescheduled_at,
            reschedule_reason=a.reschedule_reason,
            version=a.version,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _patient_to_dto(self, p: PatientProfile, u: User) -> PatientDto:
        return PatientDto(
            id=p.id,
            user_id=p.user_id,
            name=u.name,
            email=u.email,
            phone=u.phone,
            has_completed_medical_history=p.has_completed_medical_history,
        )

    def get_patient_by_user(self, user_id: str) -> Optional[PatientDto]:
        row = self.session.exec(
            select(PatientProfile, User)
            .join(User, User.id == PatientProfile.user_id)
            .where(PatientProfile.user_id == user_id)
        ).first()
        return self._patient_to_dto(*row) if row else None

    def get_patients(self, patient_ids: Iterable[str]) -> Dict[str, PatientDto]:
        ids = list(patient_ids)
        if not ids:
            return {}
        rows = self.session.exec(
            select(PatientProfile, User)
            .join(User, User.id == PatientProfile.user_id)
            .where(PatientProfile.id.in_(ids))
        ).all()
        return {p.id: self._patient_to_dto(p, u) for p, u in rows}

    def occupancy(self, doctor_id: str, appointment_date: date, exclude_appointment_id: Optional[str] = None) -> Counter:
        stmt = (
            select(Appointment.appointment_time, func.count(Appointment.id))
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.status.in_(_ACTIVE))
        )
        if exclude_appointment_id is not None:
            stmt = stmt.where(Appointment.id != exclude_appointment_id)
        rows = self.session.exec(stmt.group_by(Appointment.appointment_time)).all()
        return Counter({time: count for time, count in rows})

    def create(self, patient_id: str, doctor_id: str, appointment_date: date, appointment_time: str,
               symptoms: str, general_notes: Optional[str]) -> AppointmentDto:
        appt = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            symptoms=symptoms,
            general_notes=general_notes,
            status="PENDING",
            payment_status="PENDING",
        )
        self.session.add(appt)
        self.session.flush()
        return self._appt_to_dto(appt)

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        a = self.session.get(Appointment, appointment_id)
        return self._appt_to_dto(a) if a else None

    def list_appointments(self, doctor_id: Optional[str] = None, patient_id: Optional[str] = None) -> List[AppointmentDto]:
        stmt = select(Appointment)
        if doctor_id is not None:
            stmt = stmt.where(Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            stmt = stmt.where(Appointment.patient_id == patient_id)
        rows = self.session.exec(
            stmt.order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def apply_changes(self, appointment_id: str, expected_version: int, changes: Dict[str, Any]) -> AppointmentDto:
        table = Appointment.__table__
        values = dict(changes)
        values["version"] = expected_version + 1
        values["updated_at"] = utc_now()

        # Pending ORM state must reach the database before the raw UPDATE
        self.session.flush()
        result = self.session.connection().execute(
            update(table)
            .where(table.c.id == appointment_id)
            .where(table.c.version == expected_version)
            .values(**values)
        )
        if result.rowcount != 1:
            raise StaleUpdateError()
        self.session.expire_all()
        return self.get_by_id(appointment_id)
