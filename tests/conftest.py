import copy
import os
import tempfile
from collections import Counter
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Optional

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-clinic")
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.mkdtemp(), "clinic-test.db"))
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from clinic.exceptions import StaleUpdateError
from clinic.application.ports.appointments_repo import AppointmentDto, PatientDto
from clinic.application.ports.availability_repo import AvailabilityDto
from clinic.application.ports.prescriptions_repo import MedicationDto, PaymentDto, PrescriptionDto
from clinic.application.services import AppointmentsService, AppointmentViews, CompletionService, ScheduleService
from clinic.application.services.appointment_lifecycle import ACTIVE_STATUSES, Actor, Role

NOW = datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc)
TODAY = NOW.date()
VISIT_DAY = date(2030, 1, 20)

DOCTOR = Actor("doc-1", Role.DOCTOR)
OTHER_DOCTOR = Actor("doc-2", Role.DOCTOR)
PATIENT = Actor("user-pat-1", Role.PATIENT)
OTHER_PATIENT = Actor("user-pat-2", Role.PATIENT)
ADMIN = Actor("admin-1", Role.ADMIN)


class FakeStore:
    """All fake tables in one place so a transaction can snapshot them together."""

    def __init__(self):
        self.doctors = {"doc-1", "doc-2"}
        self.patients = {}
        self.availability = {}
        self.appointments = {}
        self.prescriptions = {}
        self.payments = {}
        self.seq = 0

    def next_id(self, prefix: str) -> str:
        self.seq += 1
        return f"{prefix}-{self.seq}"

    @contextmanager
    def transaction(self):
        snapshot = copy.deepcopy(self.__dict__)
        try:
            yield self
        except Exception:
            self.__dict__.update(snapshot)
            raise

    def add_patient(self, user_id: str, history: bool = True) -> PatientDto:
        patient = PatientDto(
            id=self.next_id("pat"),
            user_id=user_id,
            name=f"Patient {user_id}",
            email=f"{user_id}@example.com",
            phone="+15550000000",
            has_completed_medical_history=history,
        )
        self.patients[user_id] = patient
        return patient

    def add_availability(self, doctor_id: str = "doc-1", day: date = VISIT_DAY, start: str = "09:00",
                         end: str = "17:00", break_start: Optional[str] = "13:00",
                         break_end: Optional[str] = "14:00", duration: int = 30, capacity: int = 1,
                         active: bool = True) -> AvailabilityDto:
        availability = AvailabilityDto(
            id=self.next_id("avail"),
            doctor_id=doctor_id,
            schedule_date=day,
            start_time=start,
            end_time=end,
            break_start_time=break_start,
            break_end_time=break_end,
            slot_duration_minutes=duration,
            max_concurrent_per_slot=capacity,
            is_active=active,
            created_at=NOW,
            updated_at=NOW,
        )
        self.availability[availability.id] = availability
        return availability

    def add_appointment(self, patient_id: str, doctor_id: str = "doc-1", day: date = VISIT_DAY,
                        time: str = "09:00", status: str = "PENDING") -> AppointmentDto:
        appt = AppointmentDto(
            id=self.next_id("appt"),
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=day,
            appointment_time=time,
            status=status,
            symptoms="Lower back pain for three days",
            general_notes=None,
            payment_status="PENDING",
            approved_at=None,
            approved_by=None,
            declined_at=None,
            declined_by=None,
            decline_reason=None,
            cancellation_reason=None,
            cancelled_at=None,
            cancelled_by=None,
            original_appointment_date=None,
            original_appointment_time=None,
            rescheduled_by=None,
            rescheduled_at=None,
            reschedule_reason=None,
            version=1,
            created_at=NOW,
            updated_at=NOW,
        )
        self.appointments[appt.id] = appt
        return appt


class FakeAvailabilityRepo:
    def __init__(self, store: FakeStore):
        self.store = store
        self.locked = []

    def transaction(self):
        return self.store.transaction()

    def get_for_date(self, doctor_id, schedule_date, lock=False):
        if lock:
            self.locked.append((doctor_id, schedule_date))
        return next(
            (a for a in self.store.availability.values()
             if a.doctor_id == doctor_id and a.schedule_date == schedule_date),
            None,
        )

    def get_by_id(self, availability_id):
        return self.store.availability.get(availability_id)

    def list_upcoming(self, from_date, doctor_id=None):
        rows = [
            a for a in self.store.availability.values()
            if a.schedule_date >= from_date and a.is_active and (doctor_id is None or a.doctor_id == doctor_id)
        ]
        return sorted(rows, key=lambda a: a.schedule_date)

    def upsert(self, doctor_id, schedule_date, start_time, end_time, break_start_time, break_end_time,
               slot_duration_minutes, max_concurrent_per_slot, is_active):
        existing = self.get_for_date(doctor_id, schedule_date)
        saved = AvailabilityDto(
            id=existing.id if existing else self.store.next_id("avail"),
            doctor_id=doctor_id,
            schedule_date=schedule_date,
            start_time=start_time,
            end_time=end_time,
            break_start_time=break_start_time,
            break_end_time=break_end_time,
            slot_duration_minutes=slot_duration_minutes,
            max_concurrent_per_slot=max_concurrent_per_slot,
            is_active=is_active,
            created_at=existing.created_at if existing else NOW,
            updated_at=NOW,
        )
        self.store.availability[saved.id] = saved
        return saved

    def delete(self, availability_id):
        self.store.availability.pop(availability_id, None)

    def doctor_exists(self, doctor_id):
        return doctor_id in self.store.doctors


class FakeAppointmentsRepo:
    def __init__(self, store: FakeStore):
        self.store = store
        # Simulates another request committing between our read and our write
        self.concurrent_writer = False

    def transaction(self):
        return self.store.transaction()

    def get_patient_by_user(self, user_id):
        return self.store.patients.get(user_id)

    def get_patients(self, patient_ids):
        ids = set(patient_ids)
        return {p.id: p for p in self.store.patients.values() if p.id in ids}

    def occupancy(self, doctor_id, appointment_date, exclude_appointment_id=None):
        active = {s.value for s in ACTIVE_STATUSES}
        return Counter(
            a.appointment_time for a in self.store.appointments.values()
            if a.doctor_id == doctor_id and a.appointment_date == appointment_date
            and a.status in active and a.id != exclude_appointment_id
        )

    def create(self, patient_id, doctor_id, appointment_date, appointment_time, symptoms, general_notes):
        appt = self.store.add_appointment(patient_id, doctor_id, appointment_date, appointment_time)
        appt = replace(appt, symptoms=symptoms, general_notes=general_notes)
        self.store.appointments[appt.id] = appt
        return appt

    def get_by_id(self, appointment_id):
        appt = self.store.appointments.get(appointment_id)
        return replace(appt) if appt else None

    def list_appointments(self, doctor_id=None, patient_id=None):
        return [
            replace(a) for a in self.store.appointments.values()
            if (doctor_id is None or a.doctor_id == doctor_id) and (patient_id is None or a.patient_id == patient_id)
        ]

    def apply_changes(self, appointment_id, expected_version, changes):
        current = self.store.appointments[appointment_id]
        if self.concurrent_writer:
            current = replace(current, version=current.version + 1)
            self.store.appointments[appointment_id] = current
        if current.version != expected_version:
            raise StaleUpdateError()
        updated = replace(current, **changes, version=expected_version + 1, updated_at=NOW)
        self.store.appointments[appointment_id] = updated
        return replace(updated)


class FakePrescriptionsRepo:
    def __init__(self, store: FakeStore):
        self.store = store

    def transaction(self):
        return self.store.transaction()

    def get_for_appointment(self, appointment_id):
        return self.store.prescriptions.get(appointment_id)

    def list_for_appointments(self, appointment_ids):
        ids = set(appointment_ids)
        return [p for p in self.store.prescriptions.values() if p.appointment_id in ids]

    def create(self, appointment_id, diagnosis, notes, follow_up_date, attachment_url, medications):
        prescription = PrescriptionDto(
            id=self.store.next_id("rx"),
            appointment_id=appointment_id,
            diagnosis=diagnosis,
            notes=notes,
            follow_up_date=follow_up_date,
            attachment_url=attachment_url,
            created_at=NOW,
            medications=[replace(m, id=self.store.next_id("med")) for m in medications],
        )
        self.store.prescriptions[appointment_id] = prescription
        return prescription


class FakePaymentsRepo:
    def __init__(self, store: FakeStore):
        self.store = store
        self.fail_on_create = False

    def get_for_appointment(self, appointment_id):
        return self.store.payments.get(appointment_id)

    def create(self, appointment_id, amount, method, notes):
        if self.fail_on_create:
            raise RuntimeError("payments table unavailable")
        payment = PaymentDto(
            id=self.store.next_id("pay"),
            appointment_id=appointment_id,
            amount=amount,
            method=method,
            status="PENDING",
            paid_at=None,
            notes=notes,
            created_at=NOW,
        )
        self.store.payments[appointment_id] = payment
        return payment

    def update(self, appointment_id, amount, method, status, paid_at, notes):
        payment = replace(self.store.payments[appointment_id], amount=amount, method=method, status=status,
                          paid_at=paid_at, notes=notes)
        self.store.payments[appointment_id] = payment
        return payment


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, actor_id, appointment_id=None, success=True, details=None):
        self.entries.append((action, actor_id, appointment_id))


def medication(**overrides) -> MedicationDto:
    values = dict(medicine_name="Amoxicillin", dosage="500mg", frequency="3x daily", duration="5 days")
    values.update(overrides)
    return MedicationDto(**values)


@pytest.fixture
def store():
    s = FakeStore()
    s.add_patient(PATIENT.user_id)
    s.add_patient(OTHER_PATIENT.user_id)
    return s


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def availability_repo(store):
    return FakeAvailabilityRepo(store)


@pytest.fixture
def appointments_repo(store):
    return FakeAppointmentsRepo(store)


@pytest.fixture
def prescriptions_repo(store):
    return FakePrescriptionsRepo(store)


@pytest.fixture
def payments_repo(store):
    return FakePaymentsRepo(store)


@pytest.fixture
def appointments_service(appointments_repo, availability_repo, audit):
    return AppointmentsService(repo=appointments_repo, availability_repo=availability_repo, audit=audit,
                               clock=lambda: NOW)


@pytest.fixture
def completion_service(appointments_repo, prescriptions_repo, payments_repo, audit):
    return CompletionService(appointments_repo=appointments_repo, prescriptions_repo=prescriptions_repo,
                             payments_repo=payments_repo, audit=audit, clock=lambda: NOW)


@pytest.fixture
def schedule_service(availability_repo):
    return ScheduleService(repo=availability_repo, clock=lambda: NOW)


@pytest.fixture
def views(appointments_repo, prescriptions_repo, payments_repo):
    return AppointmentViews(repo=appointments_repo, prescriptions_repo=prescriptions_repo,
                            payments_repo=payments_repo)
