import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
from sqlmodel import Session, select

from clinic.database import build_engine, create_db_and_tables
from clinic.db.models import Appointment, Availability, PatientProfile, Prescription, User
from clinic.exceptions import APIException
from clinic.application.services import AppointmentsService, CompletionService
from clinic.application.services.appointment_lifecycle import Actor, Role
from clinic.infrastructure.persistence.sqlalchemy.repositories import (
    SqlAppointmentsRepository,
    SqlAvailabilityRepository,
    SqlPaymentsRepository,
    SqlPrescriptionsRepository,
)

from conftest import FakeAudit, NOW, medication

DAY = date(2030, 1, 20)
BOOKERS = 8
DOCTOR = Actor("doc-1", Role.DOCTOR)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    create_db_and_tables(bind=engine)
    with Session(engine) as s:
        s.add(User(id="doc-1", name="Dr. One", role="DOCTOR"))
        for n in range(BOOKERS):
            s.add(User(id=f"user-{n}", name=f"Patient {n}", role="PATIENT"))
            s.add(PatientProfile(id=f"pat-{n}", user_id=f"user-{n}", has_completed_medical_history=True))
        s.add(Availability(doctor_id="doc-1", schedule_date=DAY, start_time="09:00", end_time="12:00",
                           slot_duration_minutes=30, max_concurrent_per_slot=2))
        s.commit()
    yield engine
    engine.dispose()


def _appointments_service(session):
    return AppointmentsService(repo=SqlAppointmentsRepository(session),
                               availability_repo=SqlAvailabilityRepository(session),
                               audit=FakeAudit(), clock=lambda: NOW)


def _run_together(calls):
    """Start every call at the same moment and return "ok" or the error class name for each."""
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait(timeout=10)
        try:
            call()
            return "ok"
        except APIException as exc:
            return type(exc).__name__

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(run, calls))


def test_last_capacity_units_go_to_exactly_two_bookers(engine):
    def booker(n):
        def call():
            with Session(engine) as session:
                _appointments_service(session).book(Actor(f"user-{n}", Role.PATIENT), "doc-1", DAY.isoformat(),
                                                    "10:00", "Fever and chills since Monday")
        return call

    outcomes = _run_together([booker(n) for n in range(BOOKERS)])

    assert outcomes.count("ok") == 2
    assert outcomes.count("ConflictError") == BOOKERS - 2
    with Session(engine) as s:
        assert len(s.exec(select(Appointment).where(Appointment.appointment_time == "10:00")).all()) == 2


def test_complete_and_cancel_cannot_both_apply(engine):
    with Session(engine) as s:
        appt = Appointment(patient_id="pat-0", doctor_id="doc-1", appointment_date=DAY, appointment_time="09:00",
                           symptoms="Fever and chills since Monday", status="SCHEDULED")
        s.add(appt)
        s.commit()
        appointment_id = appt.id

    def complete():
        with Session(engine) as session:
            CompletionService(SqlAppointmentsRepository(session), SqlPrescriptionsRepository(session),
                              SqlPaymentsRepository(session), FakeAudit(), clock=lambda: NOW).complete(
                DOCTOR, appointment_id, "Influenza", None, "2030-02-01", [medication()])

    def cancel():
        with Session(engine) as session:
            _appointments_service(session).cancel(DOCTOR, appointment_id, "Patient is travelling that week")

    outcomes = _run_together([complete, cancel])

    assert outcomes.count("ok") == 1
    with Session(engine) as s:
        final = s.get(Appointment, appointment_id)
        prescriptions = s.exec(select(Prescription)).all()
    if outcomes[0] == "ok":
        assert final.status == "COMPLETED"
        assert len(prescriptions) == 1
    else:
        assert final.status == "CANCELLED"
        assert prescriptions == []
