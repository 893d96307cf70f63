from datetime import date
from typing import List, Optional
from sqlmodel import Session, select

from .....database import transaction
from .....utils import utc_now
from .....db.models import Availability, User
from .....application.ports.availability_repo import AvailabilityRepository, AvailabilityDto


class SqlAvailabilityRepository(AvailabilityRepository):
    def __init__(self, session: Session):
        self.session = session

    def transaction(self):
        return transaction(self.session)

    def _to_dto(self, a: Availability) -> AvailabilityDto:
        return AvailabilityDto(
            id=a.id,
            doctor_id=a.doctor_id,
            schedule_date=a.schedule_date,
            start_time=a.start_time,
            end_time=a.end_time,
            break_start_time=a.break_start_time,
            break_end_time=a.break_end_time,
            slot_duration_minutes=a.slot_duration_minutes,
            max_concurrent_per_slot=a.max_concurrent_per_slot,
            is_active=a.is_active,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _row_for_date(self, doctor_id: str, schedule_date: date, lock: bool = False) -> Optional[Availability]:
        stmt = (
            select(Availability)
            .where(Availability.doctor_id == doctor_id)
            .where(Availability.schedule_date == schedule_date)
        )
        if lock:
            # Row lock on Postgres; SQLite relies on BEGIN IMMEDIATE instead
            stmt = stmt.with_for_update()
        return self.session.exec(stmt).first()

    def get_for_date(self, doctor_id: str, schedule_date: date, lock: bool = False) -> Optional[AvailabilityDto]:
        a = self._row_for_date(doctor_id, schedule_date, lock=lock)
        return self._to_dto(a) if a else None

    def get_by_id(self, availability_id: str) -> Optional[AvailabilityDto]:
        a = self.session.get(Availability, availability_id)
        return self._to_dto(a) if a else None

    def list_upcoming(self, from_date: date, doctor_id: Optional[str] = None) -> List[AvailabilityDto]:
        stmt = (
            select(Availability)
            .where(Availability.schedule_date >= from_date)
            .where(Availability.is_active == True)  # noqa: E712
        )
        if doctor_id is not None:
            stmt = stmt.where(Availability.doctor_id == doctor_id)
        rows = self.session.exec(stmt.order_by(Availability.schedule_date)).all()
        return [self._to_dto(r) for r in rows]

    def upsert(self, doctor_id: str, schedule_date: date, start_time: str, end_time: str,
               break_start_time: Optional[str], break_end_time: Optional[str],
               slot_duration_minutes: int, max_concurrent_per_slot: int, is_active: bool) -> AvailabilityDto:
        a = self._row_for_date(doctor_id, schedule_date, lock=True)
        if a is None:
            a = Availability(doctor_id=doctor_id, schedule_date=schedule_date, start_time=start_time, end_time=end_time)
        a.start_time = start_time
        a.end_time = end_time
        a.break_start_time = break_start_time
        a.break_end_time = break_end_time
        a.slot_duration_minutes = slot_duration_minutes
        a.max_concurrent_per_slot = max_concurrent_per_slot
        a.is_active = is_active
        a.updated_at = utc_now()
        self.session.add(a)
        self.session.flush()
        return self._to_dto(a)

    def delete(self, availability_id: str) -> None:
        a = self.session.get(Availability, availability_id)
        if not a:
            return
        self.session.delete(a)
        self.session.flush()

    def doctor_exists(self, doctor_id: str) -> bool:
        user = self.session.get(User, doctor_id)
        return bool(user and user.role == "DOCTOR" and user.is_active)
