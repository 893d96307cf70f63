from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence
import logging

from ...exceptions import NotFoundError, PermissionDeniedError, ValidationError
from ...utils import local_now, parse_date
from ..ports.availability_repo import AvailabilityDto, AvailabilityRepository
from .appointment_lifecycle import Actor, Role
from .slot_generator import parse_clock

logger = logging.getLogger(__name__)


@dataclass
class ScheduleService:
    repo: AvailabilityRepository
    clock: Callable[[], datetime] = field(default=local_now)
    allowed_durations: Sequence[int] = (15, 30, 45, 60)

    def _ensure_staff(self, actor: Actor) -> None:
        if actor.role not in (Role.DOCTOR, Role.ADMIN):
            raise PermissionDeniedError("Only doctors and admins can manage schedules")

    def _clock_field(self, value: Optional[str], name: str, required: bool = True) -> Optional[int]:
        if not value:
            if required:
                raise ValidationError(f"{name} is required", field=name)
            return None
        try:
            return parse_clock(value)
        except ValueError:
            raise ValidationError(f"Invalid {name} format. Use HH:MM", field=name)

    def list_upcoming(self, actor: Actor) -> List[AvailabilityDto]:
        doctor_id = actor.user_id if actor.role == Role.DOCTOR else None
        return self.repo.list_upcoming(self.clock().date(), doctor_id=doctor_id)

    def save(self, actor: Actor, schedule_date: str, start_time: str, end_time: str,
             break_start_time: Optional[str] = None, break_end_time: Optional[str] = None,
             slot_duration_minutes: int = 30, max_concurrent_per_slot: int = 1, is_active: bool = True,
             doctor_id: Optional[str] = None) -> AvailabilityDto:
        """Create or replace the availability of one doctor for one date."""
        self._ensure_staff(actor)
        if actor.role == Role.DOCTOR:
            if doctor_id and doctor_id != actor.user_id:
                raise PermissionDeniedError("Doctors can only manage their own schedule")
            doctor_id = actor.user_id
        elif not doctor_id:
            raise ValidationError("doctorId is required", field="doctorId")

        day = parse_date(schedule_date, "scheduleDate")
        if day < self.clock().date():
            raise ValidationError("Schedule date cannot be in the past", field="scheduleDate")

        start = self._clock_field(start_time, "startTime")
        end = self._clock_field(end_time, "endTime")
        if start >= end:
            raise ValidationError("endTime must be after startTime", field="endTime")

        break_start = self._clock_field(break_start_time, "breakStartTime", required=False)
        break_end = self._clock_field(break_end_time, "breakEndTime", required=False)
        if (break_start is None) != (break_end is None):
            raise ValidationError("Both break start and end are required for a break",
                                  field="breakEndTime" if break_end is None else "breakStartTime")
        if break_start is not None:
            if break_start >= break_end:
                raise ValidationError("breakEndTime must be after breakStartTime", field="breakEndTime")
            if break_start < start or break_end > end:
                raise ValidationError("The break must fall inside working hours", field="breakStartTime")

        if slot_duration_minutes not in self.allowed_durations:
            allowed = ", ".join(str(d) for d in self.allowed_durations)
            raise ValidationError(f"Slot duration must be one of: {allowed} minutes", field="slotDurationMinutes")
        if max_concurrent_per_slot is None or max_concurrent_per_slot < 1:
            raise ValidationError("At least one patient per slot is required", field="maxConcurrentPerSlot")

        if not self.repo.doctor_exists(doctor_id):
            raise NotFoundError("Doctor not found")

        with self.repo.transaction():
            saved = self.repo.upsert(
                doctor_id=doctor_id,
                schedule_date=day,
                start_time=start_time,
                end_time=end_time,
                break_start_time=break_start_time or None,
                break_end_time=break_end_time or None,
                slot_duration_minutes=slot_duration_minutes,
                max_concurrent_per_slot=max_concurrent_per_slot,
                is_active=is_active,
            )
        logger.info(f"Schedule saved for doctor {doctor_id} on {day}")
        return saved

    def delete(self, actor: Actor, availability_id: str) -> None:
        self._ensure_staff(actor)
        existing = self.repo.get_by_id(availability_id)
        if existing is None or (actor.role == Role.DOCTOR and existing.doctor_id != actor.user_id):
            raise NotFoundError("Schedule not found")
        with self.repo.transaction():
            self.repo.delete(availability_id)
        logger.info(f"Schedule {availability_id} deleted by {actor.user_id}")
