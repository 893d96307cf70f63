from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional
import logging

from ...exceptions import ConflictError, ValidationError
from ...utils import local_now
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.availability_repo import AvailabilityRepository
from .slot_generator import SlotReason, SlotResult, generate_slots, parse_clock, slot_marks

logger = logging.getLogger(__name__)


@dataclass
class BookingGuard:
    """Recomputes slot capacity at write time.

    The slot list shown to a patient is a snapshot; ensure_bookable must be
    called inside the same transaction as the write it protects.
    """
    availability_repo: AvailabilityRepository
    appointments_repo: AppointmentsRepository
    clock: Callable[[], datetime] = field(default=local_now)

    def _not_before(self, day: date) -> Optional[str]:
        now = self.clock()
        if day == now.date():
            return now.strftime("%H:%M")
        return None

    def available_slots(self, doctor_id: str, day: date, exclude_appointment_id: Optional[str] = None) -> SlotResult:
        if day < self.clock().date():
            return SlotResult(reason=SlotReason.PAST_DATE)
        availability = self.availability_repo.get_for_date(doctor_id, day)
        occupied = self.appointments_repo.occupancy(doctor_id, day, exclude_appointment_id=exclude_appointment_id)
        return generate_slots(availability, occupied, not_before=self._not_before(day))

    def ensure_bookable(self, doctor_id: str, day: date, time: str,
                        exclude_appointment_id: Optional[str] = None, field_name: str = "time") -> None:
        try:
            parse_clock(time)
        except ValueError:
            raise ValidationError("Invalid time format. Use HH:MM", field=field_name)

        if day < self.clock().date():
            raise ValidationError("Appointment date cannot be in the past", field="date")

        # Locks the availability row so concurrent bookings of the same day queue up here
        availability = self.availability_repo.get_for_date(doctor_id, day, lock=True)
        if availability is None or not availability.is_active:
            raise ConflictError("The doctor has no schedule for this date anymore. Please pick another date.")
        if time not in slot_marks(availability):
            raise ValidationError(f"{time} is not a bookable slot on {day.isoformat()}", field=field_name)

        not_before = self._not_before(day)
        if not_before is not None and parse_clock(time) <= parse_clock(not_before):
            raise ValidationError("This time has already passed. Please pick a later slot.", field=field_name)

        occupied = self.appointments_repo.occupancy(doctor_id, day, exclude_appointment_id=exclude_appointment_id)
        if occupied.get(time, 0) >= availability.max_concurrent_per_slot:
            logger.info(f"Slot {day} {time} for doctor {doctor_id} is full")
            raise ConflictError("This time slot was just taken. Please refresh the available slots and pick another time.")
