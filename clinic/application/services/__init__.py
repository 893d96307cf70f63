# Services package (re-export feature modules for stable imports)
from .appointments_service import AppointmentsService
from .appointment_views import AppointmentViews
from .booking_guard import BookingGuard
from .completion_service import CompletionService
from .schedule_service import ScheduleService

__all__ = [
    "AppointmentsService",
    "AppointmentViews",
    "BookingGuard",
    "CompletionService",
    "ScheduleService",
]
