# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.patient_profile import PatientProfile
from .scheduling.availability import Availability
from .clinical.appointment import Appointment
from .clinical.prescription import Prescription, Medication
from .clinical.payment import Payment

__all__ = [
    "User",
    "PatientProfile",
    "Availability",
    "Appointment",
    "Prescription",
    "Medication",
    "Payment",
]
