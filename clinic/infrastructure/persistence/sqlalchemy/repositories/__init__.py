from .appointments_repository_sql import SqlAppointmentsRepository
from .availability_repository_sql import SqlAvailabilityRepository
from .payments_repository_sql import SqlPaymentsRepository
from .prescriptions_repository_sql import SqlPrescriptionsRepository

__all__ = [
    "SqlAppointmentsRepository",
    "SqlAvailabilityRepository",
    "SqlPaymentsRepository",
    "SqlPrescriptionsRepository",
]
