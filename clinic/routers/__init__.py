# Routers package
from . import appointments_router
from . import prescriptions_router
from . import payments_router
from . import schedule_router

__all__ = [
    "appointments_router",
    "prescriptions_router",
    "payments_router",
    "schedule_router",
]
