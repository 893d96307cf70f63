"""FastAPI dependencies: the authenticated actor and per-request services."""
import logging
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .config import settings
from .database import get_session
from .utils import decode_jwt_token
from .application.services import AppointmentsService, AppointmentViews, CompletionService, ScheduleService
from .application.services.appointment_lifecycle import Actor, Role
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.sqlalchemy.repositories import (
    SqlAppointmentsRepository,
    SqlAvailabilityRepository,
    SqlPaymentsRepository,
    SqlPrescriptionsRepository,
)

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)
audit_logger = StdAuditLogger()


def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> Actor:
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    try:
        role = Role(str(payload.get("role", "")).upper())
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: unknown role")
    return Actor(user_id=str(user_id), role=role)


def get_appointments_service(session: Session = Depends(get_session)) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        availability_repo=SqlAvailabilityRepository(session),
        audit=audit_logger,
        min_reason_length=settings.MIN_REASON_LENGTH,
        min_symptoms_length=settings.MIN_SYMPTOMS_LENGTH,
    )


def get_appointment_views(session: Session = Depends(get_session)) -> AppointmentViews:
    return AppointmentViews(
        repo=SqlAppointmentsRepository(session),
        prescriptions_repo=SqlPrescriptionsRepository(session),
        payments_repo=SqlPaymentsRepository(session),
    )


def get_completion_service(session: Session = Depends(get_session)) -> CompletionService:
    return CompletionService(
        appointments_repo=SqlAppointmentsRepository(session),
        prescriptions_repo=SqlPrescriptionsRepository(session),
        payments_repo=SqlPaymentsRepository(session),
        audit=audit_logger,
        default_fee=settings.DEFAULT_CONSULTATION_FEE,
        default_method=settings.DEFAULT_PAYMENT_METHOD,
    )


def get_schedule_service(session: Session = Depends(get_session)) -> ScheduleService:
    return ScheduleService(
        repo=SqlAvailabilityRepository(session),
        allowed_durations=tuple(settings.ALLOWED_SLOT_DURATIONS),
    )
