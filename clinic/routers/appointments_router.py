from typing import List
from fastapi import APIRouter, Depends, Query

from ..dependencies import get_appointment_views, get_appointments_service, get_current_actor
from ..application.services import AppointmentsService, AppointmentViews
from ..application.services.appointment_lifecycle import Actor
from ..application.services.appointment_views import AppointmentView
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentDetailResponse,
    AppointmentListItem,
    AppointmentResponse,
    AppointmentUpdate,
    AvailableSlotsResponse,
    PatientSummary,
    ReasonRequest,
    RescheduleRequest,
)
from ..schemas.prescriptions.prescription import PaymentResponse, PrescriptionResponse

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _list_item(view: AppointmentView, model=AppointmentListItem, **extra):
    data = AppointmentResponse.model_validate(view.appointment).model_dump()
    patient = PatientSummary.model_validate(view.patient) if view.patient else None
    return model(**data, patient=patient, allowed_actions=view.allowed_actions, **extra)


@router.get("/available-slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    date: str = Query(..., description="YYYY-MM-DD"),
    doctor_id: str = Query(..., alias="doctorId"),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    result = service.available_slots(doctor_id, date)
    return AvailableSlotsResponse(
        slots=result.slots,
        message=result.message,
        reason=result.reason.value if result.reason else None,
    )


@router.post("", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    payload: AppointmentCreate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    return service.book(actor, payload.doctor_id, payload.date, payload.time, payload.symptoms, payload.notes)


@router.get("", response_model=List[AppointmentListItem])
def list_appointments(
    actor: Actor = Depends(get_current_actor),
    views: AppointmentViews = Depends(get_appointment_views),
):
    return [_list_item(v) for v in views.list_for_actor(actor)]


@router.get("/{appointment_id}", response_model=AppointmentDetailResponse)
def get_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    views: AppointmentViews = Depends(get_appointment_views),
):
    detail = views.detail(actor, appointment_id)
    return _list_item(
        detail,
        model=AppointmentDetailResponse,
        prescription=PrescriptionResponse.model_validate(detail.prescription) if detail.prescription else None,
        payment=PaymentResponse.model_validate(detail.payment) if detail.payment else None,
    )


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    return service.update_status(
        actor,
        appointment_id,
        payload.status,
        notes=payload.notes,
        appointment_date=payload.appointment_date,
        appointment_time=payload.appointment_time,
    )


@router.post("/{appointment_id}/approve", response_model=AppointmentResponse)
def approve_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    return service.approve(actor, appointment_id)


@router.post("/{appointment_id}/decline", response_model=AppointmentResponse)
def decline_appointment(
    appointment_id: str,
    payload: ReasonRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    return service.decline(actor, appointment_id, payload.reason)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: str,
    payload: ReasonRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    return service.cancel(actor, appointment_id, payload.reason)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    payload: RescheduleRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentsService = Depends(get_appointments_service),
):
    return service.reschedule(actor, appointment_id, payload.new_date, payload.new_time, payload.reason)
