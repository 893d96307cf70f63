from typing import List
from fastapi import APIRouter, Depends

from ..dependencies import get_appointment_views, get_completion_service, get_current_actor
from ..application.ports.prescriptions_repo import MedicationDto
from ..application.services import AppointmentViews, CompletionService
from ..application.services.appointment_lifecycle import Actor
from ..schemas.appointments.appointment import AppointmentResponse
from ..schemas.common.common import CamelModel
from ..schemas.prescriptions.prescription import PaymentResponse, PrescriptionCreate, PrescriptionResponse

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


class CompletionResponse(CamelModel):
    appointment: AppointmentResponse
    prescription: PrescriptionResponse
    payment: PaymentResponse


@router.post("", response_model=CompletionResponse, status_code=201)
def create_prescription(
    payload: PrescriptionCreate,
    actor: Actor = Depends(get_current_actor),
    service: CompletionService = Depends(get_completion_service),
):
    """Write the prescription, open a pending payment and complete the visit."""
    medications = [
        MedicationDto(
            medicine_name=m.medicine_name,
            dosage=m.dosage,
            frequency=m.frequency,
            duration=m.duration,
            instructions=m.instructions,
        )
        for m in payload.medications
    ]
    result = service.complete(
        actor,
        payload.appointment_id,
        diagnosis=payload.diagnosis,
        notes=payload.notes,
        follow_up_date=payload.follow_up_date,
        medications=medications,
        attachment_url=payload.attachment_url,
        consultation_fee=payload.consultation_fee,
        payment_method=payload.payment_method,
    )
    return result


@router.get("", response_model=List[PrescriptionResponse])
def list_prescriptions(
    actor: Actor = Depends(get_current_actor),
    views: AppointmentViews = Depends(get_appointment_views),
):
    return views.prescriptions_for_actor(actor)
