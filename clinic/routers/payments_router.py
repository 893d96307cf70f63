from fastapi import APIRouter, Depends

from ..dependencies import get_completion_service, get_current_actor
from ..application.services import CompletionService
from ..application.services.appointment_lifecycle import Actor
from ..schemas.prescriptions.prescription import PaymentRequest, PaymentResponse

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse)
def record_payment(
    payload: PaymentRequest,
    actor: Actor = Depends(get_current_actor),
    service: CompletionService = Depends(get_completion_service),
):
    return service.record_payment(
        actor,
        payload.appointment_id,
        amount=payload.amount,
        method=payload.method,
        is_paid=payload.is_paid,
        notes=payload.notes,
    )
