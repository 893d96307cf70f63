from typing import List
from fastapi import APIRouter, Depends

from ..dependencies import get_current_actor, get_schedule_service
from ..application.services import ScheduleService
from ..application.services.appointment_lifecycle import Actor
from ..schemas.common.common import MessageResponse
from ..schemas.schedule.schedule import ScheduleRequest, ScheduleResponse

router = APIRouter(prefix="/schedule", tags=["Schedule"])


@router.get("", response_model=List[ScheduleResponse])
def list_schedule(
    actor: Actor = Depends(get_current_actor),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.list_upcoming(actor)


@router.post("", response_model=ScheduleResponse)
def save_schedule(
    payload: ScheduleRequest,
    actor: Actor = Depends(get_current_actor),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.save(
        actor,
        schedule_date=payload.schedule_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        break_start_time=payload.break_start_time,
        break_end_time=payload.break_end_time,
        slot_duration_minutes=payload.slot_duration_minutes,
        max_concurrent_per_slot=payload.max_concurrent_per_slot,
        is_active=payload.is_active,
        doctor_id=payload.doctor_id,
    )


@router.delete("/{availability_id}", response_model=MessageResponse)
def delete_schedule(
    availability_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ScheduleService = Depends(get_schedule_service),
):
    service.delete(actor, availability_id)
    return MessageResponse(message="Schedule deleted")
