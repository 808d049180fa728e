from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_pulse_service
from ..models import ScanEvent
from ..services.pulse_service import PulseService
from .auth import require_auth

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(require_auth)])


@router.get("/{event_id}", response_model=ScanEvent)
async def get_event(
    event_id: int,
    service: PulseService = Depends(get_pulse_service),
) -> ScanEvent:
    event = await service.get_event(event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scan event {event_id} not found",
        )
    return event
