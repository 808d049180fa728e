from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..config import Settings
from ..dependencies import get_pulse_service, get_settings
from ..models import ScanEvent
from ..services.pulse_service import PulseService
from .auth import require_auth

router = APIRouter(prefix="/triggers", tags=["triggers"], dependencies=[Depends(require_auth)])


@router.post("/{name}", response_model=ScanEvent, status_code=status.HTTP_201_CREATED)
async def trigger(
    name: str,
    path: str = Query(..., min_length=1, description="Path of the new or changed file"),
    hash: Optional[str] = Query(default=None, description="Expected SHA-256 of the file"),
    settings: Settings = Depends(get_settings),
    service: PulseService = Depends(get_pulse_service),
) -> ScanEvent:
    """
    Create a scan event through a configured manual trigger.

    HTTP Status Codes:
        201: Event created
        401: Missing or wrong credentials
        404: No trigger with that name
    """
    manual_trigger = settings.triggers.get(name)
    if manual_trigger is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trigger '{name}' is not configured",
        )

    return await service.add_event(manual_trigger.build_event(path, hash))
