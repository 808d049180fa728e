import logging
import time

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_pulse_service
from ..models import StatsResponse
from ..services.pulse_service import PulseService

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    service: PulseService = Depends(get_pulse_service),
):
    """
    Event store counters and the time it took to compute them.

    HTTP Status Codes:
        200: Stats computed
        500: Event store unavailable (empty body)
    """
    start = time.perf_counter()
    try:
        stats = await service.get_stats()
    except Exception as e:
        logging.error(f"Failed to get stats: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    speed = (time.perf_counter() - start) * 1000.0
    return StatsResponse(stats=stats, speed=speed)
