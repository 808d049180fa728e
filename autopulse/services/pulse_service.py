import logging
from typing import Optional

from autopulse.core.event_repository import EventRepository
from autopulse.models import NewScanEvent, ScanEvent, Stats


class PulseService:
    """Read side of the event store plus event creation, used by the API and triggers."""

    def __init__(self, repository: EventRepository):
        self._repository = repository

    async def get_stats(self) -> Stats:
        """
        Point-in-time counters from a single aggregate query.

        The scheduler may be mutating events concurrently and the categories
        overlap, so the counters need not add up to `total`.
        """
        return await self._repository.get_stats()

    async def add_event(self, new_event: NewScanEvent) -> ScanEvent:
        event = await self._repository.add(new_event)
        logging.info(f"NEW EVENT: {event.file_path} [ID: {event.id}]")
        return event

    async def get_event(self, event_id: int) -> Optional[ScanEvent]:
        return await self._repository.get_by_id(event_id)
