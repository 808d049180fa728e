import logging
from datetime import datetime, timedelta
from typing import Callable

from autopulse.core.event_repository import EventRepository
from autopulse.utils.clock import utcnow


class RetentionCleaner:
    """Deletes NotFound and Failed events whose found_at is past the retention window."""

    def __init__(
        self,
        repository: EventRepository,
        retention_days: int,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._repository = repository
        self._retention = timedelta(days=retention_days)
        self._clock = clock

    async def cleanup(self) -> int:
        """
        Run both deletions. A failing branch is logged and does not stop the other.

        Returns:
            Number of events deleted
        """
        cutoff = self._clock() - self._retention
        deleted = 0

        try:
            deleted += await self._repository.delete_not_found_before(cutoff)
        except Exception as e:
            logging.error(f"Cleanup of NotFound events failed: {e}")

        try:
            deleted += await self._repository.delete_failed_before(cutoff)
        except Exception as e:
            logging.error(f"Cleanup of Failed events failed: {e}")

        if deleted:
            logging.info(f"Cleanup removed {deleted} event{'s' if deleted > 1 else ''} older than {cutoff}")

        return deleted
