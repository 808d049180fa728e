import logging
from datetime import datetime
from typing import Awaitable, Callable, List

import aiofiles.os

from autopulse.core.event_repository import EventRepository
from autopulse.models import EventType, FoundStatus, ScanEvent
from autopulse.services.notification_service import NotificationService
from autopulse.utils.checksum import sha256_checksum
from autopulse.utils.clock import utcnow


class FoundStatusResolver:
    """
    Checks every not-yet-found scan event against the filesystem.

    A file without a stored hash becomes Found as soon as it exists. A file
    with a stored hash becomes Found when the digests match and HashMismatch
    otherwise. The stored hash is never rewritten, so a mismatch stays a
    mismatch on every later pass.
    """

    def __init__(
        self,
        repository: EventRepository,
        notifier: NotificationService,
        check_path: bool,
        hasher: Callable[[str], Awaitable[str]] = sha256_checksum,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._repository = repository
        self._notifier = notifier
        self._check_path = check_path
        self._hasher = hasher
        self._clock = clock

    async def resolve(self) -> List[str]:
        """
        Run one pass over all events with found_status != Found.

        Returns:
            Paths that were found for the first time in this pass
        """
        if not self._check_path:
            return []

        newly_found: List[str] = []

        for event in await self._repository.get_unfound():
            if await self._resolve_event(event):
                newly_found.append(event.file_path)

        if newly_found:
            logging.info(
                f"Found {len(newly_found)} new file{'s' if len(newly_found) > 1 else ''}"
            )
            await self._notifier.notify(EventType.FOUND, newly_found)

        return newly_found

    async def _resolve_event(self, event: ScanEvent) -> bool:
        """Update one event in place and persist it. True if newly found."""
        newly_found = False

        if await aiofiles.os.path.exists(event.file_path):
            try:
                current_hash = await self._hasher(event.file_path)
            except OSError as e:
                logging.warning(f"Could not hash {event.file_path}, leaving status unchanged: {e}")
                current_hash = None

            if current_hash is not None:
                now = self._clock()
                if event.file_hash is None:
                    event.found_status = FoundStatus.FOUND
                    newly_found = True
                elif event.file_hash.lower() != current_hash:
                    if event.found_status != FoundStatus.HASH_MISMATCH:
                        logging.warning(
                            f"HASH MISMATCH: {event.file_path} "
                            f"(expected {event.file_hash}, got {current_hash})"
                        )
                    event.found_status = FoundStatus.HASH_MISMATCH
                else:
                    event.found_status = FoundStatus.FOUND

                if event.found_at is None:
                    event.found_at = now

        event.updated_at = self._clock()
        await self._repository.update(event)
        return newly_found
