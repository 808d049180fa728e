import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Mapping

from autopulse.core.event_repository import EventRepository
from autopulse.models import EventType, ProcessStatus, ScanEvent
from autopulse.services.notification_service import NotificationService
from autopulse.services.target_dispatcher import TargetDispatcher
from autopulse.targets.base import TargetProcess
from autopulse.utils.clock import utcnow


def retry_backoff(failed_times: int) -> timedelta:
    """Delay before the next attempt after `failed_times` failures: 4s, 8s, 16s, ..."""
    return timedelta(seconds=2 ** (failed_times + 1))


@dataclass
class AdvanceResult:
    processed: List[str] = field(default_factory=list)
    retrying: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class ProcessStatusAdvancer:
    """
    Retry state machine for delivering scan events to targets.

    Pending/Retry -> Complete   when every remaining target accepted the event
    Pending/Retry -> Retry      on failure, gated by an exponential backoff
    Pending/Retry -> Failed     once failed_times reaches max_retries

    Complete and Failed are terminal and never selected again. Targets that
    already accepted an event are skipped on later attempts.
    """

    def __init__(
        self,
        repository: EventRepository,
        dispatcher: TargetDispatcher,
        notifier: NotificationService,
        targets: Mapping[str, TargetProcess],
        max_retries: int,
        check_path: bool,
        clock: Callable[[], datetime] = utcnow,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self._repository = repository
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._targets = dict(targets)
        self._max_retries = max_retries
        self._check_path = check_path
        self._clock = clock

        logging.info(
            f"ProcessStatusAdvancer initialized with {len(self._targets)} target(s), "
            f"max_retries={max_retries}, check_path={check_path}"
        )

    async def advance(self) -> AdvanceResult:
        """Attempt delivery for every eligible event, then report the outcome."""
        result = AdvanceResult()

        events = await self._repository.get_processable(
            now=self._clock(), require_found=self._check_path
        )

        for event in events:
            await self._advance_event(event, result)

        if result.processed:
            logging.info(
                f"Sent {len(result.processed)} file{'s' if len(result.processed) > 1 else ''} to targets"
            )
            await self._notifier.notify(EventType.PROCESSED, result.processed)

        if result.failed:
            logging.error(
                f"Failed to send {len(result.failed)} file{'s' if len(result.failed) > 1 else ''} to targets"
            )
            await self._notifier.notify(EventType.ERROR, result.failed)

        return result

    async def _advance_event(self, event: ScanEvent, result: AdvanceResult) -> None:
        dispatch = await self._dispatcher.dispatch(
            event, self._targets, already_succeeded=set(event.targets_hit)
        )
        event.mark_targets_hit(dispatch.succeeded)

        now = self._clock()

        if not dispatch.has_failures:
            event.process_status = ProcessStatus.COMPLETE
            event.next_retry_at = None
            if event.processed_at is None:
                event.processed_at = now
            result.processed.append(event.file_path)
        else:
            event.failed_times += 1

            if event.failed_times >= self._max_retries:
                event.process_status = ProcessStatus.FAILED
                event.next_retry_at = None
                result.failed.append(event.file_path)
                logging.warning(
                    f"{event.file_path} marked as Failed after {event.failed_times} attempts "
                    f"(failing targets: {', '.join(dispatch.failed)})"
                )
            else:
                delay = retry_backoff(event.failed_times)
                event.process_status = ProcessStatus.RETRY
                event.next_retry_at = now + delay
                result.retrying.append(event.file_path)
                logging.info(
                    f"RETRY {event.failed_times}/{self._max_retries}: {event.file_path} "
                    f"in {int(delay.total_seconds())}s"
                )

        event.updated_at = now
        await self._repository.update(event)
