"""
Event Repository - the data access layer for scan events.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.orm import Session

from autopulse.core.database import Database, ScanEventRecord
from autopulse.core.exceptions import EventNotFoundError
from autopulse.models import FoundStatus, NewScanEvent, ProcessStatus, ScanEvent, Stats
from autopulse.utils.clock import utcnow

T = TypeVar("T")


class EventRepository:
    """
    Persists ScanEvent objects in the `scan_events` table.

    Every call opens its own short-lived session on a worker thread, so the
    pipeline and the HTTP handlers share the engine's connection pool without
    blocking the event loop. Nothing here coordinates writers; the scheduler is
    the only component that mutates existing events.
    """

    def __init__(self, database: Database):
        self._database = database
        logging.info("EventRepository initialized")

    async def _run(self, work: Callable[[Session], T]) -> T:
        def _in_session() -> T:
            with self._database.session_factory() as session:
                return work(session)

        return await asyncio.to_thread(_in_session)

    async def add(self, new_event: NewScanEvent) -> ScanEvent:
        """Insert a new scan event and return it with its id and created_at."""

        def _add(session: Session) -> ScanEvent:
            now = utcnow()
            record = ScanEventRecord(
                file_path=new_event.file_path,
                file_hash=new_event.file_hash,
                found_status=new_event.found_status,
                process_status=ProcessStatus.PENDING,
                failed_times=0,
                targets_hit=[],
                created_at=now,
                updated_at=now,
            )
            session.add(record)
            session.commit()
            return ScanEvent.model_validate(record)

        event = await self._run(_add)
        logging.debug(f"Scan event {event.id} added for {event.file_path}")
        return event

    async def get_by_id(self, event_id: int) -> Optional[ScanEvent]:
        """Get a single scan event by id."""

        def _get(session: Session) -> Optional[ScanEvent]:
            record = session.get(ScanEventRecord, event_id)
            return ScanEvent.model_validate(record) if record else None

        return await self._run(_get)

    async def _select(self, *criteria) -> List[ScanEvent]:
        def _load(session: Session) -> List[ScanEvent]:
            stmt = select(ScanEventRecord).where(*criteria).order_by(ScanEventRecord.id)
            return [ScanEvent.model_validate(r) for r in session.scalars(stmt).all()]

        return await self._run(_load)

    async def get_all(self) -> List[ScanEvent]:
        return await self._select()

    async def get_unfound(self) -> List[ScanEvent]:
        """Events whose file has not been confirmed on disk."""
        return await self._select(ScanEventRecord.found_status != FoundStatus.FOUND)

    async def get_processable(self, now: datetime, require_found: bool) -> List[ScanEvent]:
        """
        Events due for a dispatch attempt.

        Args:
            now: Reference time for the retry gate
            require_found: Only include events whose file was found on disk

        Returns:
            Non-terminal events whose next_retry_at is unset or in the past
        """
        criteria = [
            ScanEventRecord.process_status.not_in(
                [ProcessStatus.COMPLETE, ProcessStatus.FAILED]
            ),
            or_(
                ScanEventRecord.next_retry_at.is_(None),
                ScanEventRecord.next_retry_at < now,
            ),
        ]
        if require_found:
            criteria.append(ScanEventRecord.found_status == FoundStatus.FOUND)
        return await self._select(*criteria)

    async def update(self, event: ScanEvent) -> ScanEvent:
        """
        Write the pipeline-owned fields of an event back to the store.

        file_path, file_hash and created_at belong to the producer and are
        never written here.

        Raises:
            EventNotFoundError: If the event was deleted in the meantime
        """

        def _update(session: Session) -> ScanEvent:
            record = session.get(ScanEventRecord, event.id)
            if record is None:
                raise EventNotFoundError(event.id)

            record.found_status = event.found_status
            record.found_at = event.found_at
            record.process_status = event.process_status
            record.failed_times = event.failed_times
            record.next_retry_at = event.next_retry_at
            record.targets_hit = list(event.targets_hit)
            record.processed_at = event.processed_at
            record.updated_at = event.updated_at
            session.commit()
            return ScanEvent.model_validate(record)

        return await self._run(_update)

    async def _delete(self, *criteria) -> int:
        def _execute(session: Session) -> int:
            result = session.execute(delete(ScanEventRecord).where(*criteria))
            session.commit()
            return result.rowcount or 0

        return await self._run(_execute)

    async def delete_not_found_before(self, cutoff: datetime) -> int:
        """Delete NotFound events whose found_at is older than cutoff."""
        return await self._delete(
            ScanEventRecord.found_status == FoundStatus.NOT_FOUND,
            ScanEventRecord.found_at < cutoff,
        )

    async def delete_failed_before(self, cutoff: datetime) -> int:
        """Delete Failed events whose found_at is older than cutoff."""
        return await self._delete(
            ScanEventRecord.process_status == ProcessStatus.FAILED,
            ScanEventRecord.found_at < cutoff,
        )

    async def get_stats(self) -> Stats:
        """Compute all counters in a single aggregate query."""

        def _stats(session: Session) -> Stats:
            found = ScanEventRecord.found_status == FoundStatus.FOUND
            process = ScanEventRecord.process_status
            stmt = select(
                func.count(ScanEventRecord.id),
                func.count(case((found, 1))),
                func.count(case((and_(found, process == ProcessStatus.PENDING), 1))),
                func.count(case((process == ProcessStatus.COMPLETE, 1))),
                func.count(
                    case((process.in_([ProcessStatus.FAILED, ProcessStatus.RETRY]), 1))
                ),
            )
            total, found_count, pending, processed, failed = session.execute(stmt).one()
            return Stats(
                total=total,
                found=found_count,
                pending=pending,
                processed=processed,
                failed=failed,
            )

        return await self._run(_stats)

    async def count(self) -> int:
        """Return the total number of scan events."""

        def _count(session: Session) -> int:
            return session.scalar(select(func.count(ScanEventRecord.id))) or 0

        return await self._run(_count)
