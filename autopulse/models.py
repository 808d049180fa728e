from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FoundStatus(str, Enum):
    """
    Whether the file behind a scan event exists on disk and matches its recorded hash.

    Workflow: Pending -> Found
    Alternative: Pending -> HashMismatch (stored hash differs from the file on disk)
    NotFound is only ever set by a producer.
    """

    PENDING = "Pending"  # Not checked against the filesystem yet, or not there yet
    FOUND = "Found"  # File exists (and matches file_hash when one was given)
    NOT_FOUND = "NotFound"  # Producer reported the file as gone
    HASH_MISMATCH = "HashMismatch"  # File exists but its content differs from file_hash


class ProcessStatus(str, Enum):
    """
    Progress of notifying the configured targets about a scan event.

    Workflow: Pending -> Complete
    Retry: Pending -> Retry -> ... -> Complete
    Alternative: -> Failed (after max_retries failed attempts)
    Complete and Failed are terminal.
    """

    PENDING = "Pending"
    RETRY = "Retry"
    COMPLETE = "Complete"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessStatus.COMPLETE, ProcessStatus.FAILED)


class EventType(str, Enum):
    """Kinds of batched reports sent to webhooks."""

    FOUND = "Found"
    PROCESSED = "Processed"
    ERROR = "Error"


class NewScanEvent(BaseModel):
    """Payload a trigger hands to the event store to start tracking a file."""

    file_path: str = Field(..., min_length=1, description="Absolute path of the file")
    file_hash: Optional[str] = Field(
        default=None, description="Expected SHA-256 of the file content (hex)"
    )
    found_status: FoundStatus = Field(
        default=FoundStatus.PENDING, description="Initial found status"
    )


class ScanEvent(BaseModel):
    """
    A file under observation and its progress through the reconciliation pipeline.

    Loaded from and written back to the `scan_events` table by EventRepository.
    All timestamps are naive UTC.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Identifier assigned by the event store")
    file_path: str = Field(..., description="Absolute path of the file")
    file_hash: Optional[str] = Field(
        default=None, description="Producer supplied SHA-256, never changed afterwards"
    )

    found_status: FoundStatus = FoundStatus.PENDING
    process_status: ProcessStatus = ProcessStatus.PENDING

    failed_times: int = Field(default=0, ge=0, description="Failed dispatch attempts")
    next_retry_at: Optional[datetime] = Field(
        default=None, description="Earliest time of the next dispatch attempt (Retry only)"
    )

    targets_hit: List[str] = Field(
        default_factory=list, description="Targets that already accepted this event"
    )

    created_at: datetime
    updated_at: datetime
    found_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    def mark_targets_hit(self, names: List[str]) -> None:
        """Add target names to targets_hit, ignoring ones already present."""
        for name in names:
            if name not in self.targets_hit:
                self.targets_hit.append(name)


class Stats(BaseModel):
    """Point-in-time counters over the event store. Categories overlap."""

    total: int = 0
    found: int = 0
    pending: int = 0
    processed: int = 0
    failed: int = 0


class StatsResponse(BaseModel):
    stats: Stats
    speed: float = Field(..., description="Time spent computing stats in milliseconds")
