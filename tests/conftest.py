"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import pytest
import pytest_asyncio

from autopulse.core.database import Database
from autopulse.core.event_repository import EventRepository
from autopulse.core.exceptions import TargetProcessError
from autopulse.dependencies import reset_singletons
from autopulse.models import EventType, NewScanEvent, ScanEvent


class FakeClock:
    """Callable clock the pipeline components accept instead of utcnow."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeTarget:
    """Target that records the paths it was given and optionally fails."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[str] = []

    async def process(self, event: ScanEvent) -> None:
        self.calls.append(event.file_path)
        if self.fail:
            raise TargetProcessError("fake", "simulated outage")


class RecordingWebhook:
    """Webhook that keeps every report it receives."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.reports: List[tuple] = []

    async def send(
        self, event_type: EventType, context: Optional[str], paths: Sequence[str]
    ) -> None:
        self.reports.append((event_type, context, list(paths)))
        if self.fail:
            raise RuntimeError("webhook down")


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before each test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'autopulse.db'}")
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def repository(database) -> EventRepository:
    return EventRepository(database)


@pytest.fixture
def make_target():
    return FakeTarget


@pytest.fixture
def make_webhook():
    return RecordingWebhook


@pytest_asyncio.fixture
async def create_event(repository: EventRepository):
    """Insert an event, then force any pipeline-owned fields given as kwargs."""

    async def _create(file_path: str, file_hash: Optional[str] = None, **fields) -> ScanEvent:
        event = await repository.add(NewScanEvent(file_path=file_path, file_hash=file_hash))
        if fields:
            event = await repository.update(event.model_copy(update=fields))
        return event

    return _create
