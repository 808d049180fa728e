import hashlib
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from autopulse.models import EventType, FoundStatus
from autopulse.services.found_status_resolver import FoundStatusResolver
from autopulse.services.notification_service import NotificationService

pytestmark = pytest.mark.asyncio


def sha256_of(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=NotificationService)


@pytest.fixture
def resolver(repository, notifier, clock) -> FoundStatusResolver:
    return FoundStatusResolver(
        repository=repository, notifier=notifier, check_path=True, clock=clock
    )


@pytest.fixture
def media_file(tmp_path):
    path = tmp_path / "episode.mkv"
    path.write_bytes(b"episode content")
    return path


class TestFoundStatusResolver:

    async def test_disabled_check_path_is_noop(self, repository, notifier, clock, create_event, media_file):
        event = await create_event(str(media_file))
        resolver = FoundStatusResolver(
            repository=repository, notifier=notifier, check_path=False, clock=clock
        )

        assert await resolver.resolve() == []

        loaded = await repository.get_by_id(event.id)
        assert loaded.found_status == FoundStatus.PENDING
        assert loaded.updated_at == event.updated_at
        notifier.notify.assert_not_called()

    async def test_missing_file_keeps_status(self, resolver, repository, notifier, clock, create_event, tmp_path):
        event = await create_event(str(tmp_path / "not_there.mkv"))

        await resolver.resolve()

        loaded = await repository.get_by_id(event.id)
        assert loaded.found_status == FoundStatus.PENDING
        assert loaded.found_at is None
        assert loaded.updated_at == clock.now
        notifier.notify.assert_not_called()

    async def test_file_without_hash_becomes_found(self, resolver, repository, notifier, clock, create_event, media_file):
        event = await create_event(str(media_file))

        newly_found = await resolver.resolve()

        loaded = await repository.get_by_id(event.id)
        assert loaded.found_status == FoundStatus.FOUND
        assert loaded.found_at == clock.now
        assert newly_found == [str(media_file)]
        notifier.notify.assert_awaited_once_with(EventType.FOUND, [str(media_file)])

    async def test_found_events_are_not_revisited(self, resolver, notifier, clock, create_event, media_file):
        await create_event(str(media_file))
        await resolver.resolve()
        clock.advance(seconds=1)

        assert await resolver.resolve() == []
        assert notifier.notify.await_count == 1

    async def test_matching_hash_becomes_found_without_notification(
        self, resolver, repository, notifier, clock, create_event, media_file
    ):
        event = await create_event(str(media_file), file_hash=sha256_of(b"episode content"))

        assert await resolver.resolve() == []

        loaded = await repository.get_by_id(event.id)
        assert loaded.found_status == FoundStatus.FOUND
        assert loaded.found_at == clock.now
        notifier.notify.assert_not_called()

    async def test_hash_mismatch_is_permanent(self, resolver, repository, clock, create_event, media_file):
        event = await create_event(str(media_file), file_hash=sha256_of(b"something else"))

        await resolver.resolve()
        first = await repository.get_by_id(event.id)
        assert first.found_status == FoundStatus.HASH_MISMATCH
        assert first.found_at == clock.now
        assert first.file_hash == sha256_of(b"something else")

        first_found_at = clock.now
        for _ in range(3):
            clock.advance(minutes=5)
            await resolver.resolve()

        later = await repository.get_by_id(event.id)
        assert later.found_status == FoundStatus.HASH_MISMATCH
        assert later.found_at == first_found_at
        assert later.updated_at == first_found_at + timedelta(minutes=15)

    async def test_hash_error_leaves_status_and_continues(
        self, repository, notifier, clock, create_event, tmp_path
    ):
        unreadable = tmp_path / "locked.mkv"
        unreadable.write_bytes(b"locked")
        readable = tmp_path / "open.mkv"
        readable.write_bytes(b"open")

        locked_event = await create_event(str(unreadable))
        open_event = await create_event(str(readable))

        async def hasher(path: str) -> str:
            if path == str(unreadable):
                raise PermissionError("denied")
            return sha256_of(b"open")

        resolver = FoundStatusResolver(
            repository=repository, notifier=notifier, check_path=True, hasher=hasher, clock=clock
        )
        newly_found = await resolver.resolve()

        assert (await repository.get_by_id(locked_event.id)).found_status == FoundStatus.PENDING
        assert (await repository.get_by_id(open_event.id)).found_status == FoundStatus.FOUND
        assert newly_found == [str(readable)]

    async def test_directory_path_is_a_per_event_error(self, resolver, repository, create_event, tmp_path):
        event = await create_event(str(tmp_path))

        await resolver.resolve()

        assert (await repository.get_by_id(event.id)).found_status == FoundStatus.PENDING
