from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from autopulse.models import EventType, FoundStatus, ProcessStatus
from autopulse.services.notification_service import NotificationService
from autopulse.services.process_status_advancer import ProcessStatusAdvancer, retry_backoff
from autopulse.services.target_dispatcher import TargetDispatcher


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=NotificationService)


@pytest.fixture
def build_advancer(repository, notifier, clock):
    def _build(targets, max_retries: int = 3, check_path: bool = False) -> ProcessStatusAdvancer:
        return ProcessStatusAdvancer(
            repository=repository,
            dispatcher=TargetDispatcher(timeout_seconds=5),
            notifier=notifier,
            targets=targets,
            max_retries=max_retries,
            check_path=check_path,
            clock=clock,
        )

    return _build


class TestRetryBackoff:

    @pytest.mark.parametrize("failed_times, seconds", [(1, 4), (2, 8), (3, 16), (4, 32)])
    def test_backoff_doubles_from_four_seconds(self, failed_times, seconds):
        assert retry_backoff(failed_times) == timedelta(seconds=seconds)


@pytest.mark.asyncio
class TestProcessStatusAdvancer:

    async def test_no_targets_completes_on_first_tick(self, build_advancer, repository, notifier, clock, create_event):
        event = await create_event("/media/a.mkv")

        result = await build_advancer({}).advance()

        loaded = await repository.get_by_id(event.id)
        assert loaded.process_status == ProcessStatus.COMPLETE
        assert loaded.processed_at == clock.now
        assert loaded.failed_times == 0
        assert result.processed == ["/media/a.mkv"]
        notifier.notify.assert_awaited_once_with(EventType.PROCESSED, ["/media/a.mkv"])

    async def test_success_records_targets_hit(self, build_advancer, repository, make_target, create_event):
        plex, jellyfin = make_target(), make_target()
        event = await create_event("/media/a.mkv")

        await build_advancer({"plex": plex, "jellyfin": jellyfin}).advance()

        loaded = await repository.get_by_id(event.id)
        assert loaded.process_status == ProcessStatus.COMPLETE
        assert sorted(loaded.targets_hit) == ["jellyfin", "plex"]
        assert plex.calls == ["/media/a.mkv"]
        assert jellyfin.calls == ["/media/a.mkv"]

    async def test_failure_schedules_retry_with_backoff(self, build_advancer, repository, notifier, make_target, clock, create_event):
        event = await create_event("/media/a.mkv")

        await build_advancer({"broken": make_target(fail=True)}).advance()

        loaded = await repository.get_by_id(event.id)
        assert loaded.process_status == ProcessStatus.RETRY
        assert loaded.failed_times == 1
        assert loaded.next_retry_at == clock.now + timedelta(seconds=4)
        assert loaded.updated_at == clock.now
        notifier.notify.assert_not_called()

    async def test_retry_gate_and_escalation(self, build_advancer, repository, notifier, make_target, clock, create_event):
        target = make_target(fail=True)
        advancer = build_advancer({"broken": target}, max_retries=3)
        event = await create_event("/media/a.mkv")

        await advancer.advance()
        assert len(target.calls) == 1

        # Still inside the 4s window
        clock.advance(seconds=3)
        await advancer.advance()
        assert len(target.calls) == 1

        clock.advance(seconds=2)
        await advancer.advance()
        loaded = await repository.get_by_id(event.id)
        assert len(target.calls) == 2
        assert loaded.failed_times == 2
        assert loaded.next_retry_at == clock.now + timedelta(seconds=8)

        clock.advance(seconds=9)
        await advancer.advance()
        loaded = await repository.get_by_id(event.id)
        assert loaded.failed_times == 3
        assert loaded.process_status == ProcessStatus.FAILED
        assert loaded.next_retry_at is None
        notifier.notify.assert_awaited_once_with(EventType.ERROR, ["/media/a.mkv"])

    async def test_failed_is_terminal(self, build_advancer, repository, make_target, clock, create_event):
        target = make_target(fail=True)
        advancer = build_advancer({"broken": target}, max_retries=1)
        event = await create_event("/media/a.mkv")

        await advancer.advance()
        target.fail = False
        for _ in range(3):
            clock.advance(minutes=10)
            await advancer.advance()

        loaded = await repository.get_by_id(event.id)
        assert loaded.process_status == ProcessStatus.FAILED
        assert loaded.failed_times == 1
        assert len(target.calls) == 1

    async def test_skips_targets_already_hit(self, build_advancer, repository, make_target, create_event):
        plex, jellyfin = make_target(), make_target()
        event = await create_event("/media/a.mkv", targets_hit=["plex"])

        await build_advancer({"plex": plex, "jellyfin": jellyfin}).advance()

        assert plex.calls == []
        assert jellyfin.calls == ["/media/a.mkv"]
        loaded = await repository.get_by_id(event.id)
        assert sorted(loaded.targets_hit) == ["jellyfin", "plex"]

    async def test_partial_success_only_retries_failed_target(
        self, build_advancer, repository, make_target, clock, create_event
    ):
        plex, jellyfin = make_target(), make_target(fail=True)
        advancer = build_advancer({"plex": plex, "jellyfin": jellyfin})
        event = await create_event("/media/a.mkv")

        await advancer.advance()
        loaded = await repository.get_by_id(event.id)
        assert loaded.targets_hit == ["plex"]
        assert loaded.process_status == ProcessStatus.RETRY

        jellyfin.fail = False
        clock.advance(seconds=5)
        await advancer.advance()

        loaded = await repository.get_by_id(event.id)
        assert plex.calls == ["/media/a.mkv"]
        assert jellyfin.calls == ["/media/a.mkv", "/media/a.mkv"]
        assert loaded.process_status == ProcessStatus.COMPLETE
        assert loaded.next_retry_at is None
        assert sorted(loaded.targets_hit) == ["jellyfin", "plex"]

    async def test_check_path_gates_on_found(self, build_advancer, repository, make_target, create_event):
        target = make_target()
        pending = await create_event("/media/pending.mkv")
        found = await create_event("/media/found.mkv", found_status=FoundStatus.FOUND)

        await build_advancer({"plex": target}, check_path=True).advance()

        assert target.calls == ["/media/found.mkv"]
        assert (await repository.get_by_id(pending.id)).process_status == ProcessStatus.PENDING
        assert (await repository.get_by_id(found.id)).process_status == ProcessStatus.COMPLETE

    async def test_batches_notifications(self, build_advancer, notifier, make_target, create_event):
        await create_event("/media/a.mkv")
        await create_event("/media/b.mkv")

        await build_advancer({"plex": make_target()}).advance()

        notifier.notify.assert_awaited_once_with(
            EventType.PROCESSED, ["/media/a.mkv", "/media/b.mkv"]
        )

    def test_rejects_zero_max_retries(self, repository, notifier):
        with pytest.raises(ValueError):
            ProcessStatusAdvancer(
                repository=repository,
                dispatcher=TargetDispatcher(),
                notifier=notifier,
                targets={},
                max_retries=0,
                check_path=False,
            )
