from functools import lru_cache
from typing import Any, Dict

from .config import Settings
from .core.database import Database
from .core.event_repository import EventRepository
from .services.found_status_resolver import FoundStatusResolver
from .services.notification_service import NotificationService
from .services.process_status_advancer import ProcessStatusAdvancer
from .services.pulse_scheduler import PulseScheduler
from .services.pulse_service import PulseService
from .services.retention_cleaner import RetentionCleaner
from .services.target_dispatcher import TargetDispatcher

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Settings snapshot shared by the scheduler and the request handlers."""
    return Settings()


def get_database() -> Database:
    if "database" not in _singletons:
        database = Database(get_settings().database_url)
        database.create_schema()
        _singletons["database"] = database
    return _singletons["database"]


def get_event_repository() -> EventRepository:
    if "event_repository" not in _singletons:
        _singletons["event_repository"] = EventRepository(get_database())
    return _singletons["event_repository"]


def get_pulse_service() -> PulseService:
    if "pulse_service" not in _singletons:
        _singletons["pulse_service"] = PulseService(get_event_repository())
    return _singletons["pulse_service"]


def get_notification_service() -> NotificationService:
    if "notification_service" not in _singletons:
        _singletons["notification_service"] = NotificationService(get_settings().webhooks)
    return _singletons["notification_service"]


def get_target_dispatcher() -> TargetDispatcher:
    if "target_dispatcher" not in _singletons:
        _singletons["target_dispatcher"] = TargetDispatcher(
            timeout_seconds=get_settings().target_timeout_seconds
        )
    return _singletons["target_dispatcher"]


def get_found_status_resolver() -> FoundStatusResolver:
    if "found_status_resolver" not in _singletons:
        _singletons["found_status_resolver"] = FoundStatusResolver(
            repository=get_event_repository(),
            notifier=get_notification_service(),
            check_path=get_settings().check_path,
        )
    return _singletons["found_status_resolver"]


def get_process_status_advancer() -> ProcessStatusAdvancer:
    if "process_status_advancer" not in _singletons:
        settings = get_settings()
        _singletons["process_status_advancer"] = ProcessStatusAdvancer(
            repository=get_event_repository(),
            dispatcher=get_target_dispatcher(),
            notifier=get_notification_service(),
            targets=settings.targets,
            max_retries=settings.max_retries,
            check_path=settings.check_path,
        )
    return _singletons["process_status_advancer"]


def get_retention_cleaner() -> RetentionCleaner:
    if "retention_cleaner" not in _singletons:
        _singletons["retention_cleaner"] = RetentionCleaner(
            repository=get_event_repository(),
            retention_days=get_settings().cleanup_days,
        )
    return _singletons["retention_cleaner"]


def get_pulse_scheduler() -> PulseScheduler:
    if "pulse_scheduler" not in _singletons:
        _singletons["pulse_scheduler"] = PulseScheduler(
            resolver=get_found_status_resolver(),
            advancer=get_process_status_advancer(),
            cleaner=get_retention_cleaner(),
            interval_seconds=get_settings().tick_interval_seconds,
        )
    return _singletons["pulse_scheduler"]


def reset_singletons() -> None:
    """Drop all singletons (tests). Disposes the database engine if one was created."""
    database = _singletons.get("database")
    if database is not None:
        database.dispose()
    _singletons.clear()
    get_settings.cache_clear()
