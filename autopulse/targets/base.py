from typing import Protocol, runtime_checkable

from autopulse.models import ScanEvent


@runtime_checkable
class TargetProcess(Protocol):
    """A downstream system that must be told about a scan event.

    `process` returns normally on success and raises on failure.
    """

    async def process(self, event: ScanEvent) -> None: ...


def path_in_location(file_path: str, location: str) -> bool:
    """True if file_path is location itself or lies below it."""
    location = location.rstrip("/\\")
    if not location:
        return False
    return file_path == location or file_path.startswith((location + "/", location + "\\"))
