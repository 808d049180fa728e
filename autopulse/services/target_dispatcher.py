import asyncio
import logging
from dataclasses import dataclass, field
from typing import Collection, List, Mapping, Optional

from autopulse.models import ScanEvent
from autopulse.targets.base import TargetProcess


@dataclass
class DispatchResult:
    """Names of the targets that accepted or rejected one scan event."""

    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


class TargetDispatcher:
    """
    Hands a scan event to every configured target that has not accepted it yet.

    A target that raises or times out is logged and recorded as failed; the
    remaining targets are still attempted and `dispatch` itself never raises.
    Targets are called in mapping order, which is configuration order.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._timeout_seconds = timeout_seconds
        logging.info(f"TargetDispatcher initialized (timeout per target: {timeout_seconds}s)")

    async def dispatch(
        self,
        event: ScanEvent,
        targets: Mapping[str, TargetProcess],
        already_succeeded: Collection[str] = (),
    ) -> DispatchResult:
        result = DispatchResult()

        for name, target in targets.items():
            if name in already_succeeded:
                continue

            try:
                await asyncio.wait_for(target.process(event), timeout=self._timeout_seconds)
                result.succeeded.append(name)
                logging.debug(f"Target '{name}' accepted {event.file_path}")
            except asyncio.TimeoutError:
                result.failed.append(name)
                logging.error(
                    f"Target '{name}' timed out after {self._timeout_seconds}s for {event.file_path}"
                )
            except Exception as e:
                result.failed.append(name)
                logging.error(f"Failed to process target '{name}' for {event.file_path}: {e}")

        return result
