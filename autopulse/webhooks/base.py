from typing import Optional, Protocol, Sequence, runtime_checkable

from autopulse.models import EventType


@runtime_checkable
class WebhookSend(Protocol):
    """An outbound channel for batched pipeline reports.

    `send` raises when the report could not be delivered.
    """

    async def send(
        self, event_type: EventType, context: Optional[str], paths: Sequence[str]
    ) -> None: ...
