"""
Notification sink for batched pipeline reports.
"""
import asyncio
import logging
from typing import Mapping, Optional, Sequence

from autopulse.models import EventType
from autopulse.webhooks.base import WebhookSend


class NotificationService:
    """
    Sends Found/Processed/Error reports to every configured webhook.

    Delivery is best effort: webhooks are called concurrently, and a webhook
    that raises is logged without affecting the others or the caller. Nothing
    is retried.
    """

    def __init__(self, webhooks: Mapping[str, WebhookSend]):
        self._webhooks = dict(webhooks)
        logging.info(f"NotificationService initialized with {len(self._webhooks)} webhook(s)")

    async def notify(
        self,
        event_type: EventType,
        paths: Sequence[str],
        context: Optional[str] = None,
    ) -> None:
        """
        Report a batch of paths to all webhooks.

        Args:
            event_type: Kind of report
            paths: File paths in the batch; an empty batch sends nothing
            context: Optional free text shown alongside the report
        """
        if not paths or not self._webhooks:
            return

        logging.debug(
            f"Sending {event_type.value} report with {len(paths)} path(s) "
            f"to {len(self._webhooks)} webhook(s)"
        )

        tasks = [
            self._safe_send(name, webhook, event_type, context, list(paths))
            for name, webhook in self._webhooks.items()
        ]
        await asyncio.gather(*tasks)

    async def _safe_send(
        self,
        name: str,
        webhook: WebhookSend,
        event_type: EventType,
        context: Optional[str],
        paths: Sequence[str],
    ) -> None:
        try:
            await webhook.send(event_type, context, paths)
        except Exception as e:
            logging.error(
                f"Webhook '{name}' failed to deliver {event_type.value} report: {e}",
                exc_info=True,
            )
