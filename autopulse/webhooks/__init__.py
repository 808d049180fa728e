"""
Webhooks: outbound channels for batched Found/Processed/Error reports.
"""

from .base import WebhookSend
from .discord import DiscordWebhook

# Single provider today; becomes an Annotated discriminated union like Target
# once a second one exists
Webhook = DiscordWebhook

__all__ = [
    "DiscordWebhook",
    "Webhook",
    "WebhookSend",
]
