"""
Discord webhook: posts pipeline reports as embeds.
"""

from typing import Any, Dict, List, Literal, Optional, Sequence

import httpx
from pydantic import BaseModel, Field

from autopulse.core.exceptions import WebhookDeliveryError
from autopulse.models import EventType

# Discord limits
MAX_EMBEDS_PER_MESSAGE = 10
MAX_DESCRIPTION_LENGTH = 4096
MAX_MESSAGE_TEXT_LENGTH = 6000  # title + description over all embeds of one message

PATHS_PER_EMBED = 20

EVENT_COLORS = {
    EventType.FOUND: 0x3498DB,
    EventType.PROCESSED: 0x2ECC71,
    EventType.ERROR: 0xE74C3C,
}


class DiscordWebhook(BaseModel):
    type: Literal["discord"] = "discord"
    url: str = Field(..., description="Discord webhook URL")
    username: str = Field(default="autopulse")
    avatar_url: Optional[str] = None
    timeout: float = Field(default=10.0, gt=0)

    def build_embeds(
        self, event_type: EventType, context: Optional[str], paths: Sequence[str]
    ) -> List[Dict[str, Any]]:
        """One embed per PATHS_PER_EMBED paths, titled with the event type and count."""
        title = f"[{event_type.value}] {len(paths)} file{'s' if len(paths) != 1 else ''}"
        if context:
            title = f"{title} - {context}"

        embeds = []
        for start in range(0, len(paths), PATHS_PER_EMBED):
            description = "\n".join(paths[start:start + PATHS_PER_EMBED])
            if len(description) > MAX_DESCRIPTION_LENGTH:
                description = description[: MAX_DESCRIPTION_LENGTH - 3] + "..."
            embeds.append(
                {
                    "title": title,
                    "description": description,
                    "color": EVENT_COLORS[event_type],
                }
            )
        return embeds

    def build_messages(
        self, event_type: EventType, context: Optional[str], paths: Sequence[str]
    ) -> List[Dict[str, Any]]:
        """Group embeds into messages within the per-message embed count and text limits."""
        groups: List[List[Dict[str, Any]]] = []
        current: List[Dict[str, Any]] = []
        current_length = 0

        for embed in self.build_embeds(event_type, context, paths):
            length = len(embed["title"]) + len(embed["description"])
            if current and (
                len(current) >= MAX_EMBEDS_PER_MESSAGE
                or current_length + length > MAX_MESSAGE_TEXT_LENGTH
            ):
                groups.append(current)
                current, current_length = [], 0
            current.append(embed)
            current_length += length

        if current:
            groups.append(current)

        messages = []
        for embeds in groups:
            message: Dict[str, Any] = {"username": self.username, "embeds": embeds}
            if self.avatar_url:
                message["avatar_url"] = self.avatar_url
            messages.append(message)
        return messages

    async def send(
        self, event_type: EventType, context: Optional[str], paths: Sequence[str]
    ) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for message in self.build_messages(event_type, context, paths):
                try:
                    response = await client.post(self.url, json=message)
                except httpx.HTTPError as e:
                    raise WebhookDeliveryError("discord", str(e)) from e

                if response.is_error:
                    raise WebhookDeliveryError(
                        "discord", f"status {response.status_code}: {response.text}"
                    )
