# autopulse/core/exceptions.py


class AutopulseError(Exception):
    """Base class for errors raised by autopulse."""


class TargetProcessError(AutopulseError):
    """Raised by a target when it could not handle a scan event."""
    def __init__(self, target_name: str, reason: str):
        self.target_name = target_name
        self.reason = reason
        super().__init__(f"Target '{target_name}' failed: {reason}")


class WebhookDeliveryError(AutopulseError):
    """Raised by a webhook when a report could not be delivered."""
    def __init__(self, webhook_name: str, reason: str):
        self.webhook_name = webhook_name
        self.reason = reason
        super().__init__(f"Webhook '{webhook_name}' delivery failed: {reason}")


class EventNotFoundError(AutopulseError):
    """Raised when a scan event id does not exist in the store."""
    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__(f"Scan event {event_id} does not exist")
