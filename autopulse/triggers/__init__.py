"""
Triggers: producers that create scan events.
"""

from .manual import ManualTrigger, Rewrite

Trigger = ManualTrigger

__all__ = [
    "ManualTrigger",
    "Rewrite",
    "Trigger",
]
