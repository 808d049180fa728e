"""
Utilities package for autopulse.

Small helpers with no knowledge of the event store or the pipeline.
"""

from .checksum import sha256_checksum
from .clock import utcnow

__all__ = [
    "sha256_checksum",
    "utcnow",
]
