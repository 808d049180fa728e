"""
Targets: downstream systems that are told about scan events.

Each target is a configuration model with a single async `process(event)`
method; the `type` field selects the implementation.
"""

from typing import Annotated, Union

from pydantic import Field

from .base import TargetProcess, path_in_location
from .command import CommandTarget
from .jellyfin import JellyfinTarget
from .plex import PlexTarget

Target = Annotated[
    Union[PlexTarget, JellyfinTarget, CommandTarget],
    Field(discriminator="type"),
]

__all__ = [
    "CommandTarget",
    "JellyfinTarget",
    "PlexTarget",
    "Target",
    "TargetProcess",
    "path_in_location",
]
