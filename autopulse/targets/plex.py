"""
Plex target: asks Plex to rescan the folder holding a file.
"""

import logging
import posixpath
from typing import Any, Dict, List, Literal, Optional

import httpx
from pydantic import BaseModel, Field

from autopulse.core.exceptions import TargetProcessError
from autopulse.models import ScanEvent
from autopulse.targets.base import path_in_location


class PlexTarget(BaseModel):
    type: Literal["plex"] = "plex"
    url: str = Field(..., description="Base URL of the Plex server")
    token: str = Field(..., description="X-Plex-Token")
    timeout: float = Field(default=30.0, gt=0)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.url,
            headers={"X-Plex-Token": self.token, "Accept": "application/json"},
            timeout=self.timeout,
        )

    async def _libraries(self, client: httpx.AsyncClient) -> List[Dict[str, Any]]:
        response = await client.get("/library/sections")
        response.raise_for_status()
        return response.json().get("MediaContainer", {}).get("Directory", [])

    @staticmethod
    def _find_library(
        libraries: List[Dict[str, Any]], file_path: str
    ) -> Optional[Dict[str, Any]]:
        for library in libraries:
            for location in library.get("Location", []):
                if path_in_location(file_path, location.get("path", "")):
                    return library
        return None

    async def process(self, event: ScanEvent) -> None:
        async with self._client() as client:
            library = self._find_library(await self._libraries(client), event.file_path)
            if library is None:
                raise TargetProcessError(
                    "plex", f"{event.file_path} is not in any Plex library"
                )

            directory = posixpath.dirname(event.file_path) or event.file_path
            response = await client.get(
                f"/library/sections/{library['key']}/refresh",
                params={"path": directory},
            )

            if response.is_error:
                raise TargetProcessError(
                    "plex", f"refresh returned {response.status_code}: {response.text}"
                )

        logging.debug(f"Plex refresh requested for {directory} in '{library.get('title')}'")
