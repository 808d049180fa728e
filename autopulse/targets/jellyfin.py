"""
Jellyfin target.

Refreshes the library item for a file when Jellyfin already knows it,
otherwise reports the path as modified so the next library scan picks it up.
"""

import logging
from typing import Any, Dict, List, Literal, Optional

import httpx
from pydantic import BaseModel, Field

from autopulse.core.exceptions import TargetProcessError
from autopulse.models import ScanEvent
from autopulse.targets.base import path_in_location


class JellyfinTarget(BaseModel):
    type: Literal["jellyfin"] = "jellyfin"
    url: str = Field(..., description="Base URL of the Jellyfin server")
    token: str = Field(..., description="API key sent as X-Emby-Token")
    refresh_mode: str = Field(default="FullRefresh", description="metadataRefreshMode")
    timeout: float = Field(default=30.0, gt=0)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.url,
            headers={"X-Emby-Token": self.token, "Accept": "application/json"},
            timeout=self.timeout,
        )

    async def _libraries(self, client: httpx.AsyncClient) -> List[Dict[str, Any]]:
        response = await client.get("/Library/VirtualFolders")
        response.raise_for_status()
        return response.json()

    async def _find_item(
        self, client: httpx.AsyncClient, file_path: str
    ) -> Optional[Dict[str, Any]]:
        response = await client.get(
            "/Items",
            params={"Recursive": "true", "Fields": "Path", "EnableImages": "false"},
        )
        response.raise_for_status()
        for item in response.json().get("Items", []):
            if item.get("Path") == file_path:
                return item
        return None

    async def _refresh_item(self, client: httpx.AsyncClient, item: Dict[str, Any]) -> None:
        response = await client.post(
            f"/Items/{item['Id']}/Refresh",
            params={"metadataRefreshMode": self.refresh_mode},
        )
        if response.is_error:
            raise TargetProcessError(
                "jellyfin", f"refresh of item {item['Id']} failed: {response.text}"
            )

    async def _report_updated(self, client: httpx.AsyncClient, file_path: str) -> None:
        response = await client.post(
            "/Library/Media/Updated",
            json={"Updates": [{"Path": file_path, "UpdateType": "Modified"}]},
        )
        if response.is_error:
            raise TargetProcessError(
                "jellyfin", f"media update for {file_path} failed: {response.text}"
            )

    async def process(self, event: ScanEvent) -> None:
        async with self._client() as client:
            libraries = await self._libraries(client)
            in_library = any(
                path_in_location(event.file_path, location)
                for library in libraries
                for location in library.get("Locations", [])
            )
            if not in_library:
                raise TargetProcessError(
                    "jellyfin", f"{event.file_path} is not in any Jellyfin library"
                )

            item = await self._find_item(client, event.file_path)
            if item is not None:
                logging.debug(f"Jellyfin item {item['Id']} found, refreshing")
                await self._refresh_item(client, item)
            else:
                logging.debug(f"Jellyfin item not found for {event.file_path}, reporting update")
                await self._report_updated(client, event.file_path)
