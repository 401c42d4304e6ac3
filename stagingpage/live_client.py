"""
Live Statuspage API client.

The staging store only talks to the live page for two things: importing the
component list when seeding, and deleting demo-created incidents/templates
during the cleanup sweep. The caller owns the aiohttp session.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import aiohttp

from stagingpage.errors import UpstreamError
from stagingpage.models import LiveApiConfig

_TIMEOUT = aiohttp.ClientTimeout(total=15)


class StatuspageClient:
    """
    Thin wrapper over the live page's REST endpoints.

    Attributes:
        session: Shared aiohttp session (connection pooling).
        config: Base URL, API key and page id.
    """

    def __init__(self, session: aiohttp.ClientSession, config: LiveApiConfig) -> None:
        self.session = session
        self.config = config

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"OAuth {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/pages/{self.config.page_id}/{path}"

    async def list_components(self) -> List[Dict[str, Any]]:
        """
        Fetch the live component list.

        Raises:
            UpstreamError: The page answered with a non-2xx status.
        """
        async with self.session.get(
            self._url("components"),
            headers=self._headers,
            timeout=_TIMEOUT,
        ) as resp:
            if resp.status >= 300:
                raise UpstreamError(resp.status, await resp.text(errors="replace"))
            data = await resp.json()
        return data if isinstance(data, list) else []

    async def delete_incident(self, incident_id: str) -> Tuple[int, str]:
        return await self._delete(f"incidents/{incident_id}")

    async def delete_template(self, template_id: str) -> Tuple[int, str]:
        return await self._delete(f"incident_templates/{template_id}")

    async def _delete(self, path: str) -> Tuple[int, str]:
        """Issue a DELETE and hand back ``(status, body text)``."""
        async with self.session.delete(
            self._url(path),
            headers=self._headers,
            timeout=_TIMEOUT,
        ) as resp:
            return resp.status, await resp.text(errors="replace")
