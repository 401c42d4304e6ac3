"""
Component Manager.

CRUD over the staged components. Every read re-runs the projection engine
first, so a component's status always reflects the open incidents; the
document is written back only when projection changed something.

A manual status change survives only until the next read, when projection
recomputes it from the open incidents.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping

import aiohttp

from stagingpage.errors import NotFoundError, UpstreamError
from stagingpage.models import COMPONENT_STATUSES, OPERATIONAL
from stagingpage.projection import project_component_statuses
from stagingpage.store import StateStore
from stagingpage.timestamps import generate_id, utc_now

if TYPE_CHECKING:
    from stagingpage.live_client import StatuspageClient

logger = logging.getLogger(__name__)


class ComponentManager:
    """Reads and writes the ``components`` section of the staging document."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def list(self) -> List[Dict[str, Any]]:
        """All components, reconciled against the open incidents."""
        with self.store.lock:
            document = self.store.load()
            projection = project_component_statuses(document["components"], document["incidents"])
            if projection.changed:
                document["components"] = projection.components
                self.store.save(document)
                logger.info("Projection updated component statuses")
        return projection.components

    def get(self, component_id: str) -> Dict[str, Any]:
        for component in self.list():
            if component.get("id") == component_id:
                return component
        raise NotFoundError("components", component_id)

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        component: Dict[str, Any] = {
            "name": "Test Component",
            "status": OPERATIONAL,
            **payload,
            "id": generate_id(),
            "created_at": now,
            "updated_at": now,
        }
        self._check_status(component.get("status"))
        with self.store.edit() as document:
            document["components"].append(component)
        logger.info("Created component %s", component["id"])
        return component

    def update(self, component_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Shallow-merge ``payload`` into the component and refresh ``updated_at``."""
        self._check_status(payload.get("status"))
        with self.store.edit() as document:
            for index, component in enumerate(document["components"]):
                if component.get("id") == component_id:
                    fields = {k: v for k, v in payload.items() if k not in ("id", "created_at", "componentId")}
                    document["components"][index] = {**component, **fields, "updated_at": utc_now()}
                    return document["components"][index]
            raise NotFoundError("components", component_id)

    def delete(self, component_id: str) -> None:
        with self.store.edit() as document:
            remaining = [c for c in document["components"] if c.get("id") != component_id]
            if len(remaining) == len(document["components"]):
                raise NotFoundError("components", component_id)
            document["components"] = remaining

    async def seed(self, client: "StatuspageClient", force: bool = False) -> List[Dict[str, Any]]:
        """
        Copy the live component list into the store.

        Only fills an empty store unless ``force`` is set. A failing live call
        is logged and the current components are returned unchanged.
        """
        if self.store.load()["components"] and not force:
            return self.list()

        try:
            live_components = await client.list_components()
        except (aiohttp.ClientError, asyncio.TimeoutError, UpstreamError) as exc:
            logger.error("Seeding components from the live page failed: %s", exc)
            return self.list()

        now = utc_now()
        seeded = [
            {**component, "updated_at": component.get("updated_at") or now}
            for component in live_components
            if isinstance(component, Mapping)
        ]
        with self.store.edit() as document:
            document["components"] = seeded
        logger.info("Seeded %d components from the live page", len(seeded))
        return self.list()

    @staticmethod
    def _check_status(status: Any) -> None:
        if status is not None and status not in COMPONENT_STATUSES:
            logger.warning("Accepting component status %r outside the known set", status)
