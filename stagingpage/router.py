"""
Resource router.

Dispatches resource-scoped ``get/list/create/update/delete`` calls for
components, incidents and templates to the manager that owns the resource,
and records every create in the demo tracker.

Tracked ids are the staging ids (``test_...``) of the created items. The
sweep sends them to the live API, which has never seen them, so each one
answers 404 and is simply untracked.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from stagingpage.components import ComponentManager
from stagingpage.demo_tracker import EphemeralTracker
from stagingpage.errors import InvalidResourceError
from stagingpage.incidents import DEFAULT_LIST_LIMIT, IncidentManager
from stagingpage.live_client import StatuspageClient
from stagingpage.models import RESOURCES
from stagingpage.store import StateStore
from stagingpage.templates import TemplateStore


class ResourceRouter:
    def __init__(self, store: StateStore, tracker: EphemeralTracker) -> None:
        self.store = store
        self.tracker = tracker
        self.components = ComponentManager(store)
        self.incidents = IncidentManager(store)
        self.templates = TemplateStore(store)

    def _manager(self, resource: Optional[str]):
        if resource not in RESOURCES:
            raise InvalidResourceError(resource)
        return getattr(self, resource)

    def get(self, resource: str, item_id: str) -> Dict[str, Any]:
        return self._manager(resource).get(item_id)

    def list(self, resource: str, query: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        List a resource. Incidents honour ``query["limit"]`` (default 50).

        Component listings run projection first.
        """
        manager = self._manager(resource)
        if resource == "incidents":
            return manager.list((query or {}).get("limit", DEFAULT_LIST_LIMIT))
        return manager.list()

    def create(self, resource: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        created = self._manager(resource).create(body)
        self.tracker.track(resource, created["id"])
        return created

    def update(self, resource: str, item_id: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        return self._manager(resource).update(item_id, body)

    def delete(self, resource: str, item_id: str) -> None:
        self._manager(resource).delete(item_id)

    async def seed_components(self, client: StatuspageClient, force: bool = False) -> List[Dict[str, Any]]:
        """Import the live component list; a no-op on a populated store unless forced."""
        return await self.components.seed(client, force=force)
