"""
Incident Lifecycle Manager.

Creates, updates, resolves and deletes staged incidents. Statuses are not run
through a state machine: any value may follow any other, and values outside
the known vocabularies are stored as given (with a warning).

An incident's ``components`` arrive either as ``{component_id: status}`` or
as a list of snapshots. Both are turned into the snapshot list before
anything is stored; the map form also pushes each status onto the stored
component.

Resolving an incident does not touch components. The projection engine puts
them back to ``operational`` on the next component read.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from stagingpage.errors import NotFoundError
from stagingpage.models import (
    INCIDENT_IMPACTS,
    INCIDENT_STATUSES,
    OPERATIONAL,
    ComponentSnapshot,
    ComponentSnapshotList,
    ComponentStatusMap,
    parse_components_payload,
)
from stagingpage.store import Document, StateStore
from stagingpage.timestamps import generate_id, normalize_timestamp, utc_now

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50

# Owned by the manager; a replace-mode payload cannot overwrite them.
_MANAGED_FIELDS = frozenset(
    {"id", "created_at", "incident_updates", "components", "component_ids", "incident_update"}
)


def _warn_if_unknown(field_name: str, value: Any, allowed: Sequence[str]) -> None:
    if value is not None and value not in allowed:
        logger.warning("Accepting %s %r outside %s", field_name, value, ", ".join(allowed))


def apply_status_map(
    components: List[Dict[str, Any]],
    status_map: ComponentStatusMap,
    now: str,
) -> List[Dict[str, Any]]:
    """
    Push each mapped status onto the stored component and build snapshots.

    Unknown component ids still get a snapshot, named ``Component <id>``.
    """
    snapshots: List[Dict[str, Any]] = []
    for component_id, status in status_map.statuses.items():
        index = next(
            (
                i
                for i, c in enumerate(components)
                if isinstance(c, Mapping) and str(c.get("id")) == component_id
            ),
            None,
        )
        if index is None:
            snapshots.append(ComponentSnapshot(component_id, f"Component {component_id}", status).to_dict())
            continue
        components[index] = {**components[index], "status": status, "updated_at": now}
        name = components[index].get("name") or f"Component {component_id}"
        snapshots.append(ComponentSnapshot(component_id, name, status).to_dict())
    return snapshots


def normalize_components(
    document: Document,
    raw: Any,
    now: str,
) -> Optional[List[Dict[str, Any]]]:
    """
    Turn a raw ``components`` payload into the stored snapshot list.

    Returns None when the payload is neither a map nor a list.
    """
    payload = parse_components_payload(raw)
    if isinstance(payload, ComponentStatusMap):
        return apply_status_map(document["components"], payload, now)
    if isinstance(payload, ComponentSnapshotList):
        return [snapshot.to_dict() for snapshot in payload.snapshots]
    return None


def _snapshots_from_ids(document: Document, component_ids: Sequence[Any]) -> List[Dict[str, Any]]:
    """Affected-but-operational snapshots for a bare ``component_ids`` list."""
    names = {
        c.get("id"): c.get("name") for c in document["components"] if isinstance(c, Mapping)
    }
    return [
        ComponentSnapshot(str(cid), names.get(cid) or f"Component {cid}", OPERATIONAL).to_dict()
        for cid in component_ids
    ]


def _component_list(incident: Mapping[str, Any]) -> List[Any]:
    components = incident.get("components")
    return components if isinstance(components, list) else []


def _stamp_lifecycle(incident: Dict[str, Any], now: str) -> None:
    status = incident.get("status")
    if status == "monitoring" and not incident.get("monitoring_at"):
        incident["monitoring_at"] = now
    elif status == "resolved" and not incident.get("resolved_at"):
        incident["resolved_at"] = now


class IncidentManager:
    """Applies incident operations to the staging document."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    # ─── Reads ────────────────────────────────────────────────

    def get(self, incident_id: str) -> Dict[str, Any]:
        incident = self._find(self.store.load(), incident_id)
        return {**incident, "components": _component_list(incident)}

    def list(self, limit: Any = DEFAULT_LIST_LIMIT) -> List[Dict[str, Any]]:
        """Newest-first incidents, at most ``limit`` of them."""
        try:
            count = int(limit)
        except (TypeError, ValueError):
            count = DEFAULT_LIST_LIMIT
        incidents = self.store.load()["incidents"][: max(count, 0)]
        return [{**inc, "components": _component_list(inc)} for inc in incidents]

    # ─── Writes ───────────────────────────────────────────────

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Store a new incident with its first update.

        Args:
            payload: ``name``, ``status``, ``impact``, ``body`` and optionally
                ``components`` (map or list) or ``component_ids``.

        Returns:
            The stored incident.
        """
        now = utc_now()
        status = payload.get("status") or "investigating"
        impact = payload.get("impact") or "minor"
        body = payload.get("body") or ""
        _warn_if_unknown("status", status, INCIDENT_STATUSES)
        _warn_if_unknown("impact", impact, INCIDENT_IMPACTS)

        with self.store.edit() as document:
            snapshots = normalize_components(document, payload.get("components"), now)
            if snapshots is None:
                snapshots = _snapshots_from_ids(document, payload.get("component_ids") or [])

            incident: Dict[str, Any] = {
                "id": generate_id(),
                "name": payload.get("name") or "",
                "status": status,
                "impact": impact,
                "body": body,
                "components": snapshots,
                "component_ids": [s["id"] for s in snapshots],
                "created_at": now,
                "updated_at": now,
                "incident_updates": [
                    {
                        "id": generate_id(),
                        "status": status,
                        "body": body,
                        "display_at": now,
                        "created_at": now,
                        "updated_at": now,
                    }
                ],
            }
            _stamp_lifecycle(incident, now)
            document["incidents"].insert(0, incident)

        logger.info("Created incident %s (%s)", incident["id"], status)
        return copy.deepcopy(incident)

    def update(self, incident_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update an incident.

        A payload with an ``incident_update`` object appends a new update (or
        edits an existing one when it carries that update's ``id``). Any other
        payload is shallow-merged into the incident record.

        Raises:
            NotFoundError: The incident, or the update being edited, is absent.
        """
        now = utc_now()
        with self.store.edit() as document:
            incident = self._find(document, incident_id)
            entry = payload.get("incident_update")
            if isinstance(entry, Mapping):
                self._apply_update_entry(incident, entry, payload, now)
            else:
                self._merge(document, incident, payload, now)
            _stamp_lifecycle(incident, now)
            incident["updated_at"] = now

        return copy.deepcopy(incident)

    def resolve(self, incident_id: str, body: Optional[str] = None) -> Dict[str, Any]:
        """Append a ``resolved`` update; components are left to projection."""
        entry: Dict[str, Any] = {"status": "resolved"}
        if body:
            entry["body"] = body
        return self.update(incident_id, {"incident_update": entry})

    def delete(self, incident_id: str) -> None:
        with self.store.edit() as document:
            remaining = [i for i in document["incidents"] if i.get("id") != incident_id]
            if len(remaining) == len(document["incidents"]):
                raise NotFoundError("incidents", incident_id)
            document["incidents"] = remaining
        logger.info("Deleted incident %s", incident_id)

    # ─── Helpers ──────────────────────────────────────────────

    @staticmethod
    def _find(document: Document, incident_id: str) -> Dict[str, Any]:
        for incident in document["incidents"]:
            if incident.get("id") == incident_id:
                return incident
        raise NotFoundError("incidents", incident_id)

    @staticmethod
    def _apply_update_entry(
        incident: Dict[str, Any],
        entry: Mapping[str, Any],
        payload: Mapping[str, Any],
        now: str,
    ) -> None:
        updates = incident.get("incident_updates")
        if not isinstance(updates, list):
            updates = incident["incident_updates"] = []

        update_id = entry.get("id")
        if update_id:
            existing = next((u for u in updates if u.get("id") == update_id), None)
            if existing is None:
                raise NotFoundError("incident_updates", update_id)
            # status and created_at stay as first written
            if entry.get("body") is not None:
                existing["body"] = entry["body"]
            if entry.get("display_at"):
                existing["display_at"] = normalize_timestamp(entry["display_at"])
            existing["updated_at"] = now
            return

        status = entry.get("status") or incident.get("status")
        _warn_if_unknown("status", status, INCIDENT_STATUSES)
        updates.append(
            {
                "id": generate_id(),
                "status": status,
                "body": entry.get("body") or payload.get("body") or incident.get("body") or "",
                "display_at": normalize_timestamp(entry["display_at"]) if entry.get("display_at") else now,
                "created_at": now,
                "updated_at": now,
            }
        )
        incident["status"] = status
        logger.info("Incident %s moved to %s", incident.get("id"), status)

    @staticmethod
    def _merge(
        document: Document,
        incident: Dict[str, Any],
        payload: Mapping[str, Any],
        now: str,
    ) -> None:
        for key, value in payload.items():
            if key not in _MANAGED_FIELDS:
                incident[key] = value
        _warn_if_unknown("status", payload.get("status"), INCIDENT_STATUSES)
        _warn_if_unknown("impact", payload.get("impact"), INCIDENT_IMPACTS)

        if "components" in payload:
            snapshots = normalize_components(document, payload["components"], now)
            # An empty result keeps the prior list
            if snapshots:
                incident["components"] = snapshots

        incident["components"] = _component_list(incident)
        incident["component_ids"] = [
            s.get("id") for s in incident["components"] if isinstance(s, Mapping)
        ]
