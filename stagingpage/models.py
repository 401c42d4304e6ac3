"""
Data models for the staging status page.

Defines the status vocabularies, the component snapshot embedded in
incidents, the two accepted shapes of an incident's ``components`` payload,
and the configuration / sweep-report records.

Stored entities (components, incidents, templates) stay plain JSON dicts so
free-form caller fields survive a shallow merge untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

COMPONENT_STATUSES = (
    "operational",
    "degraded_performance",
    "partial_outage",
    "major_outage",
    "under_maintenance",
)

INCIDENT_STATUSES = (
    "investigating",
    "identified",
    "monitoring",
    "resolved",
    "postmortem",
)

INCIDENT_IMPACTS = ("none", "minor", "major", "critical")

OPERATIONAL = "operational"
CLOSED_STATUSES = frozenset({"resolved", "postmortem"})

RESOURCES = ("components", "incidents", "templates")


def is_open(incident: Mapping[str, Any]) -> bool:
    """An incident is open until it is resolved or in postmortem."""
    return incident.get("status") not in CLOSED_STATUSES


@dataclass(frozen=True)
class ComponentSnapshot:
    """A component's ``{id, name, status}`` as embedded in an incident."""

    id: str
    name: str
    status: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ComponentSnapshot":
        component_id = str(raw.get("id", ""))
        return cls(
            id=component_id,
            name=str(raw.get("name") or f"Component {component_id}"),
            status=str(raw.get("status") or OPERATIONAL),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "status": self.status}

    def __str__(self) -> str:
        return f"{self.name} ({self.status})"


@dataclass(frozen=True)
class ComponentStatusMap:
    """``components`` given as ``{component_id: status}``; statuses kept as sent."""

    statuses: Dict[str, Any]


@dataclass(frozen=True)
class ComponentSnapshotList:
    """``components`` given as an array of snapshots."""

    snapshots: List[ComponentSnapshot]


ComponentsPayload = Union[ComponentStatusMap, ComponentSnapshotList]


def parse_components_payload(raw: Any) -> Optional[ComponentsPayload]:
    """
    Classify a raw ``components`` value into one of the two payload forms.

    Returns None when the value is missing or neither a map nor a list.
    List entries that are not objects with an id are dropped.
    """
    if isinstance(raw, Mapping):
        return ComponentStatusMap(
            statuses={str(k): v for k, v in raw.items()}
        )
    if isinstance(raw, list):
        return ComponentSnapshotList(
            snapshots=[
                ComponentSnapshot.from_dict(entry)
                for entry in raw
                if isinstance(entry, Mapping) and entry.get("id")
            ]
        )
    return None


@dataclass
class LiveApiConfig:
    """Connection details for the live Statuspage REST API."""

    base_url: str = "https://api.statuspage.io/v1"
    api_key: str = ""
    page_id: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.page_id)


@dataclass
class StagingSettings:
    """Global settings for the staging server."""

    data_dir: str = ".test-data"
    state_file: str = "test-data.json"
    tracker_dir: str = ".demo-data"
    tracker_file: str = "demo-tracker.json"
    demo_mode: bool = False
    auto_seed: bool = False
    sweep_interval: int = 300  # seconds
    log_level: str = "INFO"
    max_retries: int = 5
    base_backoff: int = 2
    port: int = 10000
    cron_secret: str = ""
    live: LiveApiConfig = field(default_factory=LiveApiConfig)


@dataclass
class SweepReport:
    """
    Outcome of one cleanup sweep.

    Attributes:
        deleted: ``kind:id`` entries removed from the live system and untracked.
        errors: ``kind:id - reason`` entries left tracked for the next run.
        skipped_components: Tracked component ids, never deleted.
        timestamp: When the sweep finished (ISO-8601 UTC).
    """

    deleted: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped_components: int = 0
    timestamp: str = ""

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": self.success,
            "deleted": list(self.deleted),
            "skipped_components": self.skipped_components,
            "timestamp": self.timestamp,
        }
        if self.errors:
            body["errors"] = list(self.errors)
        return body
