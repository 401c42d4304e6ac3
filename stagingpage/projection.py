"""
Status Projection Engine.

Derives each component's displayed status from the currently open incidents:

  1. Collect the non-operational claims of every open incident's snapshots.
  2. Reset every unclaimed, non-operational component to ``operational``.
  3. Apply each claim whose status differs from the stored one.

When two open incidents claim different statuses for the same component, the
claim of the incident iterated last (stored order) wins. Incidents are stored
newest first, so in practice the oldest open incident's claim sticks. This is
an order-dependent policy, not a severity ranking.

The engine is pure: inputs are not mutated, and it never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from stagingpage.models import OPERATIONAL, is_open
from stagingpage.timestamps import utc_now

logger = logging.getLogger(__name__)


@dataclass
class Projection:
    """Reconciled component list and whether anything had to change."""

    components: List[Dict[str, Any]]
    changed: bool


def collect_claims(incidents: Sequence[Any]) -> Dict[str, str]:
    """
    Map component id -> claimed status across all open incidents.

    Later incidents overwrite earlier ones for the same component.
    """
    claims: Dict[str, str] = {}
    for incident in incidents:
        if not isinstance(incident, Mapping) or not is_open(incident):
            continue
        snapshots = incident.get("components")
        if not isinstance(snapshots, list):
            continue
        for snapshot in snapshots:
            if not isinstance(snapshot, Mapping):
                continue
            component_id = snapshot.get("id")
            status = snapshot.get("status")
            if component_id and status and status != OPERATIONAL:
                claims[str(component_id)] = status
    return claims


def project_component_statuses(
    components: Sequence[Any],
    incidents: Sequence[Any],
    now: Optional[str] = None,
) -> Projection:
    """
    Reconcile stored component statuses against the open incidents.

    Args:
        components: Stored component dicts.
        incidents: Stored incident dicts, in stored order.
        now: Timestamp written to ``updated_at`` on changed components.

    Returns:
        A Projection with a new component list; unchanged components are the
        same objects as in the input.
    """
    stamp = now or utc_now()
    claims = collect_claims(incidents)
    result: List[Dict[str, Any]] = list(components)
    changed = False

    # Reset pass
    for index, component in enumerate(result):
        if not isinstance(component, Mapping):
            continue
        if str(component.get("id")) not in claims and component.get("status") != OPERATIONAL:
            result[index] = {**component, "status": OPERATIONAL, "updated_at": stamp}
            changed = True

    # Apply pass
    positions: Dict[str, int] = {}
    for index, component in enumerate(result):
        if isinstance(component, Mapping):
            positions.setdefault(str(component.get("id")), index)
    for component_id, status in claims.items():
        index = positions.get(component_id)
        if index is None:
            logger.debug("Incident references unknown component %s, skipping", component_id)
            continue
        if result[index].get("status") != status:
            result[index] = {**result[index], "status": status, "updated_at": stamp}
            changed = True

    return Projection(components=result, changed=changed)
