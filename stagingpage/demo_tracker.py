"""
Ephemeral Item Tracker.

Remembers the ids of entities created while demo mode is on, so the cleanup
sweep can delete them from the live page later. The demo flag is fixed at
construction; with it off, ``track`` does nothing.

Tracked components are listed but never deleted by the sweep: removing them
would break the page's structure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from stagingpage.store import Document, JsonDocumentStore
from stagingpage.timestamps import utc_now

logger = logging.getLogger(__name__)

TRACKED_KINDS = ("incidents", "components", "templates")


def empty_tracker() -> Document:
    return {"incidents": [], "components": [], "templates": [], "lastCleanup": None}


def _check_kind(kind: str) -> None:
    if kind not in TRACKED_KINDS:
        raise ValueError(f"Unknown tracked kind {kind!r}, expected one of {TRACKED_KINDS}")


class EphemeralTracker:
    """
    Persisted lists of demo-created ids.

    Attributes:
        demo_mode: Whether tracking is active for this process.
    """

    def __init__(self, path: str | Path, demo_mode: bool) -> None:
        self.demo_mode = demo_mode
        self._store = JsonDocumentStore(path, empty_tracker)

    def track(self, kind: str, item_id: str) -> None:
        _check_kind(kind)
        if not self.demo_mode:
            return
        with self._store.edit() as document:
            if item_id not in document[kind]:
                document[kind].append(item_id)
        logger.debug("Tracking demo %s %s", kind, item_id)

    def remove(self, kind: str, item_id: str) -> None:
        _check_kind(kind)
        with self._store.edit() as document:
            document[kind] = [i for i in document[kind] if i != item_id]

    def list(self) -> Dict[str, Any]:
        return self._store.load()

    def mark_cleanup(self, when: Optional[str] = None) -> None:
        with self._store.edit() as document:
            document["lastCleanup"] = when or utc_now()
