"""Shared fixtures: a throwaway staging store, tracker and router per test."""

from __future__ import annotations

from typing import Dict, List, Tuple, Union

import pytest

from stagingpage.demo_tracker import EphemeralTracker
from stagingpage.router import ResourceRouter
from stagingpage.store import StateStore


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / ".test-data" / "test-data.json")


@pytest.fixture
def tracker(tmp_path):
    return EphemeralTracker(tmp_path / ".demo-data" / "demo-tracker.json", demo_mode=True)


@pytest.fixture
def router(store, tracker):
    return ResourceRouter(store, tracker)


@pytest.fixture
def seeded_store(store):
    """Store with two operational components and nothing else."""
    store.save(
        {
            "components": [
                {"id": "a", "name": "API", "status": "operational", "updated_at": "2026-01-01T00:00:00+00:00"},
                {"id": "b", "name": "Dashboard", "status": "operational", "updated_at": "2026-01-01T00:00:00+00:00"},
            ],
            "incidents": [],
            "templates": [],
        }
    )
    return store


Outcome = Union[Tuple[int, str], Exception]


class FakeLiveClient:
    """Stands in for StatuspageClient; answers from canned outcomes."""

    def __init__(
        self,
        outcomes: Dict[str, Outcome] | None = None,
        components: List[dict] | Exception | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.components = components if components is not None else []
        self.deleted: List[str] = []

    async def _answer(self, label: str, item_id: str) -> Tuple[int, str]:
        self.deleted.append(f"{label}:{item_id}")
        outcome = self.outcomes.get(item_id, (204, ""))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def delete_incident(self, incident_id: str) -> Tuple[int, str]:
        return await self._answer("incident", incident_id)

    async def delete_template(self, template_id: str) -> Tuple[int, str]:
        return await self._answer("template", template_id)

    async def list_components(self) -> List[dict]:
        if isinstance(self.components, Exception):
            raise self.components
        return self.components


@pytest.fixture
def fake_live():
    return FakeLiveClient
