"""Template Store: plain keyed CRUD over the staged incident templates."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from stagingpage.errors import NotFoundError
from stagingpage.store import StateStore
from stagingpage.timestamps import generate_id, utc_now

logger = logging.getLogger(__name__)

_TEMPLATE_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "body": "",
    "update_status": "investigating",
}


class TemplateStore:
    def __init__(self, store: StateStore) -> None:
        self.store = store

    def list(self) -> List[Dict[str, Any]]:
        return self.store.load()["templates"]

    def get(self, template_id: str) -> Dict[str, Any]:
        for template in self.list():
            if template.get("id") == template_id:
                return template
        raise NotFoundError("templates", template_id)

    def create(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        template = {
            **_TEMPLATE_DEFAULTS,
            **payload,
            "id": generate_id(),
            "created_at": now,
            "updated_at": now,
        }
        with self.store.edit() as document:
            document["templates"].append(template)
        logger.info("Created template %s", template["id"])
        return template

    def update(self, template_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        fields = {k: v for k, v in payload.items() if k not in ("id", "created_at")}
        with self.store.edit() as document:
            for index, template in enumerate(document["templates"]):
                if template.get("id") == template_id:
                    document["templates"][index] = {**template, **fields, "updated_at": utc_now()}
                    return document["templates"][index]
            raise NotFoundError("templates", template_id)

    def delete(self, template_id: str) -> None:
        with self.store.edit() as document:
            remaining = [t for t in document["templates"] if t.get("id") != template_id]
            if len(remaining) == len(document["templates"]):
                raise NotFoundError("templates", template_id)
            document["templates"] = remaining
