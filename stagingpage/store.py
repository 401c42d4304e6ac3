"""
Synthetic State Store.

Whole-document JSON persistence for the staging components, incidents and
templates. Every read goes back to disk; every write replaces the file.

A missing or unreadable file yields the empty document instead of an error,
so a corrupted file silently costs its contents (it is logged). The lock only
serialises writers inside one process: two processes sharing the file can
still overwrite each other's changes.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


def empty_state() -> Document:
    return {"components": [], "incidents": [], "templates": []}


class JsonDocumentStore:
    """
    One JSON object persisted in one file.

    Args:
        path: Location of the backing file. Its directory is created on the
            first write.
        default_factory: Builds the zero-value document; its keys are also
            used to fill in anything missing from a loaded document.
    """

    def __init__(self, path: str | Path, default_factory: Callable[[], Document]) -> None:
        self.path = Path(path)
        self._default_factory = default_factory
        self.lock = threading.RLock()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Document:
        """Read the whole document, substituting the zero value on failure."""
        if not self.path.exists():
            return self._default_factory()

        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable document at %s, using empty one: %s", self.path, exc)
            return self._default_factory()

        if not isinstance(raw, dict):
            logger.warning("Document at %s is not a JSON object, using empty one", self.path)
            return self._default_factory()

        for key, value in self._default_factory().items():
            if key not in raw or (isinstance(value, list) and not isinstance(raw[key], list)):
                raw[key] = value
        return raw

    def save(self, document: Document) -> None:
        """Serialise the whole document and replace the backing file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("Saved %s", self.path)

    @contextmanager
    def edit(self) -> Iterator[Document]:
        """
        One read-modify-write cycle.

        Yields the loaded document and saves it when the block exits cleanly.
        An exception inside the block discards the changes.
        """
        with self.lock:
            document = self.load()
            yield document
            self.save(document)


class StateStore(JsonDocumentStore):
    """Backing store for ``{components, incidents, templates}``."""

    def __init__(self, path: str | Path) -> None:
        super().__init__(path, empty_state)
