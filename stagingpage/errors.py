"""
Exceptions raised by the staging store.

Only lookups that miss are surfaced to callers; unreadable files and
upstream failures are recovered where they happen and logged.
"""

from __future__ import annotations


class StagingError(Exception):
    """Base class for staging-store errors."""


class NotFoundError(StagingError):
    """A resource id is absent on read, update or delete."""

    def __init__(self, resource: str, item_id: str) -> None:
        super().__init__(f"{resource} '{item_id}' not found")
        self.resource = resource
        self.item_id = item_id


class InvalidResourceError(StagingError):
    """The resource name is not one of components, incidents or templates."""

    def __init__(self, resource: str | None) -> None:
        super().__init__(f"Invalid resource: {resource!r}")
        self.resource = resource


class UpstreamError(StagingError):
    """The live Statuspage API answered with a non-success status."""

    def __init__(self, status: int, message: str = "") -> None:
        detail = f"Upstream HTTP {status}: {message}" if message else f"Upstream HTTP {status}"
        super().__init__(detail)
        self.status = status
        self.message = message
