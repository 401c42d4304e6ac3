"""
Cleanup sweep for demo-created items.

``run_sweep`` deletes every tracked incident and template from the live page.
A 2xx or 404 answer untracks the id; anything else (including transport
errors) leaves it tracked for the next run, so a partially failed sweep is
simply finished by a later one.

``SweepScheduler`` runs the sweep on a fixed interval inside the event loop,
backing off exponentially (with jitter) if a run blows up unexpectedly.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Protocol, Tuple

import aiohttp

from stagingpage import notifier
from stagingpage.demo_tracker import EphemeralTracker
from stagingpage.models import StagingSettings, SweepReport
from stagingpage.timestamps import utc_now

logger = logging.getLogger(__name__)


class LiveDeleter(Protocol):
    async def delete_incident(self, incident_id: str) -> Tuple[int, str]: ...

    async def delete_template(self, template_id: str) -> Tuple[int, str]: ...


def _is_gone(status: int) -> bool:
    return 200 <= status < 300 or status == 404


async def _sweep_kind(
    tracker: EphemeralTracker,
    kind: str,
    label: str,
    delete: Callable[[str], Awaitable[Tuple[int, str]]],
    report: SweepReport,
) -> None:
    for item_id in list(tracker.list()[kind]):
        try:
            status, text = await delete(item_id)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            report.errors.append(f"{label}:{item_id} - {str(exc) or type(exc).__name__}")
            continue

        if _is_gone(status):
            tracker.remove(kind, item_id)
            report.deleted.append(f"{label}:{item_id}")
        else:
            report.errors.append(f"{label}:{item_id} - {text or f'HTTP {status}'}")


async def run_sweep(tracker: EphemeralTracker, client: LiveDeleter) -> SweepReport:
    """
    Delete tracked incidents and templates from the live page.

    Returns:
        A SweepReport listing what was deleted and what is left for retry.
    """
    report = SweepReport()
    await _sweep_kind(tracker, "incidents", "incident", client.delete_incident, report)
    await _sweep_kind(tracker, "templates", "template", client.delete_template, report)

    # Components stay: deleting them would break the page layout
    report.skipped_components = len(tracker.list()["components"])

    report.timestamp = utc_now()
    tracker.mark_cleanup(report.timestamp)
    if report.errors:
        logger.warning("Sweep left %d item(s) for retry", len(report.errors))
    logger.info("Sweep deleted %d item(s)", len(report.deleted))
    return report


class SweepScheduler:
    """
    Runs the cleanup sweep periodically until cancelled.

    Attributes:
        tracker: Source of the ids to delete.
        client: Live page client.
        settings: Interval and backoff settings.
    """

    def __init__(
        self,
        tracker: EphemeralTracker,
        client: LiveDeleter,
        settings: StagingSettings,
    ) -> None:
        self.tracker = tracker
        self.client = client
        self.settings = settings
        self._consecutive_errors = 0

    async def start(self) -> None:
        notifier.print_sweep_start(self.settings.sweep_interval)

        while True:
            try:
                report = await run_sweep(self.tracker, self.client)
                self._consecutive_errors = 0
                if report.deleted or report.errors:
                    notifier.print_sweep_report(report)
                await asyncio.sleep(self.settings.sweep_interval)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                self._consecutive_errors += 1
                wait = self._backoff_delay()
                logger.exception("Sweep failed")
                notifier.print_error("sweep", str(exc))
                notifier.print_retry("sweep", self._consecutive_errors, wait)
                await asyncio.sleep(wait)

    def _backoff_delay(self) -> float:
        """
        Exponential backoff with jitter.

        delay = base * 2^(attempts-1) + random jitter, capped at 5 minutes.
        """
        exp = min(self._consecutive_errors, self.settings.max_retries)
        base_delay = self.settings.base_backoff * (2 ** (exp - 1))
        jitter = random.uniform(0, base_delay * 0.5)
        return min(base_delay + jitter, 300.0)
