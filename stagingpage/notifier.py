"""
Console Notifier: operator-facing output for the staging server.

Prints the startup banner, sweep reports and errors with ANSI colors, and
configures the standard logging handlers the rest of the package logs to.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from stagingpage.models import StagingSettings, SweepReport

# ANSI color codes for terminal styling
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send package logs to stderr at the configured level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=_LOG_FORMAT,
        stream=sys.stderr,
    )


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def print_banner(settings: StagingSettings) -> None:
    """Print the startup banner."""
    mode = f"{_YELLOW}DEMO MODE{_RESET}" if settings.demo_mode else f"{_GREEN}staging{_RESET}"
    live = settings.live.page_id if settings.live.is_configured else "not configured"
    print(
        f"""
{_BOLD}{_CYAN}+------------------------------------------------------------------+
|          Staging Status Page -- Test Mode Backend                |
+------------------------------------------------------------------+{_RESET}
  {_BOLD}Mode     :{_RESET} {mode}
  {_BOLD}Data     :{_RESET} {_DIM}{settings.data_dir}/{settings.state_file}{_RESET}
  {_BOLD}Live page:{_RESET} {_DIM}{live}{_RESET}
  {_BOLD}Port     :{_RESET} {settings.port}
"""
    )


def print_sweep_start(interval: int) -> None:
    print(
        f"  {_BOLD}{_BLUE}> Cleanup sweep:{_RESET} {_WHITE}demo items{_RESET}"
        f"  {_DIM}[every {interval}s]{_RESET}"
    )


def print_separator() -> None:
    print(f"{_DIM}{'─' * 68}{_RESET}")


def print_sweep_report(report: SweepReport) -> None:
    """Print what one sweep deleted and what it left for retry."""
    color = _GREEN if report.success else _YELLOW
    tag = "SWEEP OK" if report.success else "SWEEP PARTIAL"

    print_separator()
    print(f"  {_GRAY}[{_now()}]{_RESET} {_BOLD}{color}{tag}{_RESET}")
    print(f"    {_BOLD}Deleted  :{_RESET} {len(report.deleted)}")
    for item in report.deleted:
        print(f"      {_DIM}{item}{_RESET}")
    if report.errors:
        print(f"    {_BOLD}Retry    :{_RESET} {_RED}{len(report.errors)}{_RESET}")
        for item in report.errors:
            print(f"      {_DIM}{item[:200]}{_RESET}")
    if report.skipped_components:
        print(f"    {_BOLD}Kept     :{_RESET} {report.skipped_components} component(s)")
    print()


def print_error(source: str, message: str) -> None:
    print(
        f"  {_GRAY}[{_now()}]{_RESET} {_RED}ERROR{_RESET} "
        f"{_BOLD}{source}:{_RESET} {message}"
    )


def print_retry(source: str, attempt: int, wait: float) -> None:
    """Print a retry message with backoff info."""
    print(
        f"  {_DIM}{source}: Retrying in {wait:.1f}s "
        f"(attempt {attempt})...{_RESET}"
    )


def print_shutdown() -> None:
    print(f"\n{_BOLD}{_CYAN}Staging server stopped. Goodbye!{_RESET}\n")
