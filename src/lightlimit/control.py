"""CPU budget controls and process termination.

Quotas are applied through a cgroup v1 ``cpu`` controller directory and
affinity through psutil. All of these are one-shot system calls.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import psutil

from lightlimit.config import Config
from lightlimit.log import get_logger
from lightlimit.metrics import MIB
from lightlimit.monitor import read_system_readings
from lightlimit.procfs import PROC_ROOT

log = get_logger(__name__)


class ControlError(Exception):
    """Raised when a cgroup or affinity operation fails."""


@dataclass(slots=True, frozen=True)
class TerminationResult:
    """Outcome of a termination request."""

    pid: int
    ok: bool
    signal: str | None = None  # "SIGTERM" or "SIGKILL" when ok
    error: str | None = None


@dataclass(slots=True, frozen=True)
class SystemInfo:
    """One-shot machine summary."""

    cores: int
    total_ram_mb: int
    free_ram_mb: int
    uptime_seconds: float


def is_root() -> bool:
    """Check whether the effective user is root."""
    return os.geteuid() == 0


def cpu_count() -> int:
    """Number of online CPUs."""
    return psutil.cpu_count() or 1


def create_cgroup(base: Path) -> None:
    """Create the cgroup directory if it does not exist."""
    try:
        base.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ControlError(f"Failed to create cgroup directory {base}: {e}") from e


def remove_cgroup(base: Path) -> bool:
    """Remove the cgroup directory. Returns False if it did not exist."""
    if not base.exists():
        return False
    try:
        base.rmdir()
    except OSError as e:
        raise ControlError(f"Failed to remove cgroup directory {base}: {e}") from e
    log.info("cgroup_removed", path=str(base))
    return True


def quota_for(percent: int, cores: int, period_us: int) -> int:
    """CFS quota giving ``percent`` of all ``cores`` per period."""
    return period_us * percent * cores // 100


def set_total_limit(percent: int, config: Config) -> tuple[int, int]:
    """
    Limit total CPU for the cgroup to ``percent`` of all cores.

    Returns:
        The written quota (microseconds) and the core count it was based on.

    Raises:
        ValueError: If percent is outside 0-100.
        ControlError: If the cgroup files cannot be written.
    """
    if not 0 <= percent <= 100:
        raise ValueError(f"CPU percentage must be between 0 and 100, got {percent}")

    base = config.cgroup_base
    create_cgroup(base)

    period = config.limits.period_us
    cores = cpu_count()
    quota = quota_for(percent, cores, period)

    try:
        (base / "cpu.cfs_period_us").write_text(str(period))
        (base / "cpu.cfs_quota_us").write_text(str(quota))
    except OSError as e:
        raise ControlError(f"Failed to write cgroup files: {e}") from e

    log.info("limit_set", percent=percent, cores=cores, period_us=period, quota_us=quota)
    return quota, cores


def parse_core_list(core_list: str) -> list[int]:
    """Parse a comma-separated core list, skipping entries that are not valid indices."""
    cores = []
    for token in core_list.split(","):
        token = token.strip()
        if not token.isdigit():
            continue
        core = int(token)
        if core not in cores:
            cores.append(core)
    return cores


def set_preference(core_list: str) -> list[int]:
    """
    Pin the calling process to the given cores.

    Raises:
        ControlError: If no valid core is given or the affinity call fails.
    """
    cores = parse_core_list(core_list)
    if not cores:
        raise ControlError(f"No valid cores in {core_list!r}")
    try:
        psutil.Process().cpu_affinity(cores)
    except (psutil.Error, OSError, ValueError) as e:
        raise ControlError(f"Failed to set CPU affinity: {e}") from e
    log.info("affinity_set", cores=cores)
    return cores


def reset_limit(config: Config) -> None:
    """Remove and recreate the cgroup, dropping any quota."""
    remove_cgroup(config.cgroup_base)
    create_cgroup(config.cgroup_base)


def uninstall(config: Config) -> bool:
    """Remove the cgroup directory."""
    return remove_cgroup(config.cgroup_base)


def system_info(proc_root: Path = PROC_ROOT) -> SystemInfo | None:
    """Summarize cores, RAM and uptime, or None if unavailable."""
    readings = read_system_readings(proc_root)
    if not readings.available:
        return None
    return SystemInfo(
        cores=readings.cpu_count,
        total_ram_mb=readings.total_ram // MIB,
        free_ram_mb=readings.free_ram // MIB,
        uptime_seconds=readings.uptime_seconds,
    )


def format_uptime(seconds: float) -> str:
    """Format uptime as days, hours and minutes."""
    total = int(seconds)
    days = total // 86400
    hours = (total % 86400) // 3600
    minutes = (total % 3600) // 60
    return f"{days} days, {hours} hours, {minutes} minutes"


def terminate_process(pid: int) -> TerminationResult:
    """
    Ask a process to exit with SIGTERM, falling back to SIGKILL.

    Never raises; failures are returned in the result.
    """
    try:
        psutil.Process(pid).terminate()
        return TerminationResult(pid=pid, ok=True, signal="SIGTERM")
    except psutil.Error:
        pass  # Escalate to SIGKILL

    try:
        psutil.Process(pid).kill()
        return TerminationResult(pid=pid, ok=True, signal="SIGKILL")
    except psutil.NoSuchProcess:
        return TerminationResult(pid=pid, ok=False, error="No such process")
    except psutil.AccessDenied:
        return TerminationResult(pid=pid, ok=False, error="Permission denied")
    except psutil.Error as e:
        return TerminationResult(pid=pid, ok=False, error=str(e))
