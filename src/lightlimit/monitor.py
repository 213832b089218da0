"""Process sampling engine for lightlimit."""

import os
import time
from dataclasses import dataclass
from pathlib import Path

import psutil

from lightlimit.log import get_logger
from lightlimit.metrics import COMMAND_WIDTH, derive_sample, system_stats
from lightlimit.models import ProcessSample, SystemReadings, SystemStats
from lightlimit.procfs import MAX_PROCESSES, PROC_ROOT, enumerate_processes, read_uptime
from lightlimit.ranking import rank

log = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Everything one refresh produces: global stats and the ranked processes."""

    stats: SystemStats | None
    processes: tuple[ProcessSample, ...]


def _uptime_seconds(proc_root: Path) -> float:
    try:
        return read_uptime(proc_root)
    except (OSError, ValueError, IndexError):
        return time.time() - psutil.boot_time()


def read_system_readings(proc_root: Path = PROC_ROOT) -> SystemReadings:
    """
    Read the global counters needed for one refresh.

    Returns SystemReadings.unavailable() if any of them cannot be read.
    """
    try:
        uptime = _uptime_seconds(proc_root)
        mem = psutil.virtual_memory()
        load_1min = psutil.getloadavg()[0]
        cpu_count = psutil.cpu_count() or 1
        clock_ticks = os.sysconf("SC_CLK_TCK")
    except (OSError, ValueError, psutil.Error) as e:
        log.warning("system_readings_unavailable", error=str(e))
        return SystemReadings.unavailable()

    return SystemReadings(
        uptime_seconds=uptime,
        clock_ticks=clock_ticks,
        total_ram=mem.total,
        free_ram=mem.free,
        load_1min=load_1min,
        cpu_count=cpu_count,
    )


class SystemMonitor:
    """
    Samples the process registry on demand.

    Each call to sample() enumerates, derives and ranks in the calling thread
    and keeps nothing from previous calls.
    """

    def __init__(
        self,
        proc_root: Path = PROC_ROOT,
        max_processes: int = MAX_PROCESSES,
        command_width: int = COMMAND_WIDTH,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            proc_root: Mount point of the process registry.
            max_processes: Maximum number of processes kept per snapshot.
            command_width: Width commands are truncated to.
        """
        self._proc_root = proc_root
        self._max_processes = max(1, max_processes)
        self._command_width = command_width

    @property
    def max_processes(self) -> int:
        """Get the per-snapshot process cap."""
        return self._max_processes

    def sample(self) -> SystemSnapshot:
        """Collect a ranked snapshot of the current system state."""
        readings = read_system_readings(self._proc_root)
        return SystemSnapshot(
            stats=system_stats(readings),
            processes=rank(self._collect_processes(readings)),
        )

    def _collect_processes(self, readings: SystemReadings) -> list[ProcessSample]:
        """Enumerate processes and derive a sample for each."""
        records = enumerate_processes(self._max_processes, self._proc_root)
        return [derive_sample(r, readings, self._command_width) for r in records]
