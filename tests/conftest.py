"""Shared test fixtures for lightlimit."""

from pathlib import Path

import pytest

from lightlimit.models import ProcessSample, SystemReadings, SystemStats
from lightlimit.monitor import SystemSnapshot

MIB = 1024 * 1024


def stat_line(
    pid: int,
    comm: str,
    state: str = "S",
    utime: int = 0,
    stime: int = 0,
    starttime: int = 0,
    vsize: int = 0,
) -> str:
    """Build a /proc/<pid>/stat record with realistic filler fields."""
    return (
        f"{pid} ({comm}) {state} 1 {pid} {pid} 0 -1 4194304 100 0 0 0 "
        f"{utime} {stime} 0 0 20 0 1 0 {starttime} {vsize} 250 18446744073709551615\n"
    )


class FakeProc:
    """A fake procfs tree under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.set_uptime(1000.0)

    def set_uptime(self, seconds: float) -> None:
        (self.root / "uptime").write_text(f"{seconds:.2f} 4000.00\n")

    def add(
        self,
        pid: int,
        comm: str | None = "proc",
        stat: str | None = None,
        **stat_fields,
    ) -> Path:
        """Add a process directory. ``comm=None`` omits the comm file."""
        pid_dir = self.root / str(pid)
        pid_dir.mkdir()
        if comm is not None:
            (pid_dir / "comm").write_text(f"{comm}\n")
        if stat is None:
            stat = stat_line(pid, comm or "proc", **stat_fields)
        (pid_dir / "stat").write_text(stat)
        return pid_dir


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """Empty fake procfs tree with an uptime file."""
    root = tmp_path / "proc"
    root.mkdir()
    return FakeProc(root)


def make_readings(
    uptime_seconds: float = 1000.0,
    clock_ticks: int = 100,
    total_ram: int = 8000 * MIB,
    free_ram: int = 2000 * MIB,
    load_1min: float = 1.0,
    cpu_count: int = 4,
) -> SystemReadings:
    """Create SystemReadings for testing."""
    return SystemReadings(
        uptime_seconds=uptime_seconds,
        clock_ticks=clock_ticks,
        total_ram=total_ram,
        free_ram=free_ram,
        load_1min=load_1min,
        cpu_count=cpu_count,
    )


def make_sample(
    pid: int = 100,
    command: str = "test",
    cpu_percent: float = 0.0,
    mem_percent: float = 0.0,
    vsize_mb: int = 10,
) -> ProcessSample:
    """Create a ProcessSample for testing."""
    return ProcessSample(
        pid=pid,
        command=command,
        cpu_percent=cpu_percent,
        mem_percent=mem_percent,
        vsize_mb=vsize_mb,
    )


def make_snapshot(*samples: ProcessSample) -> SystemSnapshot:
    """Create a SystemSnapshot with fixed stats."""
    return SystemSnapshot(
        stats=SystemStats(
            cpu_load_percent=25.0,
            mem_used_mb=6000,
            mem_total_mb=8000,
            mem_percent=75.0,
        ),
        processes=tuple(samples),
    )


class FakeMonitor:
    """Monitor that returns queued snapshots, repeating the last one."""

    def __init__(self, *snapshots: SystemSnapshot) -> None:
        self._snapshots = list(snapshots) or [make_snapshot()]
        self.calls = 0

    def push(self, snapshot: SystemSnapshot) -> None:
        self._snapshots.append(snapshot)

    def sample(self) -> SystemSnapshot:
        self.calls += 1
        if len(self._snapshots) > 1:
            return self._snapshots.pop(0)
        return self._snapshots[0]


class FakeTerminator:
    """Records termination requests instead of sending signals."""

    def __init__(self, ok: bool = True, error: str | None = None) -> None:
        self.ok = ok
        self.error = error
        self.requests: list[int] = []

    def __call__(self, pid: int):
        from lightlimit.control import TerminationResult

        self.requests.append(pid)
        if self.ok:
            return TerminationResult(pid=pid, ok=True, signal="SIGTERM")
        return TerminationResult(pid=pid, ok=False, error=self.error)
