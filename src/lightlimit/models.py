"""Data models for lightlimit."""

from dataclasses import dataclass

UNKNOWN_COMMAND = "unknown"


@dataclass(slots=True, frozen=True)
class RawProcessRecord:
    """Raw kernel counters for one process, as read from the process registry."""

    pid: int
    command: str  # From comm, else the stat name, else UNKNOWN_COMMAND
    stat_command: str  # Literal between the first '(' and last ')' of the stat record
    state: str  # 'R', 'S', 'Z', 'D', etc.
    utime: int  # Scheduler ticks in user mode
    stime: int  # Scheduler ticks in kernel mode
    starttime: int  # Ticks since boot
    vsize: int  # Bytes


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """Immutable sample of one process at one refresh."""

    pid: int
    command: str
    cpu_percent: float  # Lifetime average, may exceed 100.0
    mem_percent: float  # Virtual size over total RAM, may exceed 100.0
    vsize_mb: int


@dataclass(slots=True, frozen=True)
class SystemReadings:
    """Global counters read once per refresh."""

    uptime_seconds: float
    clock_ticks: int
    total_ram: int  # Bytes
    free_ram: int  # Bytes
    load_1min: float
    cpu_count: int
    available: bool = True

    @classmethod
    def unavailable(cls) -> "SystemReadings":
        """Readings used when the global counters cannot be read."""
        return cls(
            uptime_seconds=0.0,
            clock_ticks=0,
            total_ram=0,
            free_ram=0,
            load_1min=0.0,
            cpu_count=0,
            available=False,
        )


@dataclass(slots=True, frozen=True)
class SystemStats:
    """Machine-wide CPU load estimate and memory usage."""

    cpu_load_percent: float
    mem_used_mb: int
    mem_total_mb: int
    mem_percent: float
