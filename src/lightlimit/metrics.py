"""Metric derivation for lightlimit.

Turns raw kernel counters into percentages. CPU usage is the average over
the whole lifetime of the process, so no counters are kept between refreshes.
"""

from enum import Enum

from lightlimit.models import ProcessSample, RawProcessRecord, SystemReadings, SystemStats

MIB = 1024 * 1024
COMMAND_WIDTH = 50


class UsageLevel(Enum):
    """Utilization bands used to color process rows."""

    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"


def derive_sample(
    record: RawProcessRecord,
    readings: SystemReadings,
    command_width: int = COMMAND_WIDTH,
) -> ProcessSample:
    """Derive CPU and memory percentages for one process."""
    cpu_percent = 0.0
    if readings.clock_ticks > 0:
        cpu_seconds = (record.utime + record.stime) / readings.clock_ticks
        age_seconds = readings.uptime_seconds - (record.starttime / readings.clock_ticks)
        if age_seconds > 0:
            cpu_percent = 100.0 * cpu_seconds / age_seconds

    mem_percent = 0.0
    if readings.total_ram > 0:
        mem_percent = 100.0 * record.vsize / readings.total_ram

    return ProcessSample(
        pid=record.pid,
        command=record.command[:command_width],
        cpu_percent=cpu_percent,
        mem_percent=mem_percent,
        vsize_mb=record.vsize // MIB,
    )


def system_stats(readings: SystemReadings) -> SystemStats | None:
    """
    Derive machine-wide stats, or None if the readings are unavailable.

    The CPU figure is the 1-minute load average over the core count. It is an
    estimate and is not expected to match the sum of per-process percentages.
    """
    if not readings.available or readings.total_ram <= 0:
        return None

    cpu_load_percent = 0.0
    if readings.cpu_count > 0:
        cpu_load_percent = readings.load_1min / readings.cpu_count * 100.0

    mem_total_mb = readings.total_ram // MIB
    mem_used_mb = (readings.total_ram - readings.free_ram) // MIB
    mem_percent = mem_used_mb / mem_total_mb * 100.0 if mem_total_mb else 0.0

    return SystemStats(
        cpu_load_percent=cpu_load_percent,
        mem_used_mb=mem_used_mb,
        mem_total_mb=mem_total_mb,
        mem_percent=mem_percent,
    )


def usage_level(sample: ProcessSample, high: float = 50.0, medium: float = 20.0) -> UsageLevel:
    """Classify a sample by its CPU or memory utilization, whichever is worse."""
    if sample.cpu_percent >= high or sample.mem_percent >= high:
        return UsageLevel.HIGH
    if sample.cpu_percent >= medium or sample.mem_percent >= medium:
        return UsageLevel.MEDIUM
    return UsageLevel.NORMAL
