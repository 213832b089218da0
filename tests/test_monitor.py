"""Tests for the SystemMonitor class."""

import sys
from unittest.mock import patch

import psutil
import pytest
from conftest import MIB

from lightlimit.models import ProcessSample, SystemReadings
from lightlimit.monitor import SystemMonitor, SystemSnapshot, read_system_readings

linux_only = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="requires /proc")


class FakeMemory:
    total = 8000 * MIB
    free = 2000 * MIB


@pytest.fixture
def fixed_system():
    """Pin the psutil-backed global readings."""
    with (
        patch("lightlimit.monitor.psutil.virtual_memory", return_value=FakeMemory()),
        patch("lightlimit.monitor.psutil.getloadavg", return_value=(2.0, 1.0, 0.5)),
        patch("lightlimit.monitor.psutil.cpu_count", return_value=4),
        patch("lightlimit.monitor.os.sysconf", return_value=100),
    ):
        yield


class TestSystemSnapshot:
    """Tests for SystemSnapshot dataclass."""

    def test_system_snapshot_is_frozen(self):
        snapshot = SystemSnapshot(stats=None, processes=())
        with pytest.raises(AttributeError):
            snapshot.processes = ()

    def test_system_snapshot_uses_slots(self):
        """Test SystemSnapshot uses __slots__ for memory efficiency."""
        snapshot = SystemSnapshot(stats=None, processes=())
        assert not hasattr(snapshot, "__dict__")


class TestReadSystemReadings:
    """Tests for read_system_readings."""

    def test_reads_fake_uptime(self, fake_proc, fixed_system):
        fake_proc.set_uptime(4321.5)
        readings = read_system_readings(fake_proc.root)
        assert readings.available
        assert readings.uptime_seconds == pytest.approx(4321.5)
        assert readings.clock_ticks == 100
        assert readings.total_ram == 8000 * MIB
        assert readings.free_ram == 2000 * MIB
        assert readings.load_1min == 2.0
        assert readings.cpu_count == 4

    def test_falls_back_to_boot_time(self, tmp_path, fixed_system):
        """Without an uptime file the boot time is used."""
        with (
            patch("lightlimit.monitor.psutil.boot_time", return_value=1000.0),
            patch("lightlimit.monitor.time.time", return_value=1600.0),
        ):
            readings = read_system_readings(tmp_path)
        assert readings.uptime_seconds == pytest.approx(600.0)

    def test_failure_gives_unavailable(self, fake_proc):
        with patch("lightlimit.monitor.psutil.virtual_memory", side_effect=OSError("boom")):
            readings = read_system_readings(fake_proc.root)
        assert readings == SystemReadings.unavailable()


class TestSystemMonitor:
    """Tests for SystemMonitor class."""

    def test_monitor_creation(self):
        """Test SystemMonitor can be instantiated."""
        monitor = SystemMonitor()
        assert monitor.max_processes == 500

    def test_max_processes_minimum(self):
        assert SystemMonitor(max_processes=0).max_processes == 1

    def test_sample_fake_proc(self, fake_proc, fixed_system):
        """Snapshot is derived and ranked from the fake tree."""
        fake_proc.set_uptime(110.0)
        fake_proc.add(1, comm="idle", utime=100, starttime=1000)  # 1s over 100s
        fake_proc.add(2, comm="busy", utime=5000, starttime=1000, vsize=4_000_000_000)
        fake_proc.add(3, comm="broken", stat="3 (broken\n")

        snapshot = SystemMonitor(proc_root=fake_proc.root).sample()

        assert [p.pid for p in snapshot.processes] == [2, 1]
        busy = snapshot.processes[0]
        assert busy.command == "busy"
        assert busy.cpu_percent == pytest.approx(50.0)
        assert busy.vsize_mb == 3814
        assert snapshot.stats.mem_used_mb == 6000
        assert snapshot.stats.cpu_load_percent == pytest.approx(50.0)

    def test_sample_respects_cap(self, fake_proc, fixed_system):
        for pid in range(1, 11):
            fake_proc.add(pid)
        snapshot = SystemMonitor(proc_root=fake_proc.root, max_processes=3).sample()
        assert len(snapshot.processes) == 3

    def test_sample_without_global_readings(self, fake_proc):
        """Processes are still listed when global readings fail."""
        fake_proc.add(1)
        with patch("lightlimit.monitor.psutil.virtual_memory", side_effect=OSError("boom")):
            snapshot = SystemMonitor(proc_root=fake_proc.root).sample()
        assert snapshot.stats is None
        assert [p.pid for p in snapshot.processes] == [1]

    def test_samples_are_independent(self, fake_proc, fixed_system):
        """Each sample is built from scratch."""
        fake_proc.add(1)
        monitor = SystemMonitor(proc_root=fake_proc.root)
        first = monitor.sample()
        fake_proc.add(2)
        second = monitor.sample()
        assert [p.pid for p in first.processes] == [1]
        assert sorted(p.pid for p in second.processes) == [1, 2]

    @linux_only
    def test_sample_real_system(self):
        """Test SystemMonitor collects process samples from the live system."""
        snapshot = SystemMonitor().sample()

        assert snapshot.stats is not None
        assert snapshot.stats.mem_total_mb > 0
        assert len(snapshot.processes) > 0
        for proc in snapshot.processes:
            assert isinstance(proc, ProcessSample)
            assert proc.pid > 0
            assert isinstance(proc.command, str)
            assert proc.cpu_percent >= 0.0

    @linux_only
    def test_real_system_includes_self(self):
        pids = {p.pid for p in SystemMonitor(max_processes=100_000).sample().processes}
        assert psutil.Process().pid in pids
