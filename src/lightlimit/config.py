"""Configuration system for lightlimit."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path

import tomlkit


@dataclass
class MonitorConfig:
    """Interactive monitor configuration."""

    refresh_interval: float = 0.5  # Seconds between refreshes
    max_processes: int = 500  # Cap on processes collected per refresh
    command_width: int = 50  # Display width of the command column
    proc_root: str = "/proc"


@dataclass
class ThresholdConfig:
    """Utilization thresholds (percent) for row coloring."""

    high: float = 50.0
    medium: float = 20.0


@dataclass
class LimitsConfig:
    """CPU quota configuration."""

    cgroup_base: str = "/sys/fs/cgroup/cpu/lightlimit"
    period_us: int = 100_000  # CFS period in microseconds


@dataclass
class SystemConfig:
    """Log file configuration."""

    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


@dataclass
class Config:
    """Main configuration container."""

    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "lightlimit"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "lightlimit"

    @property
    def log_path(self) -> Path:
        """Log file path."""
        return self.state_dir / "lightlimit.log"

    @property
    def proc_root(self) -> Path:
        return Path(self.monitor.proc_root)

    @property
    def cgroup_base(self) -> Path:
        return Path(self.limits.cgroup_base)

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("monitor", "thresholds", "limits", "system"):
            section = getattr(self, name)
            table = tomlkit.table()
            for f in fields(section):
                table.add(f.name, getattr(section, f.name))
            doc.add(name, table)
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values."""
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            monitor=_load_monitor_config(data.get("monitor", {})),
            thresholds=_load_threshold_config(data.get("thresholds", {})),
            limits=_load_limits_config(data.get("limits", {})),
            system=_load_section(SystemConfig, data.get("system", {}), "system"),
        )


def _check_type(section: str, key: str, value, default):
    """Return value coerced to the type of default, or raise ValueError naming the key."""
    expected = type(default)
    # bool is an int subclass; never accept it for numeric settings
    if isinstance(value, bool) and expected is not bool:
        raise ValueError(f"{section}.{key} must be {expected.__name__}, got {value!r}")
    if expected is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, expected):
        raise ValueError(f"{section}.{key} must be {expected.__name__}, got {value!r}")
    return value


def _load_section(section_cls, data: dict, section: str):
    """Build a config section from TOML data, using dataclass defaults for missing fields."""
    if not isinstance(data, Mapping):
        raise ValueError(f"[{section}] must be a table, got {data!r}")
    defaults = section_cls()
    values = {}
    for f in fields(section_cls):
        default = getattr(defaults, f.name)
        if f.name not in data:
            values[f.name] = default
            continue
        value = data[f.name]
        # tomlkit items wrap plain values; unwrap to builtins
        value = value.unwrap() if hasattr(value, "unwrap") else value
        values[f.name] = _check_type(section, f.name, value, default)
    return section_cls(**values)


def _load_monitor_config(data: dict) -> MonitorConfig:
    config = _load_section(MonitorConfig, data, "monitor")
    if config.refresh_interval <= 0:
        raise ValueError(f"refresh_interval must be > 0, got {config.refresh_interval}")
    if config.max_processes < 1:
        raise ValueError(f"max_processes must be >= 1, got {config.max_processes}")
    if config.command_width < 1:
        raise ValueError(f"command_width must be >= 1, got {config.command_width}")
    return config


def _load_threshold_config(data: dict) -> ThresholdConfig:
    config = _load_section(ThresholdConfig, data, "thresholds")
    if config.medium > config.high:
        raise ValueError(
            f"thresholds.medium ({config.medium}) must not exceed thresholds.high ({config.high})"
        )
    return config


def _load_limits_config(data: dict) -> LimitsConfig:
    config = _load_section(LimitsConfig, data, "limits")
    if config.period_us < 1000:
        raise ValueError(f"period_us must be >= 1000, got {config.period_us}")
    return config
