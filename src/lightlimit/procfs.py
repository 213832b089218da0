"""Process registry reader for lightlimit.

Reads per-process ``comm`` and ``stat`` files from a procfs mount. A process
that exits between the directory listing and the file reads simply disappears
from the result; so does any record that cannot be parsed.
"""

from dataclasses import dataclass
from pathlib import Path

from lightlimit.models import UNKNOWN_COMMAND, RawProcessRecord

PROC_ROOT = Path("/proc")
MAX_PROCESSES = 500

# Positions of the fields we need, counted from the first field after the
# closing parenthesis of the command (proc(5) fields 3, 14, 15, 22, 23).
_STATE = 0
_UTIME = 11
_STIME = 12
_STARTTIME = 19
_VSIZE = 20
_MIN_FIELDS = _VSIZE + 1


class StatParseError(ValueError):
    """Raised when a stat record cannot be parsed."""


@dataclass(slots=True, frozen=True)
class StatFields:
    """Fields extracted from one stat record."""

    pid: int
    command: str
    state: str
    utime: int
    stime: int
    starttime: int
    vsize: int


def parse_stat_line(line: str) -> StatFields:
    """
    Parse a ``/proc/<pid>/stat`` record.

    The command is wrapped in parentheses and may itself contain spaces,
    parentheses or newlines, so it spans from the first '(' to the last ')'.
    Every other field is read positionally from after the last ')'.

    Raises:
        StatParseError: If the command delimiters are missing, fewer fields
            than expected follow the command, or a numeric field is invalid.
    """
    open_paren = line.find("(")
    close_paren = line.rfind(")")
    if open_paren < 0 or close_paren < open_paren:
        raise StatParseError("stat record has no parenthesized command")

    fields = line[close_paren + 1 :].split()
    if len(fields) < _MIN_FIELDS:
        raise StatParseError(f"expected at least {_MIN_FIELDS} fields, got {len(fields)}")

    try:
        return StatFields(
            pid=int(line[:open_paren]),
            command=line[open_paren + 1 : close_paren],
            state=fields[_STATE],
            utime=int(fields[_UTIME]),
            stime=int(fields[_STIME]),
            starttime=int(fields[_STARTTIME]),
            vsize=int(fields[_VSIZE]),
        )
    except ValueError as e:
        raise StatParseError(f"invalid numeric field: {e}") from e


def read_command(pid_dir: Path) -> str:
    """Read the short command name of a process, or UNKNOWN_COMMAND."""
    try:
        content = (pid_dir / "comm").read_text(errors="replace")
    except OSError:
        return UNKNOWN_COMMAND
    command = content.split("\n", 1)[0]
    return command or UNKNOWN_COMMAND


def read_uptime(proc_root: Path = PROC_ROOT) -> float:
    """Return seconds since boot from ``<proc_root>/uptime``."""
    content = (proc_root / "uptime").read_text()
    return float(content.split()[0])


def _pid_dirs(proc_root: Path) -> list[tuple[int, Path]]:
    """List numerically named entries in ascending PID order."""
    try:
        entries = [
            (int(p.name), p)
            for p in proc_root.iterdir()
            if p.name.isascii() and p.name.isdigit()
        ]
    except OSError:
        return []
    entries.sort()
    return entries


def read_process(pid: int, pid_dir: Path) -> RawProcessRecord:
    """
    Read one process's counters.

    Raises:
        OSError: If the stat file cannot be read (the process has usually exited).
        StatParseError: If the stat record is malformed.
    """
    command = read_command(pid_dir)
    stat = parse_stat_line((pid_dir / "stat").read_text(errors="replace"))
    if command == UNKNOWN_COMMAND:
        # comm unreadable; the name in the stat record is the same one
        command = stat.command.split("\n", 1)[0] or UNKNOWN_COMMAND
    return RawProcessRecord(
        pid=pid,
        command=command,
        stat_command=stat.command,
        state=stat.state,
        utime=stat.utime,
        stime=stat.stime,
        starttime=stat.starttime,
        vsize=stat.vsize,
    )


def enumerate_processes(
    max_count: int = MAX_PROCESSES,
    proc_root: Path = PROC_ROOT,
) -> list[RawProcessRecord]:
    """
    Collect raw records for running processes.

    Stops once ``max_count`` records have been collected. Processes that
    vanish mid-scan or have malformed records are skipped.
    """
    records: list[RawProcessRecord] = []
    if max_count <= 0:
        return records

    for pid, pid_dir in _pid_dirs(proc_root):
        try:
            records.append(read_process(pid, pid_dir))
        except (OSError, StatParseError):
            continue
        if len(records) >= max_count:
            break

    return records
