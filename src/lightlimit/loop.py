"""Refresh loop state machine for the interactive monitor.

The loop owns the ViewState and the current snapshot. A frontend calls
tick() once per refresh, then feeds user input through dispatch() and, while
a kill is being confirmed, confirm(). Nothing here touches the terminal.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from lightlimit.control import TerminationResult, terminate_process
from lightlimit.log import get_logger
from lightlimit.models import ProcessSample, SystemStats
from lightlimit.monitor import SystemMonitor, SystemSnapshot
from lightlimit.viewport import ViewState, selected, visible

log = get_logger(__name__)


class LoopState(Enum):
    """States of the refresh loop."""

    RUNNING = "running"
    CONFIRMING_KILL = "confirming_kill"
    EXITING = "exiting"


class Command(Enum):
    """Operator commands."""

    QUIT = "quit"
    KILL = "kill"
    REFRESH = "refresh"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"


@dataclass(slots=True, frozen=True)
class Frame:
    """Everything needed to draw one screen."""

    stats: SystemStats | None
    processes: tuple[ProcessSample, ...]
    view: ViewState
    page_size: int
    viewport_start: int
    rows: Sequence[ProcessSample]
    selected: ProcessSample | None
    message: str | None = None

    @property
    def count(self) -> int:
        return len(self.processes)


class MonitorLoop:
    """
    Sample, render, poll, repeat.

    Termination requests are issued from confirm() and only show up in the
    snapshot taken by the following tick().
    """

    def __init__(
        self,
        monitor: SystemMonitor,
        terminate: Callable[[int], TerminationResult] = terminate_process,
    ) -> None:
        self._monitor = monitor
        self._terminate = terminate
        self._state = LoopState.RUNNING
        self._view = ViewState()
        self._snapshot = SystemSnapshot(stats=None, processes=())
        self._page_size = 1
        self._pending: ProcessSample | None = None
        self._message: str | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def pending_kill(self) -> ProcessSample | None:
        """Process awaiting kill confirmation."""
        return self._pending

    def tick(self, page_size: int) -> Frame:
        """Take a new snapshot and build the frame for it."""
        if self._state is not LoopState.RUNNING:
            raise RuntimeError(f"tick() called in state {self._state.value}")
        self._page_size = max(1, page_size)
        self._snapshot = self._monitor.sample()
        self._view = self._view.clamp(len(self._snapshot.processes))
        return self.frame()

    def frame(self) -> Frame:
        """Build a frame for the current snapshot without resampling."""
        processes = self._snapshot.processes
        return Frame(
            stats=self._snapshot.stats,
            processes=processes,
            view=self._view,
            page_size=self._page_size,
            viewport_start=self._view.viewport_start(self._page_size),
            rows=visible(processes, self._view, self._page_size),
            selected=selected(processes, self._view),
            message=self._message,
        )

    def dispatch(self, command: Command) -> LoopState:
        """Apply an operator command and return the resulting state."""
        if command is Command.QUIT:
            self._state = LoopState.EXITING
            return self._state
        if self._state is not LoopState.RUNNING:
            return self._state

        self._message = None
        count = len(self._snapshot.processes)
        page = self._page_size

        if command is Command.KILL:
            target = selected(self._snapshot.processes, self._view)
            if target is not None:
                self._pending = target
                self._state = LoopState.CONFIRMING_KILL
        elif command is Command.UP:
            self._view = self._view.move(-1, count)
        elif command is Command.DOWN:
            self._view = self._view.move(1, count)
        elif command is Command.HOME:
            self._view = self._view.first()
        elif command is Command.END:
            self._view = self._view.last(count)
        elif command is Command.PAGE_UP:
            self._view = self._view.page_up(page, count)
        elif command is Command.PAGE_DOWN:
            self._view = self._view.page_down(page, count)
        # REFRESH needs nothing: the next tick resamples.

        return self._state

    def confirm(self, answer: bool) -> TerminationResult | None:
        """Resolve a pending kill. Returns the termination result if one was issued."""
        if self._state is not LoopState.CONFIRMING_KILL or self._pending is None:
            return None

        target = self._pending
        self._pending = None
        self._state = LoopState.RUNNING
        if not answer:
            return None

        log.info("kill_requested", pid=target.pid, command=target.command)
        result = self._terminate(target.pid)
        if not result.ok:
            log.warning("kill_failed", pid=target.pid, error=result.error)
            self._message = f"Failed to kill process {target.pid}: {result.error}"
        return result
