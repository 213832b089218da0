"""lightlimit - Interactive process monitor."""

from collections.abc import Callable

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Static

from lightlimit.config import Config, ThresholdConfig
from lightlimit.control import TerminationResult, terminate_process
from lightlimit.loop import Command, Frame, LoopState, MonitorLoop
from lightlimit.metrics import UsageLevel, usage_level
from lightlimit.models import ProcessSample, SystemStats
from lightlimit.monitor import SystemMonitor
from lightlimit.viewport import page_size_for

# Status bar, table border (2), table header, info line, key footer
CHROME_ROWS = 6

ROW_STYLES = {
    UsageLevel.HIGH: "red",
    UsageLevel.MEDIUM: "yellow",
    UsageLevel.NORMAL: "cyan",
}
SELECTED_STYLE = "bold black on cyan"
STATUS_STYLE = "white on blue"


def format_cpu(stats: SystemStats | None) -> str:
    """Format the machine-wide CPU estimate."""
    if stats is None:
        return "CPU: N/A"
    return f"CPU: {stats.cpu_load_percent:.1f}%"


def format_mem(stats: SystemStats | None) -> str:
    """Format machine-wide memory usage."""
    if stats is None:
        return "Mem: N/A"
    return f"Mem: {stats.mem_used_mb}/{stats.mem_total_mb} MB ({stats.mem_percent:.1f}%)"


def format_selection(frame: Frame) -> str:
    """Format the process count and current selection."""
    if frame.selected is None:
        return f"Processes: {frame.count} | Selected: 0 (none)"
    return (
        f"Processes: {frame.count} | "
        f"Selected: {frame.selected.pid} ({frame.selected.command})"
    )


class StatusBar(Static):
    """Top bar with global stats and the key legend."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $primary-background;
    }
    """

    def update_stats(self, stats: SystemStats | None) -> None:
        """Update the bar from the latest system stats."""
        self.update(
            Text(
                f" LightLimit Monitor | {format_cpu(stats)} | {format_mem(stats)} "
                "| Press q:Quit k:Kill r:Refresh",
                style=STATUS_STYLE,
            )
        )


class InfoLine(Static):
    """Bottom line with the process count, selection and last action message."""

    DEFAULT_CSS = """
    InfoLine {
        height: 1;
        background: $primary-background;
    }
    """

    def update_frame(self, frame: Frame) -> None:
        """Update the line from a frame."""
        text = Text(f" {format_selection(frame)}", style=STATUS_STYLE)
        if frame.message:
            text.append(f" | {frame.message}", style="bold red on blue")
        self.update(text)


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, thresholds: ThresholdConfig, command_width: int, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._thresholds = thresholds
        self._command_width = command_width
        self._visible_pids: list[int] = []

    @property
    def visible_pids(self) -> list[int]:
        """PIDs currently drawn, top to bottom."""
        return list(self._visible_pids)

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        table = DataTable(id="process-table", cursor_type="none", zebra_stripes=False)
        # Navigation keys belong to the app, not the table
        table.can_focus = False
        yield table

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.add_column("PID", key="pid", width=7)
        table.add_column("CPU%", key="cpu", width=7)
        table.add_column("MEM%", key="mem", width=7)
        table.add_column("MEM(MB)", key="vsize", width=9)
        table.add_column("COMMAND", key="command", width=self._command_width)

    def show_frame(self, frame: Frame) -> None:
        """Redraw the visible window of the ranked snapshot."""
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for offset, proc in enumerate(frame.rows):
            is_selected = frame.viewport_start + offset == frame.view.selected_index
            table.add_row(*self._row_cells(proc, is_selected), key=str(proc.pid))
        self._visible_pids = [proc.pid for proc in frame.rows]

    def _row_cells(self, proc: ProcessSample, is_selected: bool) -> list[Text]:
        if is_selected:
            style = SELECTED_STYLE
        else:
            level = usage_level(proc, self._thresholds.high, self._thresholds.medium)
            style = ROW_STYLES[level]
        return [
            Text(f"{proc.pid:>5}", style=style),
            Text(f"{proc.cpu_percent:5.1f}", style=style),
            Text(f"{proc.mem_percent:5.1f}", style=style),
            Text(f"{proc.vsize_mb:>7}", style=style),
            Text(proc.command[: self._command_width], style=style),
        ]


class KillConfirmScreen(ModalScreen[bool]):
    """Blocking yes/no prompt before terminating a process."""

    DEFAULT_CSS = """
    KillConfirmScreen {
        align: center middle;
    }

    #kill-prompt {
        width: auto;
        padding: 1 2;
        border: thick $error;
        background: $surface;
        color: $error;
        text-style: bold;
    }
    """

    def __init__(self, pid: int, command: str) -> None:
        super().__init__()
        self.target_pid = pid
        self.target_command = command

    def compose(self) -> ComposeResult:
        prompt = f"Kill process {self.target_pid} ({self.target_command})? (y/n)"
        yield Static(Text(prompt), id="kill-prompt")

    def on_key(self, event: events.Key) -> None:
        """Any key answers the prompt; only y confirms."""
        event.stop()
        event.prevent_default()
        self.dismiss(event.character in ("y", "Y"))


class LightLimitApp(App):
    """Main lightlimit application."""

    TITLE = "lightlimit"
    SUB_TITLE = "LightLimit Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("k", "kill", "Kill"),
        ("r", "refresh", "Refresh"),
        Binding("Q", "quit", "Quit", show=False),
        Binding("K", "kill", "Kill", show=False),
        Binding("R", "refresh", "Refresh", show=False),
        Binding("up", "navigate('up')", "Up", show=False),
        Binding("down", "navigate('down')", "Down", show=False),
        Binding("home", "navigate('home')", "Home", show=False),
        Binding("end", "navigate('end')", "End", show=False),
        Binding("pageup", "navigate('page_up')", "Page Up", show=False),
        Binding("pagedown", "navigate('page_down')", "Page Down", show=False),
    ]

    def __init__(
        self,
        config: Config | None = None,
        monitor: SystemMonitor | None = None,
        terminate: Callable[[int], TerminationResult] = terminate_process,
    ) -> None:
        """Initialize the LightLimitApp."""
        super().__init__()
        self.config = config or Config()
        monitor = monitor or SystemMonitor(
            proc_root=self.config.proc_root,
            max_processes=self.config.monitor.max_processes,
            command_width=self.config.monitor.command_width,
        )
        self._monitor_loop = MonitorLoop(monitor, terminate=terminate)
        self._refresh_timer = None
        self._last_frame: Frame | None = None

    @property
    def loop(self) -> MonitorLoop:
        return self._monitor_loop

    @property
    def frame(self) -> Frame | None:
        """Last frame drawn."""
        return self._last_frame

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatusBar(id="status-bar")
        yield ProcessTable(
            self.config.thresholds,
            self.config.monitor.command_width,
            id="process-container",
        )
        yield InfoLine(id="info-line")
        yield Footer()

    def on_mount(self) -> None:
        """Draw the first frame and start the refresh timer."""
        self._refresh_tick()
        self._refresh_timer = self.set_interval(
            self.config.monitor.refresh_interval, self._refresh_tick
        )

    def _table_page_size(self) -> int:
        return page_size_for(self.size.height, CHROME_ROWS)

    def _refresh_tick(self) -> None:
        """Resample and redraw."""
        if self._monitor_loop.state is not LoopState.RUNNING:
            return
        self._draw_frame(self._monitor_loop.tick(self._table_page_size()))

    def _draw_frame(self, frame: Frame) -> None:
        self._last_frame = frame
        try:
            self.query_one("#status-bar", StatusBar).update_stats(frame.stats)
            self.query_one(ProcessTable).show_frame(frame)
            self.query_one("#info-line", InfoLine).update_frame(frame)
        except NoMatches:
            pass  # Widgets not mounted yet

    def _after_input(self) -> None:
        """Input ends the wait: start the next iteration right away."""
        if self._monitor_loop.state is LoopState.EXITING:
            self.exit()
            return
        if self._refresh_timer is not None:
            self._refresh_timer.reset()
        self._refresh_tick()

    def action_quit(self) -> None:
        """Handle quit action."""
        self._monitor_loop.dispatch(Command.QUIT)
        self._after_input()

    def action_refresh(self) -> None:
        """Handle refresh action; every input already triggers a resample."""
        self._monitor_loop.dispatch(Command.REFRESH)
        self._after_input()

    def action_navigate(self, direction: str) -> None:
        """Handle navigation keys."""
        self._monitor_loop.dispatch(Command(direction))
        self._after_input()

    def action_kill(self) -> None:
        """Ask for confirmation before killing the selected process."""
        if self._monitor_loop.dispatch(Command.KILL) is not LoopState.CONFIRMING_KILL:
            self._after_input()
            return

        target = self._monitor_loop.pending_kill
        if self._refresh_timer is not None:
            self._refresh_timer.pause()
        self.push_screen(KillConfirmScreen(target.pid, target.command), self._on_kill_answer)

    def _on_kill_answer(self, answer: bool | None) -> None:
        self._monitor_loop.confirm(bool(answer))
        if self._refresh_timer is not None:
            self._refresh_timer.resume()
        self._after_input()


def run_monitor(config: Config | None = None) -> None:
    """Run the interactive monitor until the operator quits."""
    app = LightLimitApp(config)
    app.run()
