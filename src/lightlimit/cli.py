"""CLI commands for lightlimit."""

from pathlib import Path

import click

from lightlimit import log
from lightlimit.config import Config


def _load_config(ctx: click.Context) -> Config:
    path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        config = Config.load(path)
    except ValueError as e:
        log.error(str(e))
        ctx.exit(1)
    log.configure(config)
    return config


def _check_permissions() -> None:
    from lightlimit.control import is_root

    if not is_root():
        log.warn("Not running as root. Some features may not work.")


@click.group()
@click.version_option(package_name="lightlimit")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to a TOML config file",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None) -> None:
    """LightLimit: CPU budget control and interactive process monitor.

    Most commands require root privileges.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.pass_context
def monitor(ctx: click.Context) -> None:
    """Interactive process monitor (arrows navigate, k kills, q quits)."""
    from lightlimit.app import run_monitor

    config = _load_config(ctx)
    try:
        run_monitor(config)
    except Exception as e:
        log.error(f"Failed to start monitor: {e}")
        ctx.exit(1)


@main.command()
@click.pass_context
def htop(ctx: click.Context) -> None:
    """Alias for monitor."""
    ctx.invoke(monitor)


@main.command()
@click.argument("cpu_percentage", type=int)
@click.pass_context
def total(ctx: click.Context, cpu_percentage: int) -> None:
    """Set the total CPU limit for all processes (0-100%)."""
    from lightlimit.control import ControlError, set_total_limit

    if not 0 <= cpu_percentage <= 100:
        log.error("CPU percentage must be between 0 and 100.")
        ctx.exit(1)

    config = _load_config(ctx)
    _check_permissions()
    try:
        _, cores = set_total_limit(cpu_percentage, config)
    except ControlError as e:
        log.error(str(e))
        ctx.exit(1)
    click.echo(f"Total CPU limit set to {cpu_percentage}% across {cores} cores/threads.")


@main.command()
@click.argument("core_list")
@click.pass_context
def preference(ctx: click.Context, core_list: str) -> None:
    """Set CPU affinity of this process (e.g. '0,1,3')."""
    from lightlimit.control import ControlError, set_preference

    _load_config(ctx)
    try:
        set_preference(core_list)
    except ControlError as e:
        log.error(str(e))
        ctx.exit(1)
    click.echo(f"CPU affinity set to cores: {core_list}")


@main.command()
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Reset CPU limits and the cgroup."""
    from lightlimit.control import ControlError, reset_limit

    config = _load_config(ctx)
    _check_permissions()
    try:
        reset_limit(config)
    except ControlError as e:
        log.error(str(e))
        ctx.exit(1)
    click.echo("CPU limit reset.")


@main.command()
@click.pass_context
def uninstall(ctx: click.Context) -> None:
    """Remove the cgroup that lightlimit creates."""
    from lightlimit.control import ControlError
    from lightlimit.control import uninstall as remove

    config = _load_config(ctx)
    _check_permissions()
    try:
        remove(config)
    except ControlError as e:
        log.error(str(e))
        ctx.exit(1)
    click.echo("LightLimit cgroup removed successfully.")


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Display CPU and memory info."""
    from lightlimit.control import format_uptime, system_info

    config = _load_config(ctx)
    summary = system_info(config.proc_root)
    if summary is None:
        log.error("Failed to get system information")
        ctx.exit(1)

    click.echo(f"CPU Cores: {summary.cores}")
    click.echo(f"Total RAM: {summary.total_ram_mb} MB")
    click.echo(f"Free RAM: {summary.free_ram_mb} MB")
    click.echo(f"Uptime: {format_uptime(summary.uptime_seconds)}")
