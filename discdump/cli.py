"""
discdump CLI.
Build and read dumping-tool command lines, check dump outputs and collect
submission metadata from the logs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .common.exceptions import DiscDumpError, format_exception_chain
from .common.models import SubmissionInfo
from .common.types import MediaType, RedumpSystem
from .common.validation import validate_not_empty, validate_range
from .core.config_manager import ConfigManager
from .logging_cfg import configure_logging, get_logger, set_correlation_id
from .tools import tools

app = typer.Typer(
    help="discdump: command lines and submission info for disc dumping tools.",
    rich_markup_mode="rich",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__, level=logging.NOTSET)

HELP_PROGRAM = "Dumping program (dic or redumper)."
HELP_SYSTEM = "System name, e.g. 'Sony PlayStation' or SonyPlayStation."
HELP_MEDIA = "Media type, e.g. CD-ROM or DVD."


@app.callback()
def global_options(
    log_format: str = typer.Option("auto", "--log-format", help="auto, json or human."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages."),
):
    configure_logging(log_format, logging.DEBUG if verbose else logging.WARNING)
    cid = set_correlation_id()
    logger.debug("discdump run %s", cid)


def _fail(message: str) -> None:
    console.print(f"[bold red]✘[/bold red] {message}")
    raise typer.Exit(code=1)


def _system(name: Optional[str]) -> Optional[RedumpSystem]:
    if name is None:
        return None
    try:
        return RedumpSystem.from_name(name)
    except ValueError as e:
        _fail(str(e))


def _media(name: Optional[str]) -> Optional[MediaType]:
    if name is None:
        return None
    try:
        return MediaType.from_name(name)
    except ValueError as e:
        _fail(str(e))


def _options(settings: Optional[Path]):
    if settings is None:
        return None
    try:
        return ConfigManager(settings).to_options()
    except DiscDumpError as e:
        _fail(format_exception_chain(e))


def _parameters(program: str, raw: Optional[str], system: Optional[str], media: Optional[str], **kwargs):
    try:
        return tools.create(program, raw, system=_system(system), media_type=_media(media), **kwargs)
    except DiscDumpError as e:
        _fail(format_exception_chain(e))


@app.command("build")
def cmd_build(
    program: str = typer.Argument(..., help=HELP_PROGRAM),
    system: str = typer.Option(..., help=HELP_SYSTEM),
    media: str = typer.Option(..., help=HELP_MEDIA),
    drive: str = typer.Option(..., help="Drive letter or device path."),
    filename: str = typer.Option(..., help="Output image path."),
    speed: Optional[int] = typer.Option(None, help="Read speed."),
    settings: Optional[Path] = typer.Option(None, help="JSON settings file."),
):
    """Print the default command line for a system and media type."""
    try:
        validate_not_empty(drive, "drive")
        validate_not_empty(filename, "filename")
        if speed is not None:
            validate_range(speed, 0, name="speed")
    except DiscDumpError as e:
        _fail(format_exception_chain(e))
    options = _options(settings)
    params = _parameters(
        program, None, system, media,
        drive=drive, filename=filename, speed=speed, options=options,
    )
    line = params.generate_parameters()
    if line is None:
        _fail(f"No valid {params.program.long_name} command line for {system} on {media}")
    logger.debug("Built %s command line: %s", params.program.long_name, line)
    typer.echo(line)


@app.command("parse")
def cmd_parse(
    program: str = typer.Argument(..., help=HELP_PROGRAM),
    command_line: str = typer.Argument(..., help="Full command line, quoted."),
):
    """Show how a command line is understood."""
    params = _parameters(program, command_line, None, None)
    state = params.state

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("command", state.command.value if state.command is not None else "")
    for name in ("drive", "filename", "secondary_filename", "speed", "start_lba", "end_lba"):
        value = getattr(state, name)
        if value is not None:
            table.add_row(name, str(value))
    if state.extra_lbas:
        table.add_row("extra_lbas", " ".join(str(lba) for lba in state.extra_lbas))
    for flag in params.flag_type:
        if state.flags.is_set(flag):
            values = [str(v) for v in params.values(flag) if v is not None]
            table.add_row(flag.value, " ".join(values))
    console.print(table)


@app.command("flags")
def cmd_flags(
    program: str = typer.Argument(..., help=HELP_PROGRAM),
    command: str = typer.Argument(..., help="Command verb, e.g. cd."),
):
    """List the flags a command accepts."""
    try:
        cls = tools.get(program)
    except DiscDumpError as e:
        _fail(format_exception_chain(e))
    try:
        verb = cls.command_type(command)
    except ValueError:
        _fail(f"Unknown {cls.program.long_name} command: {command}")

    supported = cls.default_registry.flags_for(verb)
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Flag")
    table.add_column("Values", justify="right")
    for flag in cls.flag_type:
        if flag in supported:
            table.add_row(flag.value, str(cls.flag_specs[flag].arity))
    console.print(table)


@app.command("check")
def cmd_check(
    program: str = typer.Argument(..., help=HELP_PROGRAM),
    base_path: Path = typer.Argument(..., help="Output path without extension."),
    system: Optional[str] = typer.Option(None, help=HELP_SYSTEM),
    media: Optional[str] = typer.Option(None, help=HELP_MEDIA),
    command_line: Optional[str] = typer.Option(None, "--command", help="Command line used for the dump."),
    pre_check: bool = typer.Option(False, "--pre-check", help="Accept zipped logs."),
):
    """Report the output files a finished dump is missing."""
    params = _parameters(program, command_line, system, media)
    ok, missing = params.check_all_output_files_exist(base_path, pre_check)
    if ok:
        console.print("[bold green]✔[/bold green] All output files present")
        return
    for entry in missing:
        console.print(f"[red]missing[/red] {entry}", highlight=False)
    raise typer.Exit(code=1)


@app.command("info")
def cmd_info(
    program: str = typer.Argument(..., help=HELP_PROGRAM),
    base_path: Path = typer.Argument(..., help="Output path without extension."),
    system: Optional[str] = typer.Option(None, help=HELP_SYSTEM),
    media: Optional[str] = typer.Option(None, help=HELP_MEDIA),
    command_line: Optional[str] = typer.Option(None, "--command", help="Command line used for the dump."),
    drive_path: Optional[Path] = typer.Option(None, help="Mounted disc, for executable info."),
    artifacts: bool = typer.Option(False, "--artifacts", help="Embed base64 logs."),
    settings: Optional[Path] = typer.Option(None, help="JSON settings file."),
):
    """Print the submission info collected from a dump as JSON."""
    options = _options(settings)
    params = _parameters(program, command_line, system, media)
    info = params.generate_submission_info(
        SubmissionInfo(), base_path, options, drive_path, include_artifacts=artifacts
    )
    typer.echo(json.dumps(info.to_dict(), indent=2, ensure_ascii=False))


def main():
    app()


if __name__ == "__main__":
    main()
