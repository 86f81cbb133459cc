"""CLI interface for the SID disassembler."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from sid_disasm import TOOL_NAME, __version__
from sid_disasm.analysis.trace import TraceError, parse_address
from sid_disasm.config import get_settings
from sid_disasm.pipeline import DisassemblyReport, disassemble_sid
from sid_disasm.sid.loader import SidFormatError, load_sid

app = typer.Typer(
    name=TOOL_NAME,
    help="Relocation-aware disassembler for C64 SID music files",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{TOOL_NAME} version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = False,
):
    """SID disassembler - turn .sid tunes back into relocatable source."""
    pass


# --- Shared helpers ---


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_address_option(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_address(value)
    except ValueError:
        raise typer.BadParameter(f"not an address: {value}")


def _display_report(report: DisassemblyReport) -> None:
    table = Table(title=f"Disassembled: {report.sid.name or report.output_path.stem}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Range", f"${report.sid.load_address:04X}-${report.sid.end_address - 1:04X}")
    table.add_row("Indirect accesses", str(report.indirect_accesses))
    table.add_row("Relocation bytes", str(report.relocation_bytes))
    table.add_row("Labels", str(report.labels))
    if report.propagation:
        status = "[green]converged[/]" if report.propagation.converged else "[yellow]pass limit hit[/]"
        table.add_row("Propagation", f"{report.propagation.passes} pass(es), {status}")
    table.add_row("Unused bytes zeroed", str(report.unused_bytes))
    console.print(table)


# --- Commands ---


@app.command()
def disassemble(
    sid_file: Annotated[Path, typer.Argument(help="PSID/RSID file to disassemble")],
    trace: Annotated[Optional[Path], typer.Option("--trace", "-t", help="Emulation trace (JSON)")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output .asm path")] = None,
    load_address: Annotated[Optional[str], typer.Option("--load-address", "-l", help="Relocate output to this address ($XXXX)")] = None,
    max_passes: Annotated[Optional[int], typer.Option("--max-passes", min=1, help="Relocation propagation pass limit")] = None,
    unbounded: Annotated[bool, typer.Option("--unbounded", help="Propagate relocations until closure")] = False,
    pair_window: Annotated[Optional[int], typer.Option("--pair-window", min=1, max=32, help="Max distance between pointer lo/hi bytes")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """Disassemble a SID file into KickAssembler source."""
    _configure_logging(verbose)
    sid_load = _parse_address_option(load_address)

    settings = get_settings().model_copy()
    if unbounded:
        settings.unbounded_propagation = True
    elif max_passes is not None:
        settings.unbounded_propagation = False
        settings.max_propagation_passes = max_passes
    if pair_window is not None:
        settings.pair_window = pair_window

    try:
        report = disassemble_sid(
            sid_file,
            output_path=output,
            trace_path=trace,
            sid_load=sid_load,
            settings=settings,
        )
    except (FileNotFoundError, SidFormatError, TraceError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    if not report.written:
        console.print(f"[red]Failed to write {report.output_path}[/]")
        raise typer.Exit(1)

    _display_report(report)
    console.print(f"\n[bold green]Written to:[/] {report.output_path}")


@app.command()
def info(
    sid_file: Annotated[Path, typer.Argument(help="PSID/RSID file to inspect")],
):
    """Show the header of a SID file."""
    try:
        sid = load_sid(sid_file)
    except (FileNotFoundError, SidFormatError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    header = sid.header
    console.print(Panel(f"{sid.name}\n[dim]{sid.author} - {sid.copyright}[/]", title=sid_file.name))

    table = Table(title="SID Header")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Format", f"{header.magic} v{header.version}")
    table.add_row("Load", f"${sid.load_address:04X}" + (" (from data)" if header.load_address == 0 else ""))
    table.add_row("Init", f"${header.init_address:04X}")
    table.add_row("Play", f"${header.play_address:04X}")
    table.add_row("Size", f"{sid.data_size} bytes (ends ${sid.end_address - 1:04X})")
    table.add_row("Songs", f"{header.songs} (start {header.start_song})")
    table.add_row("Speed", f"${header.speed:08X}")
    if header.version >= 2:
        table.add_row("Clock", header.clock)
        table.add_row("SID model", header.sid_model)
    console.print(table)
