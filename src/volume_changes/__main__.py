"""
Command‑line interface for the volume changes toolkit.
Reads a semicolon-delimited volume table, accumulates the phase volumes per ROI
and writes the phase 1 -> 2 and 2 -> 3 change statistics as JSON.
"""

import json
import logging
import sys
import typing

from collections import namedtuple

import click
from stairval.notepad import Notepad, create_notepad

from .accumulator import ROIAccumulator
from .errors import VolumeChangesError
from .loader import load_volume_table
from .mapper import DefaultMapper
from .roi import ROI
from .stats import dataset_to_stats
from .writer import DEFAULT_RESULTS_PATH, write_stats_json

AuditEntry = namedtuple("AuditEntry", ["roi", "admitted", "dropped", "level"])


def _input_file_option(function):
    return click.option(
        "-f",
        "--file",
        "input_file",
        required=True,
        type=click.Path(exists=True, dir_okay=False),
        help="CSV input file [semicolon delimited]",
    )(function)


def _decimal_option(function):
    return click.option(
        "--decimal",
        default=".",
        show_default=True,
        help="Decimal separator used by the volume columns (e.g. ',')",
    )(function)


@click.group()
def main():
    """Volume changes: per-ROI volume change statistics between treatment phases."""
    pass


@main.command(name="compute")
@_input_file_option
@click.option(
    "-r",
    "--results",
    "results_file",
    default=DEFAULT_RESULTS_PATH,
    show_default=True,
    type=click.Path(dir_okay=False, writable=True),
    help="JSON file where the results are written to",
)
@click.option(
    "--strict/--no-strict",
    default=False,
    help="Fail when a phase transition has fewer than two valid pairs (default: report NaN as null).",
)
@_decimal_option
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def compute(
    input_file: str,
    results_file: str,
    strict: bool,
    decimal: str,
    verbose_logging: bool,
    log_file_path: typing.Optional[str],
):
    """
    Read the volume table, then:
      - accumulate GTV, GTV_N and PTV_DP volumes of every complete patient
      - derive the 1 -> 2 and 2 -> 3 statistics per ROI
      - write them, sorted by ROI and phases, to the results file
    """
    _configure_logging(verbose_logging, log_file_path)

    # 1) Read table and map it onto the ROI accumulators
    notepad = create_notepad("volume-changes")
    accumulators, _ = _accumulate(input_file, decimal, notepad)

    # 2) Report any errors or warnings; errors stop the run
    _report_issues(notepad)
    if notepad.has_errors(include_subsections=True):
        sys.exit(1)

    # 3) Statistics, sorted by (ROI, phase start, phase end)
    try:
        stats = dataset_to_stats(accumulators, strict=strict)
    except VolumeChangesError as e:
        logging.error(f"Failed to compute statistics: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    # 4) Serialize
    try:
        out = write_stats_json(stats, results_file)
    except OSError as e:
        click.echo(f"Error: cannot write {results_file}: {e}", err=True)
        sys.exit(1)

    logging.info(f"Wrote {len(stats)} statistics records to '{out}'")
    click.echo(f"Wrote {len(stats)} statistics records to {out}")


@main.command(name="audit")
@_input_file_option
@_decimal_option
@click.option("-j", "--json", "as_json", is_flag=True, help="Emit the audit as JSON instead of a table")
def audit(input_file: str, decimal: str, as_json: bool):
    """
    Report, per ROI, how many patients have all three phases (admitted)
    and how many are left out of the statistics (dropped).
    """
    notepad = create_notepad("volume-audit")
    accumulators, total = _accumulate(input_file, decimal, notepad)
    if notepad.has_errors(include_subsections=True):
        _report_issues(notepad)
        sys.exit(1)

    entries = audit_accumulators(accumulators, total)

    if as_json:
        click.echo(json.dumps([entry._asdict() for entry in entries], indent=2))
        return

    click.echo(f"{'ROI':8}  {'ADMITTED':>8}  {'DROPPED':>7}  LEVEL")
    for entry in entries:
        line = f"{entry.roi:8}  {entry.admitted:>8}  {entry.dropped:>7}  {entry.level}"
        # color by level
        if entry.level == "error":
            click.echo(click.style(line, fg="red"))
        elif entry.level == "warning":
            click.echo(click.style(line, fg="yellow"))
        else:
            click.echo(line)


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _accumulate(
    input_file: str, decimal: str, notepad: Notepad
) -> tuple[dict[ROI, ROIAccumulator], int]:
    # load, then map rows onto accumulators; read failures end the run
    logging.info(f"Beginning parse of '{input_file}'")
    try:
        table = load_volume_table(input_file, decimal=decimal)
    except VolumeChangesError as e:
        logging.error(f"Failed to read '{input_file}': {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    return DefaultMapper().apply_mapping(table, notepad), len(table)


def audit_accumulators(accumulators: dict[ROI, ROIAccumulator], total: int) -> list[AuditEntry]:
    """
    One entry per ROI:
      - admitted: patients with all three phase volumes
      - dropped: the remaining patients of the table
      - level: 'error' if fewer than two patients remain (no std dev possible),
        'warning' if any patient was dropped, 'info' otherwise
    """
    entries: list[AuditEntry] = []
    for roi, accumulator in accumulators.items():
        admitted = len(accumulator)
        dropped = total - admitted
        if admitted < 2:
            level = "error"
        elif dropped:
            level = "warning"
        else:
            level = "info"
        entries.append(AuditEntry(roi=roi.value, admitted=admitted, dropped=dropped, level=level))
    return entries


def _report_issues(notepad: Notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in mapping:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in mapping:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


if __name__ == "__main__":
    main()
