#!/usr/bin/env python3
"""jit-analyze - JIT compiler log analyzer.

Reports, one per run and file:
- Compile queue occupancy per tier level, with demotions (-Q)
- Eliminated locks with their inlining chains (-L)
- Compilation statistics: code cache, phase times, regalloc passes (-S)
- Recompilation hotspots ranked by uncommon trap frequency (-R)
- Plain timestamped event listing, optionally with inlining trees (default)
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from typer.core import TyperCommand

from jit_analyze import __version__
from jit_analyze.compile_queue import track_compile_queue
from jit_analyze.compile_stats import aggregate_statistics
from jit_analyze.errors import AnalysisError, EventSourceError
from jit_analyze.events import Event
from jit_analyze.locks import collect_eliminated_locks
from jit_analyze.options import AnalysisOptions, select_report
from jit_analyze.ordering import SortKey, sort_events
from jit_analyze.recompilation import correlate_recompilations
from jit_analyze.render import (
    console,
    err_console,
    render_eliminated_locks,
    render_plain_report,
    render_queue_report,
    render_recompilation_report,
    render_statistics_report,
)
from jit_analyze.source import JsonEventSource

SORT_KEY_META = "jit_analyze.sort_key"
SORT_FLAGS: dict[str, SortKey] = {"s": "start", "e": "elapsed", "n": "name"}
USAGE_EXIT_STATUS = 2

# ============================================================
# REPORT DISPATCH
# ============================================================


def run_report(events: list[Event], options: AnalysisOptions) -> None:
    """Run the selected analysis over one file's events and print it."""
    if options.report == "queue":
        render_queue_report(track_compile_queue(events))
    elif options.report == "locks":
        render_eliminated_locks(collect_eliminated_locks(events, options.sort_key))
    elif options.report == "statistics":
        render_statistics_report(aggregate_statistics(events))
    elif options.report == "recompilation":
        render_recompilation_report(correlate_recompilations(events))
    else:
        render_plain_report(
            sort_events(events, options.sort_key), print_inlining=options.print_inlining
        )


def analyze_file(path: Path, options: AnalysisOptions) -> None:
    """Load one event dump and report on it."""
    source = JsonEventSource(path, cleanup=options.cleanup)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress:
        progress.add_task(f"[cyan]Loading events from {escape(str(path))}...", total=None)
        events = source.load()

    for problem in source.problems:
        err_console.print(f"[warning]Skipped malformed record {escape(problem)}[/warning]")
    if options.verbose:
        err_console.print(
            f"[info]Loaded {len(events)} events from {escape(str(path))} "
            f"({source.skipped} skipped), running {options.report} report[/info]"
        )

    run_report(events, options)


# ============================================================
# COMMAND LINE
# ============================================================

app = typer.Typer(
    name="jit-analyze",
    help="JIT compiler log analyzer: compile queue, recompilation and code cache reports",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h"]},
)


def last_sort_key(args: list[str]) -> SortKey:
    """Sort key named by the last -s, -e or -n flag in args, start when none is given."""
    key: SortKey = "start"
    for arg in args:
        if arg == "--":
            break
        if arg.startswith("-") and not arg.startswith("--"):
            # Short flags may be bundled, as in -se.
            for flag in arg[1:]:
                key = SORT_FLAGS.get(flag, key)
    return key


class AnalyzeCommand(TyperCommand):
    """Records the sort order from the raw arguments before click parses them.

    Click keeps only the first position of a repeated flag, so `-s -e -s`
    would otherwise look like `-s -e`.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        ctx.meta[SORT_KEY_META] = last_sort_key(args)
        return super().parse_args(ctx, args)


def _show_version(value: bool) -> None:
    if value:
        console.print(f"jit-analyze {__version__}")
        raise typer.Exit()


@app.command(cls=AnalyzeCommand)
def analyze(
    ctx: typer.Context,
    files: Annotated[
        list[Path],
        typer.Argument(help="Event dump files (JSON array or JSON Lines), analyzed in order"),
    ],
    sort_by_start: Annotated[
        bool,
        typer.Option("-s", help="Sort the plain listing by start time"),
    ] = False,
    sort_by_elapsed: Annotated[
        bool,
        typer.Option("-e", help="Sort the plain listing by elapsed time"),
    ] = False,
    sort_by_name: Annotated[
        bool,
        typer.Option("-n", help="Sort the plain listing by name, then start"),
    ] = False,
    cleanup: Annotated[
        bool,
        typer.Option("-c", help="Skip malformed records instead of rejecting the file"),
    ] = False,
    print_inlining: Annotated[
        bool,
        typer.Option("-i", help="Print inlining decisions in the plain listing"),
    ] = False,
    statistics: Annotated[
        bool,
        typer.Option("-S", help="Print compilation statistics"),
    ] = False,
    recompilation: Annotated[
        bool,
        typer.Option("-R", help="Print method recompilation information"),
    ] = False,
    eliminated_locks: Annotated[
        bool,
        typer.Option("-L", help="Print eliminated locks"),
    ] = False,
    compile_queue: Annotated[
        bool,
        typer.Option("-Q", help="Print compile queue activity"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Report loading progress on stderr"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", help="Show the version and exit", callback=_show_version, is_eager=True
        ),
    ] = False,
) -> None:
    """Analyze JIT compiler event dumps.

    Report precedence: -Q, then -L, then -S, then -R, else the plain listing.
    Exit codes: 0 = every file analyzed, 1 = a file failed or bad usage.
    """
    options = AnalysisOptions(
        report=select_report(
            queue=compile_queue,
            locks=eliminated_locks,
            statistics=statistics,
            recompilation=recompilation,
        ),
        sort_key=ctx.meta.get(SORT_KEY_META, "start"),
        cleanup=cleanup,
        print_inlining=print_inlining,
        verbose=verbose,
    )

    failed = False
    for path in files:
        try:
            analyze_file(path, options)
        except EventSourceError as e:
            err_console.print(f"[critical]ERROR: {escape(str(e))}[/critical]")
            failed = True
        except AnalysisError as e:
            err_console.print(
                f"[critical]INTERNAL ERROR: {escape(str(path))}: {escape(str(e))}[/critical]"
            )
            failed = True

    if failed:
        raise typer.Exit(code=1)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the exit status instead of exiting.

    Typer prints usage errors itself and exits with 2; they are reported as 1.
    """
    command = typer.main.get_command(app)
    try:
        command.main(args=argv, prog_name="jit-analyze")
    except SystemExit as e:
        if e.code is None:
            return 0
        if not isinstance(e.code, int):
            return 1
        return 1 if e.code == USAGE_EXIT_STATUS else e.code
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
