"""Rich terminal rendering for every report.

Row builders return plain strings or tuples so the layout can be checked
without a console; the ``render_*`` functions only print them.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from jit_analyze.compile_queue import LEVELS, QueueReport, QueueSnapshot
from jit_analyze.compile_stats import CompilationStatistics
from jit_analyze.events import (
    CallSite,
    Compilation,
    Event,
    MakeNotEntrantEvent,
    NMethod,
    OtherEvent,
    TaskEvent,
    UncommonTrapEvent,
)
from jit_analyze.locks import EliminatedLocks
from jit_analyze.recompilation import RecompilationReport

# ============================================================
# CONSOLES
# ============================================================

JIT_ANALYZE_THEME = Theme(
    {
        "critical": "bold red",
        "warning": "bold yellow",
        "success": "bold green",
        "info": "cyan",
        "metric": "white",
        "label": "dim white",
        "header": "bold magenta",
    }
)

console = Console(theme=JIT_ANALYZE_THEME, highlight=False)
err_console = Console(theme=JIT_ANALYZE_THEME, stderr=True, highlight=False, soft_wrap=True)


def emit(line: str, style: str | None = None) -> None:
    """Print one report line verbatim (no markup, no wrapping)."""
    console.print(line, style=style, markup=False, emoji=False, soft_wrap=True)


# ============================================================
# EVENT DESCRIPTIONS
# ============================================================


def describe_compilation_short(compilation: Compilation) -> str:
    text = f"{compilation.id:>6} {compilation.method}"
    if compilation.osr_bci is not None:
        text += f" @ osr {compilation.osr_bci}"
    return text


def describe_event(event: Event) -> str:
    """One-line description used by the plain and eliminated-lock listings."""
    if isinstance(event, Compilation):
        text = describe_compilation_short(event)
        if event.compiler:
            text += f" [{event.compiler}]"
        text += f" {event.elapsed_time:.4f}s"
        if event.attempts:
            text += f" regalloc attempts={event.attempts}"
        if event.failure_reason:
            text += f" FAILED: {event.failure_reason}"
        return text
    if isinstance(event, UncommonTrapEvent):
        reason = event.format_trap().strip()
        return f"uncommon_trap {event.id} {reason} in {event.compilation.method}"
    if isinstance(event, MakeNotEntrantEvent):
        text = f"make_not_entrant {event.id}"
        if event.zombie:
            text += " zombie"
        if event.nmethod_id is not None:
            text += f" nmethod {event.nmethod_id}"
        return text
    if isinstance(event, OtherEvent):
        return f"{event.name} {event.detail}" if event.detail else event.name
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


def build_inlining_lines(calls: Iterable[CallSite], depth: int = 1) -> list[str]:
    """Indented inlining tree, one call site per line."""
    lines: list[str] = []
    for call in calls:
        marker = "inline" if call.inlined else "no inline"
        line = f"{'  ' * depth}@ {call.bci} {call.method} ({marker}"
        line += f": {call.reason})" if call.reason else ")"
        lines.append(line)
        lines.extend(build_inlining_lines(call.calls, depth + 1))
    return lines


# ============================================================
# COMPILE QUEUE
# ============================================================


def build_queue_header() -> str:
    levels = "".join(f" Level{level}" for level in LEVELS)
    return f"{'Stamp':>7} {levels}   {'Kind':>10}"


def build_queue_row(row: QueueSnapshot) -> str:
    line = f"{row.stamp:7.3f} " + "".join(f" {count:6d}" for count in row.levels)
    line += f"   {row.kind:>10}"
    if row.comment is not None:
        line += f" {row.comment}"
    if row.demotion is not None:
        line += f"  {row.demotion[0]}->{row.demotion[1]}"
    return line


def render_queue_report(report: QueueReport) -> None:
    emit(build_queue_header(), style="header")
    for row in report.rows:
        emit(build_queue_row(row), style="warning" if row.demoted else None)
    render_anomalies(report.anomalies)


# ============================================================
# RECOMPILATION
# ============================================================


def build_recompilation_lines(report: RecompilationReport) -> list[str]:
    lines: list[str] = []
    for group in report.groups:
        lines.append(f"Trap: {group.reason} in {group.method}")
        lines.append(f"Compilations: [{', '.join(group.trap_ids)}]")
    return lines


def render_recompilation_report(report: RecompilationReport) -> None:
    for line in build_recompilation_lines(report):
        emit(line, style="info" if line.startswith("Trap:") else None)


# ============================================================
# STATISTICS
# ============================================================


def build_cache_summary(stats: CompilationStatistics) -> str:
    return (
        f"NMethods: {stats.nmethods_created} created {stats.nmethods_live} live "
        f"{stats.cache_bytes} bytes ({stats.peak_cache_bytes} peak) in the code cache"
    )


def build_phase_rows(stats: CompilationStatistics) -> list[tuple[str, str, str]]:
    """Phase rows in first-seen order followed by the total compile time."""
    rows = [
        (phase.name, f"{phase.elapsed_seconds:6.4f}", str(phase.nodes)) for phase in stats.phases
    ]
    rows.append(("total", f"{stats.total_elapsed_seconds:6.4f}", ""))
    return rows


def create_phase_table(stats: CompilationStatistics) -> Table:
    table = Table(box=None, padding=(0, 2))
    table.add_column("Phase", justify="right", style="label")
    table.add_column("Time (s)", justify="right", style="metric")
    table.add_column("Nodes", justify="right", style="metric")
    rows = build_phase_rows(stats)
    for name, seconds, nodes in rows[:-1]:
        table.add_row(escape(name), seconds, nodes)
    table.add_row(*rows[-1], style="bold")
    return table


def create_attempts_table(stats: CompilationStatistics) -> Table:
    table = Table(box=None, padding=(0, 2))
    table.add_column("Passes", justify="right", style="label")
    table.add_column("Compilations", justify="right", style="metric")
    for passes, count in stats.attempt_distribution:
        table.add_row(str(passes), str(count))
    return table


def render_statistics_report(stats: CompilationStatistics) -> None:
    for timing in stats.compilations:
        emit(f"{timing.compile_id:>6} {timing.method} {timing.elapsed_seconds:6.4f}")
    emit(build_cache_summary(stats), style="info")
    emit("Phase times", style="header")
    console.print(create_phase_table(stats))
    if stats.attempt_distribution:
        emit("Distribution of regalloc passes", style="header")
        console.print(create_attempts_table(stats))
    render_anomalies(stats.anomalies)


# ============================================================
# ELIMINATED LOCKS
# ============================================================


def build_eliminated_lock_lines(found: Iterable[EliminatedLocks]) -> list[str]:
    lines: list[str] = []
    for entry in found:
        lines.append(describe_event(entry.compilation))
        lines.append("  Eliminated locks")
        for frames in entry.sites:
            lines.append("    " + " ".join(frames))
    return lines


def render_eliminated_locks(found: Iterable[EliminatedLocks]) -> None:
    for line in build_eliminated_lock_lines(found):
        emit(line)


# ============================================================
# PLAIN LISTING
# ============================================================


def build_plain_lines(events: Iterable[Event], *, print_inlining: bool = False) -> list[str]:
    """Timestamped listing of every event except queue transitions and nmethods."""
    lines: list[str] = []
    for event in events:
        if isinstance(event, (NMethod, TaskEvent)):
            continue
        lines.append(f"{event.start:f} {describe_event(event)}")
        if print_inlining and isinstance(event, Compilation):
            lines.extend(build_inlining_lines(event.inlining))
    return lines


def render_plain_report(events: Iterable[Event], *, print_inlining: bool = False) -> None:
    for line in build_plain_lines(events, print_inlining=print_inlining):
        emit(line)


# ============================================================
# DIAGNOSTICS
# ============================================================


def render_anomalies(anomalies: list[str]) -> None:
    """Non-fatal stream anomalies go to stderr, after the report body."""
    for anomaly in anomalies:
        err_console.print(f"[warning]WARNING: {escape(anomaly)}[/warning]")
