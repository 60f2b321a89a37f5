"""Run configuration assembled from the command line."""

from __future__ import annotations

from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict

from jit_analyze.ordering import SortKey

ReportKind: TypeAlias = Literal["queue", "locks", "statistics", "recompilation", "plain"]


class AnalysisOptions(BaseModel):
    """What to report and how to order the plain listing."""

    model_config = ConfigDict(frozen=True)

    report: ReportKind = "plain"
    sort_key: SortKey = "start"
    cleanup: bool = False
    print_inlining: bool = False
    verbose: bool = False


def select_report(
    *,
    queue: bool = False,
    locks: bool = False,
    statistics: bool = False,
    recompilation: bool = False,
) -> ReportKind:
    """Pick a single report when several were requested."""
    if queue:
        return "queue"
    if locks:
        return "locks"
    if statistics:
        return "statistics"
    if recompilation:
        return "recompilation"
    return "plain"
