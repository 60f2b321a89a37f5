"""Uncommon trap correlation: which methods keep deoptimizing, and why."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from jit_analyze.events import Event, UncommonTrapEvent


class TrapGroup(BaseModel):
    """All traps sharing one method and one trimmed trap description."""

    model_config = ConfigDict(frozen=True)

    method: str
    reason: str
    trap_ids: list[str] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.trap_ids)


class RecompilationReport(BaseModel):
    """Trap groups, most frequent first."""

    model_config = ConfigDict(frozen=True)

    groups: list[TrapGroup] = Field(default_factory=list)
    trap_count: int = 0


def correlate_recompilations(events: Iterable[Event]) -> RecompilationReport:
    """Group uncommon traps by (method, reason) and rank the groups by size.

    Both grouping levels keep first-seen order and the ranking sort is
    stable, so equally sized groups come out in discovery order.
    """
    traps: dict[str, dict[str, list[str]]] = {}
    trap_count = 0

    for event in events:
        if not isinstance(event, UncommonTrapEvent):
            continue
        trap_count += 1
        method = str(event.compilation.method)
        reason = event.format_trap().strip()
        traps.setdefault(method, {}).setdefault(reason, []).append(event.id)

    groups = [
        TrapGroup(method=method, reason=reason, trap_ids=ids)
        for method, reasons in traps.items()
        for reason, ids in reasons.items()
    ]
    groups.sort(key=lambda group: group.count, reverse=True)

    return RecompilationReport(groups=groups, trap_count=trap_count)
