"""Eliminated lock sites and the inlining chains that led to them."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from jit_analyze.events import Compilation, Event, JVMState
from jit_analyze.ordering import SortKey, sort_events


class EliminatedLocks(BaseModel):
    """A compilation and the frame chains of the locks it eliminated."""

    model_config = ConfigDict(frozen=True)

    compilation: Compilation
    sites: list[list[str]] = Field(default_factory=list)


def format_frame(frame: JVMState) -> str:
    return f"{frame.method.dotted_holder}.{frame.method.name}@{frame.bci}"


def collect_eliminated_locks(
    events: Iterable[Event], sort_key: SortKey = "start"
) -> list[EliminatedLocks]:
    """List compilations with eliminated locks, frames innermost first."""
    found: list[EliminatedLocks] = []
    for event in sort_events(events, sort_key):
        if not isinstance(event, Compilation) or not event.eliminated_locks:
            continue
        found.append(
            EliminatedLocks(
                compilation=event,
                sites=[
                    [format_frame(frame) for frame in site.frames()]
                    for site in event.eliminated_locks
                ],
            )
        )
    return found
