"""Stable orderings for event listings."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Literal, TypeAlias

from jit_analyze.events import Event

SortKey: TypeAlias = Literal["start", "elapsed", "name"]


def by_start(event: Event) -> tuple[Any, ...]:
    return (event.start,)


def by_elapsed(event: Event) -> tuple[Any, ...]:
    return (event.elapsed_time,)


def by_name_and_start(event: Event) -> tuple[Any, ...]:
    # Traps sort under their compilation's method; events with no method sort first.
    return (event.sort_name, event.start)


SORT_KEYS: dict[SortKey, Callable[[Event], tuple[Any, ...]]] = {
    "start": by_start,
    "elapsed": by_elapsed,
    "name": by_name_and_start,
}


def sort_events(events: Iterable[Event], key: SortKey = "start") -> list[Event]:
    """Return a new list ordered by `key`; ties keep their delivered order."""
    return sorted(events, key=SORT_KEYS[key])
