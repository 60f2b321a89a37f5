"""Compilation statistics: code cache growth, phase totals, regalloc retries."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from jit_analyze.errors import AnalysisError
from jit_analyze.events import Compilation, Event, MakeNotEntrantEvent, NMethod

ATTEMPT_BUCKETS = 32


class CompilationTiming(BaseModel):
    """One compilation as listed at the top of the statistics report."""

    model_config = ConfigDict(frozen=True)

    compile_id: str
    method: str
    elapsed_seconds: float


class PhaseTotals(BaseModel):
    """Time and nodes accumulated for one phase name across all compilations."""

    model_config = ConfigDict(frozen=True)

    name: str
    elapsed_seconds: float
    nodes: int


class CompilationStatistics(BaseModel):
    """Aggregates collected in one pass over an event sequence."""

    model_config = ConfigDict(frozen=True)

    compilations: list[CompilationTiming] = Field(default_factory=list)
    nmethods_created: int = 0
    nmethods_live: int = 0
    cache_bytes: int = 0
    peak_cache_bytes: int = 0
    phases: list[PhaseTotals] = Field(default_factory=list)
    total_elapsed_seconds: float = 0.0
    attempts: list[int] = Field(default_factory=lambda: [0] * ATTEMPT_BUCKETS)
    max_attempts: int = 0
    anomalies: list[str] = Field(default_factory=list)

    @property
    def attempt_distribution(self) -> list[tuple[int, int]]:
        """(passes, compilations) pairs up to the highest observed pass count."""
        if self.max_attempts <= 0:
            return []
        return [(passes, self.attempts[passes]) for passes in range(self.max_attempts + 1)]


def aggregate_statistics(events: Iterable[Event]) -> CompilationStatistics:
    """Fold the event sequence into code cache, phase and retry statistics."""
    compilations: list[CompilationTiming] = []
    attempts = [0] * ATTEMPT_BUCKETS
    max_attempts = 0
    total_elapsed = 0.0
    phase_time: dict[str, float] = {}
    phase_nodes: dict[str, int] = {}

    cache_bytes = 0
    peak_cache_bytes = 0
    created = 0
    live = 0
    reclaimed: set[str] = set()
    anomalies: list[str] = []

    for event in events:
        if isinstance(event, Compilation):
            if not 0 <= event.attempts < ATTEMPT_BUCKETS:
                raise AnalysisError(
                    f"compilation {event.id}: {event.attempts} register allocation passes, "
                    f"expected at most {ATTEMPT_BUCKETS - 1}"
                )
            compilations.append(
                CompilationTiming(
                    compile_id=event.id,
                    method=str(event.method),
                    elapsed_seconds=event.elapsed_time,
                )
            )
            attempts[event.attempts] += 1
            max_attempts = max(max_attempts, event.attempts)
            total_elapsed += event.elapsed_time
            for phase in event.phases:
                phase_time[phase.name] = phase_time.get(phase.name, 0.0) + phase.elapsed_time
                phase_nodes[phase.name] = phase_nodes.get(phase.name, 0) + phase.nodes

        elif isinstance(event, NMethod):
            reclaimed.discard(event.id)
            live += 1
            created += 1
            cache_bytes += event.size
            peak_cache_bytes = max(peak_cache_bytes, cache_bytes)

        elif isinstance(event, MakeNotEntrantEvent) and event.zombie:
            if event.nmethod is None:
                anomalies.append(
                    f"zombie {event.id} at {event.start:.3f} refers to unknown nmethod "
                    f"{event.nmethod_id}; code cache size not adjusted"
                )
                continue
            if event.nmethod.id in reclaimed:
                anomalies.append(
                    f"zombie {event.id} at {event.start:.3f} reclaims nmethod {event.nmethod.id} "
                    "a second time; code cache size not adjusted"
                )
                continue
            reclaimed.add(event.nmethod.id)
            cache_bytes -= event.nmethod.size
            live -= 1

    return CompilationStatistics(
        compilations=compilations,
        nmethods_created=created,
        nmethods_live=live,
        cache_bytes=cache_bytes,
        peak_cache_bytes=peak_cache_bytes,
        phases=[
            PhaseTotals(name=name, elapsed_seconds=seconds, nodes=phase_nodes[name])
            for name, seconds in phase_time.items()
        ],
        total_elapsed_seconds=total_elapsed,
        attempts=attempts,
        max_attempts=max_attempts,
        anomalies=anomalies,
    )
