"""Compile queue occupancy by tier level."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from jit_analyze.errors import AnalysisError
from jit_analyze.events import Event, TaskEvent, TaskKind

LEVELS: tuple[int, ...] = (1, 2, 3, 4)


class QueueSnapshot(BaseModel):
    """Queue occupancy right after one task transition."""

    model_config = ConfigDict(frozen=True)

    stamp: float
    levels: tuple[int, int, int, int]
    kind: TaskKind
    task_id: str
    comment: str | None = None
    demotion: tuple[int, int] | None = None

    @property
    def demoted(self) -> bool:
        return self.demotion is not None


class QueueReport(BaseModel):
    """Per-transition occupancy rows plus the final per-level counts."""

    model_config = ConfigDict(frozen=True)

    rows: list[QueueSnapshot] = Field(default_factory=list)
    levels: tuple[int, int, int, int] = (0, 0, 0, 0)
    open_tasks: int = 0
    anomalies: list[str] = Field(default_factory=list)


def _check_level(task: TaskEvent) -> None:
    if task.level not in LEVELS:
        raise AnalysisError(
            f"task {task.id} at {task.start:.3f}: level {task.level} outside "
            f"{LEVELS[0]}..{LEVELS[-1]}"
        )


def track_compile_queue(events: Iterable[Event]) -> QueueReport:
    """Replay task transitions and record occupancy after each one.

    A task can be moved to another tier while it waits. The counter that is
    decremented when it leaves is the one for the level it was enqueued at,
    otherwise the counts drift.
    """
    counts = dict.fromkeys(LEVELS, 0)
    open_tasks: dict[str, TaskEvent] = {}
    rows: list[QueueSnapshot] = []
    anomalies: list[str] = []

    for event in events:
        if not isinstance(event, TaskEvent):
            continue

        task = event
        _check_level(task)
        demotion: tuple[int, int] | None = None

        if task.kind == "Enqueue":
            if task.id in open_tasks:
                raise AnalysisError(
                    f"task {task.id} enqueued at {task.start:.3f} while still queued "
                    f"since {open_tasks[task.id].start:.3f}"
                )
            counts[task.level] += 1
            open_tasks[task.id] = task
        elif task.kind in ("Finish", "Dequeue"):
            queued = open_tasks.pop(task.id, None)
            if queued is None:
                anomalies.append(
                    f"{task.kind} of task {task.id} at {task.start:.3f} has no matching "
                    f"Enqueue; charged to level {task.level}"
                )
                counts[task.level] -= 1
            elif queued.level != task.level:
                demotion = (queued.level, task.level)
                counts[queued.level] -= 1
            else:
                counts[task.level] -= 1
        else:
            raise AnalysisError(f"task {task.id} at {task.start:.3f}: unknown kind {task.kind!r}")

        rows.append(
            QueueSnapshot(
                stamp=task.start,
                levels=tuple(counts[level] for level in LEVELS),
                kind=task.kind,
                task_id=task.id,
                comment=task.comment,
                demotion=demotion,
            )
        )

    return QueueReport(
        rows=rows,
        levels=tuple(counts[level] for level in LEVELS),
        open_tasks=len(open_tasks),
        anomalies=anomalies,
    )
