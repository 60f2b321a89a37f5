"""Typed, read-only compiler events.

The analyzers only read the fields declared here. Every model is frozen; the
event source owns the instances and reports reference them by identity.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================
# TYPE ALIASES
# ============================================================

TaskKind: TypeAlias = Literal["Enqueue", "Dequeue", "Finish"]
Seconds: TypeAlias = float
Bytes: TypeAlias = int

# ============================================================
# SHARED DESCRIPTORS
# ============================================================


class Method(BaseModel):
    """A Java method as it appears in compiler output."""

    model_config = ConfigDict(frozen=True)

    holder: str
    name: str
    signature: str | None = None
    bytecode_size: int | None = Field(default=None, ge=0)

    @property
    def dotted_holder(self) -> str:
        return self.holder.replace("/", ".")

    def __str__(self) -> str:
        text = f"{self.dotted_holder}.{self.name}"
        if self.signature:
            text += f" {self.signature}"
        return text


class JVMState(BaseModel):
    """One frame of an inlining chain; `outer` points at the caller frame."""

    model_config = ConfigDict(frozen=True)

    method: Method
    bci: int
    outer: JVMState | None = None

    def frames(self) -> list[JVMState]:
        """Walk the chain from this (innermost) frame out to the root method."""
        chain: list[JVMState] = []
        frame: JVMState | None = self
        while frame is not None:
            chain.append(frame)
            frame = frame.outer
        return chain


class CallSite(BaseModel):
    """Inlining decision taken at one call site, with nested decisions below it."""

    model_config = ConfigDict(frozen=True)

    method: Method
    bci: int
    inlined: bool
    reason: str | None = None
    calls: tuple[CallSite, ...] = ()


class Phase(BaseModel):
    """A named sub-stage of one compilation."""

    model_config = ConfigDict(frozen=True)

    name: str
    start: Seconds
    end: Seconds
    nodes: int = 0
    live_nodes: int | None = None

    @property
    def elapsed_time(self) -> Seconds:
        return self.end - self.start


# ============================================================
# EVENTS
# ============================================================


class LogEvent(BaseModel):
    """Fields shared by every event in the stream."""

    model_config = ConfigDict(frozen=True)

    id: str
    start: Seconds

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        # Compile ids are numeric in most logs; keep them opaque.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def elapsed_time(self) -> Seconds:
        return 0.0

    @property
    def sort_name(self) -> str:
        return ""


class TaskEvent(LogEvent):
    """A compile task entering or leaving the compile queue."""

    type: Literal["task"] = "task"
    kind: TaskKind
    level: int
    comment: str | None = None


class Compilation(LogEvent):
    """One compilation of a method, with its phases and inlining results."""

    type: Literal["compilation"] = "compilation"
    method: Method
    end: Seconds
    compiler: str | None = None
    osr_bci: int | None = None
    attempts: int = Field(default=0, ge=0)
    phases: tuple[Phase, ...] = ()
    eliminated_locks: tuple[JVMState, ...] = ()
    inlining: tuple[CallSite, ...] = ()
    failure_reason: str | None = None

    @property
    def elapsed_time(self) -> Seconds:
        return self.end - self.start

    @property
    def sort_name(self) -> str:
        return str(self.method)


class NMethod(LogEvent):
    """Compiled code installed in the code cache."""

    type: Literal["nmethod"] = "nmethod"
    size: Bytes = Field(ge=0)
    address: str | None = None
    compile_id: str | None = None

    @field_validator("compile_id", mode="before")
    @classmethod
    def _compile_id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class MakeNotEntrantEvent(LogEvent):
    """An nmethod made not entrant, or reclaimed entirely when `zombie` is set."""

    type: Literal["make_not_entrant"] = "make_not_entrant"
    zombie: bool = False
    nmethod_id: str | None = None
    nmethod: NMethod | None = None

    @field_validator("nmethod_id", mode="before")
    @classmethod
    def _nmethod_id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class UncommonTrapEvent(LogEvent):
    """A deoptimization hit inside code produced by `compilation`."""

    type: Literal["uncommon_trap"] = "uncommon_trap"
    compilation: Compilation
    reason: str
    action: str | None = None
    bci: int | None = None
    count: int | None = None

    @property
    def sort_name(self) -> str:
        return str(self.compilation.method)

    def format_trap(self) -> str:
        """Human readable trap description; callers trim it before grouping."""
        text = self.reason
        if self.action:
            text += f" action={self.action}"
        if self.bci is not None:
            text += f" @{self.bci}"
        return text


class OtherEvent(LogEvent):
    """Any other log record; only listed by the plain report."""

    type: Literal["other"] = "other"
    name: str
    detail: str | None = None


Event: TypeAlias = Annotated[
    TaskEvent | Compilation | NMethod | MakeNotEntrantEvent | UncommonTrapEvent | OtherEvent,
    Field(discriminator="type"),
]
