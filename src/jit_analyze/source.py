"""Event sources: where the analyzers get their event sequence from."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from jit_analyze.errors import EventSourceError
from jit_analyze.events import Compilation, Event, NMethod

# ============================================================
# EVENT SOURCE ABSTRACTION
# ============================================================


class EventSource(Protocol):
    """Protocol defining the event source interface."""

    name: str

    def load(self) -> list[Event]:
        """Return the complete, validated event sequence in file order."""
        ...


EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)


class JsonEventSource:
    """Loads a JSON array or JSON Lines dump of compiler events.

    Cross references are resolved while loading: ``nmethod_id`` on a
    make-not-entrant record points at an earlier ``nmethod`` record and
    ``compile_id`` on an uncommon trap points at an earlier ``compilation``.
    A dangling nmethod reference is kept as ``None`` for the analyzers to
    report; a dangling compilation reference is a malformed record.

    With ``cleanup`` enabled, malformed records are skipped and listed in
    ``problems`` instead of failing the whole file.
    """

    def __init__(self, path: Path, *, cleanup: bool = False) -> None:
        self.path = path
        self.name = str(path)
        self.cleanup = cleanup
        self.problems: list[str] = []

    @property
    def skipped(self) -> int:
        return len(self.problems)

    def load(self) -> list[Event]:
        self.problems = []
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise EventSourceError(f"{self.name}: cannot read file: {e}") from e

        events: list[Event] = []
        compilations: dict[str, Compilation] = {}
        nmethods: dict[str, NMethod] = {}

        for record_number, record in self._records(text):
            try:
                event = self._build_event(record, compilations, nmethods)
            except (ValidationError, ValueError, TypeError) as e:
                self._reject(record_number, str(e))
                continue

            if isinstance(event, Compilation):
                compilations[event.id] = event
            elif isinstance(event, NMethod):
                nmethods[event.id] = event
            events.append(event)

        return events

    def _records(self, text: str) -> list[tuple[int, Any]]:
        """Split the file into (record number, decoded JSON value) pairs."""
        stripped = text.lstrip()
        if stripped.startswith("["):
            try:
                values = json.loads(text)
            except json.JSONDecodeError as e:
                raise EventSourceError(f"{self.name}: invalid JSON: {e}") from e
            return list(enumerate(values, start=1))

        records: list[tuple[int, Any]] = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append((line_number, json.loads(line)))
            except json.JSONDecodeError as e:
                self._reject(line_number, f"invalid JSON: {e.msg}")
        return records

    def _build_event(
        self,
        record: Any,
        compilations: dict[str, Compilation],
        nmethods: dict[str, NMethod],
    ) -> Event:
        if not isinstance(record, dict):
            raise TypeError(f"expected an object, got {type(record).__name__}")

        record = dict(record)
        kind = record.get("type")
        if kind == "uncommon_trap":
            compile_id = record.pop("compile_id", None)
            owner = compilations.get(str(compile_id)) if compile_id is not None else None
            if owner is None:
                raise ValueError(f"uncommon trap refers to unknown compilation {compile_id!r}")
            record["compilation"] = owner
        elif kind == "make_not_entrant" and record.get("nmethod_id") is not None:
            record["nmethod"] = nmethods.get(str(record["nmethod_id"]))

        return EVENT_ADAPTER.validate_python(record)

    def _reject(self, record_number: int, message: str) -> None:
        problem = f"{self.name}:{record_number}: {message}"
        if not self.cleanup:
            raise EventSourceError(problem)
        self.problems.append(problem)
