from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def write_events(tmp_path: Path) -> Callable[..., Path]:
    """Write records as JSON Lines and return the file path."""

    def _write(records: list[Any], name: str = "events.jsonl") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    """A short but complete event dump touching every event type."""
    hash_code = {"holder": "java/lang/String", "name": "hashCode", "signature": "()I"}
    index_of = {"holder": "java/lang/String", "name": "indexOf"}
    return [
        {"type": "task", "id": 1, "kind": "Enqueue", "level": 3, "start": 0.001},
        {"type": "task", "id": 2, "kind": "Enqueue", "level": 4, "start": 0.002},
        {"type": "task", "id": 1, "kind": "Finish", "level": 3, "start": 0.010},
        {
            "type": "compilation",
            "id": 1,
            "start": 0.010,
            "end": 0.030,
            "compiler": "C1",
            "method": hash_code,
            "attempts": 1,
            "phases": [
                {"name": "parse", "start": 0.010, "end": 0.015, "nodes": 40},
                {"name": "regalloc", "start": 0.020, "end": 0.030, "nodes": 10},
            ],
            "eliminated_locks": [
                {
                    "method": index_of,
                    "bci": 7,
                    "outer": {"method": hash_code, "bci": 3},
                }
            ],
            "inlining": [
                {"method": index_of, "bci": 3, "inlined": True, "reason": "inline (hot)"}
            ],
        },
        {"type": "nmethod", "id": "n1", "start": 0.031, "size": 1200, "compile_id": 1},
        {"type": "uncommon_trap", "id": 1, "compile_id": 1, "reason": "null_check", "start": 0.5},
        {"type": "task", "id": 2, "kind": "Finish", "level": 2, "start": 0.6},
        {"type": "make_not_entrant", "id": "m1", "nmethod_id": "n1", "zombie": True, "start": 0.7},
        {"type": "other", "id": "o1", "name": "sweeper", "detail": "pass 1", "start": 0.8},
    ]
