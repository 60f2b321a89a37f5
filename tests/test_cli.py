from __future__ import annotations

from pathlib import Path

import pytest

from jit_analyze import __version__
from jit_analyze.cli import last_sort_key, main


def test_help_exits_zero(capsys) -> None:
    assert main(["-h"]) == 0
    assert "-Q" in capsys.readouterr().out


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_missing_file_argument_is_usage_error(capsys) -> None:
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().err


def test_unknown_flag_is_usage_error(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main(["-x", str(path)]) == 1
    err = capsys.readouterr().err
    assert "No such option" in err
    assert "jit-analyze -h" in err


def test_plain_report_lists_events_by_start(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main([str(path)]) == 0
    lines = capsys.readouterr().out.splitlines()

    assert lines == [
        "0.010000      1 java.lang.String.hashCode ()I [C1] 0.0200s regalloc attempts=1",
        "0.500000 uncommon_trap 1 null_check in java.lang.String.hashCode ()I",
        "0.700000 make_not_entrant m1 zombie nmethod n1",
        "0.800000 sweeper pass 1",
    ]


def test_plain_report_with_inlining(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main(["-i", str(path)]) == 0
    out = capsys.readouterr().out

    assert "  @ 3 java.lang.String.indexOf (inline: inline (hot))" in out


def test_last_sort_flag_wins(capsys, write_events) -> None:
    path = write_events(
        [
            {
                "type": "compilation",
                "id": 1,
                "start": 0.0,
                "end": 3.0,
                "method": {"holder": "a/A", "name": "slow"},
            },
            {
                "type": "compilation",
                "id": 2,
                "start": 1.0,
                "end": 1.5,
                "method": {"holder": "a/A", "name": "fast"},
            },
        ]
    )

    assert main(["-s", "-e", str(path)]) == 0
    by_elapsed = capsys.readouterr().out.splitlines()
    assert main(["-e", "-s", str(path)]) == 0
    by_start = capsys.readouterr().out.splitlines()

    assert [line.split()[1] for line in by_elapsed] == ["2", "1"]
    assert [line.split()[1] for line in by_start] == ["1", "2"]

    assert main(["-s", "-e", "-s", str(path)]) == 0
    repeated = capsys.readouterr().out.splitlines()
    assert main(["-se", str(path)]) == 0
    bundled = capsys.readouterr().out.splitlines()

    assert [line.split()[1] for line in repeated] == ["1", "2"]
    assert [line.split()[1] for line in bundled] == ["2", "1"]


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        ([], "start"),
        (["-n", "f.jsonl"], "name"),
        (["-s", "-e", "-s"], "start"),
        (["-e", "-S", "-n", "-i"], "name"),
        (["-cne"], "elapsed"),
        (["-e", "--", "-n"], "elapsed"),
        (["--verbose", "-e"], "elapsed"),
    ],
)
def test_last_sort_key_follows_command_line_order(args: list[str], expected: str) -> None:
    assert last_sort_key(args) == expected


def test_queue_report_wins_over_other_reports(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main(["-R", "-S", "-L", "-Q", str(path)]) == 0
    out = capsys.readouterr().out.splitlines()

    assert out[0].split() == ["Stamp", "Level1", "Level2", "Level3", "Level4", "Kind"]
    assert out[-1].endswith("Finish  4->2")
    assert len(out) == 5


def test_locks_report_wins_over_statistics(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main(["-S", "-L", str(path)]) == 0
    out = capsys.readouterr().out.splitlines()

    assert out[1:] == [
        "  Eliminated locks",
        "    java.lang.String.indexOf@7 java.lang.String.hashCode@3",
    ]


def test_statistics_report(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main(["-S", "-R", str(path)]) == 0
    out = capsys.readouterr().out

    assert "NMethods: 1 created 0 live 0 bytes (1200 peak) in the code cache" in out
    assert "regalloc" in out
    assert "Distribution of regalloc passes" in out


def test_recompilation_report(capsys, write_events, sample_records) -> None:
    path = write_events(sample_records)

    assert main(["-R", str(path)]) == 0

    assert capsys.readouterr().out.splitlines() == [
        "Trap: null_check in java.lang.String.hashCode ()I",
        "Compilations: [1]",
    ]


def test_failed_file_does_not_stop_later_files(
    capsys, tmp_path: Path, write_events, sample_records
) -> None:
    good = write_events(sample_records)

    assert main(["-R", str(tmp_path / "missing.jsonl"), str(good)]) == 1
    captured = capsys.readouterr()

    assert "ERROR" in captured.err
    assert "Trap: null_check" in captured.out


def test_invariant_violation_fails_only_that_file(capsys, write_events, sample_records) -> None:
    broken = write_events(
        [
            {"type": "task", "id": 1, "kind": "Enqueue", "level": 3, "start": 0.0},
            {"type": "task", "id": 1, "kind": "Enqueue", "level": 3, "start": 0.1},
        ],
        name="broken.jsonl",
    )
    good = write_events(sample_records)

    assert main(["-Q", str(broken), str(good)]) == 1
    captured = capsys.readouterr()

    assert "INTERNAL ERROR" in captured.err
    assert captured.out.count("Level1") == 1


@pytest.mark.parametrize("flag, status", [([], 1), (["-c"], 0)])
def test_cleanup_flag_tolerates_malformed_records(
    capsys, tmp_path: Path, flag: list[str], status: int
) -> None:
    path = tmp_path / "dirty.jsonl"
    path.write_text(
        '{"type": "other", "id": "o", "name": "sweeper", "start": 0.0}\n{oops\n',
        encoding="utf-8",
    )

    assert main([*flag, str(path)]) == status
    captured = capsys.readouterr()
    if status == 0:
        assert "0.000000 sweeper" in captured.out
        assert "Skipped malformed record" in captured.err
    else:
        assert "invalid JSON" in captured.err
