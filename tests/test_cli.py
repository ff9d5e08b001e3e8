"""Tests for the simulation CLI."""

from __future__ import annotations

import csv
import io

import pytest
import yaml

from cddm.cli import run_simulation_cli

FAST_AXCPT = "context_noise=1,target_noise=1,decision_thresh=0.9,decay_rate=0"
FAST_FLANKER = "context_noise=1,target_noise=1,decision_thresh=0.9"


def test_cli_batch_run_writes_summaries(tmp_path, capsys) -> None:
    """A batch run should write summary datums and the combined summary CSV."""

    code = run_simulation_cli(
        [
            "--task",
            "flanker",
            "--params",
            FAST_FLANKER,
            "--max-trials",
            "25",
            "--seed",
            "3",
            "--log-level",
            "info",
            "--output-dir",
            str(tmp_path),
        ]
    )
    captured = capsys.readouterr()

    assert code == 0
    assert "Simulation complete: task=flanker, n_trials=25" in captured.out
    assert "Datum CSVs: 12" in captured.out
    assert (tmp_path / "Context0_Target0_RT.csv").exists()
    assert not (tmp_path / "Context0_Target0_post.csv").exists()

    with (tmp_path / "flanker_summary.csv").open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert sum(int(row["n"]) for row in rows if row["variable"] == "RT") == 25


def test_cli_reads_yaml_config_and_records_events(tmp_path, capsys) -> None:
    """Config files and event mode should combine with inline overrides."""

    config_path = tmp_path / "axcpt.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "contextNoise": 1.0,
                "targetNoise": 1.0,
                "decisionThresh": 0.5,
                "decayRate": 0.0,
                "urPrior": [[0.25, 0.25], [0.25, 0.25]],
            }
        ),
        encoding="utf-8",
    )

    code = run_simulation_cli(
        [
            "--task",
            "axcpt",
            "--config",
            str(config_path),
            "--params",
            "decisionThresh=0.9",
            "--mode",
            "event",
            "--max-trials",
            "5",
            "--seed",
            "4",
            "--output-dir",
            str(tmp_path / "out"),
        ]
    )
    captured = capsys.readouterr()

    assert code == 0
    assert "n_trials=5" in captured.out
    event_files = sorted((tmp_path / "out").glob("*_samplingBothEvent.csv"))
    assert len(event_files) == 4
    total_events = 0
    for path in event_files:
        with path.open("r", encoding="utf-8", newline="") as handle:
            total_events += len(list(csv.DictReader(handle)))
    assert total_events == 5


def test_cli_stdin_mode_prints_one_block_per_line(tmp_path) -> None:
    """Each stdin line should run one batch experiment until a blank line."""

    stdin = io.StringIO(
        "decision_thresh=0.8\n"
        "decision_thresh=0.9,max_trials=5\n"
        "\n"
        "decision_thresh=0.99\n"
    )
    stdout = io.StringIO()

    code = run_simulation_cli(
        ["--task", "axcpt", "--params", FAST_AXCPT, "--max-trials", "10", "--seed", "5", "--stdin"],
        stdin=stdin,
        stdout=stdout,
    )

    rows = list(csv.DictReader(io.StringIO(stdout.getvalue())))
    assert code == 0
    assert {row["run"] for row in rows} == {"0", "1"}
    assert sum(int(row["n"]) for row in rows if row["run"] == "0" and row["variable"] == "RT") == 10
    assert list(rows[0]) == ["run", "context", "target", "variable", "mean", "variance", "n"]


def test_cli_rejects_invalid_parameters(tmp_path) -> None:
    """Configuration errors should propagate out of the CLI."""

    with pytest.raises(ValueError, match="decision_thresh"):
        run_simulation_cli(
            ["--task", "axcpt", "--params", "decision_thresh=1.5", "--output-dir", str(tmp_path)]
        )


def test_cli_requires_known_task() -> None:
    """Argument parsing should reject unknown task names."""

    with pytest.raises(SystemExit):
        run_simulation_cli(["--task", "stroop"])


def test_cli_rejects_unknown_log_level() -> None:
    """Misspelled log levels should be rejected by argument parsing."""

    with pytest.raises(SystemExit):
        run_simulation_cli(["--task", "flanker", "--log-level", "verbose"])
