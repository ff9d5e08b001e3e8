"""Command-line entry point for running simulated experiments."""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Any, Sequence, TextIO

from cddm.core import format_parameter_string, load_config_mapping, parse_parameter_string
from cddm.core.contracts import RandomSource
from cddm.plugins import PluginRegistry, build_default_registry
from cddm.recording import SUMMARY_FIELDNAMES, Recorder, summary_records, write_summary_csv
from cddm.runtime import ExperimentConfig, NumpyRandomSource, RecordingMode, register_task_datums, run_experiment

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def run_simulation_cli(
    argv: Sequence[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Run a simulated experiment from CLI arguments.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        CLI argument list. When ``None``, process arguments are used.
    stdin, stdout : TextIO | None, optional
        Streams used by ``--stdin`` mode. Default to the process streams.

    Returns
    -------
    int
        Exit code (``0`` on success).
    """

    registry = build_default_registry()

    parser = argparse.ArgumentParser(description="Simulate context/target decision tasks with a Bayesian observer.")
    parser.add_argument("--task", choices=registry.ids("task"), required=True, help="Task to simulate.")
    parser.add_argument("--config", default=None, help="JSON or YAML file of task parameters.")
    parser.add_argument(
        "--params",
        default="",
        help="Inline parameters 'key=value,key=value'; matrices as '0.4 0.3; 0.2 0.1'.",
    )
    parser.add_argument(
        "--mode",
        choices=tuple(mode.value for mode in RecordingMode),
        default=RecordingMode.BATCH.value,
        help="Recording granularity.",
    )
    parser.add_argument("--max-trials", type=int, default=None, help="Override the task's max_trials.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random source.")
    parser.add_argument("--output-dir", default=".", help="Directory for CSV outputs.")
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read one parameter string per line and print batch summaries to stdout.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level name.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    base_parameters: dict[str, Any] = {}
    if args.config is not None:
        base_parameters.update(load_config_mapping(args.config))
    base_parameters.update(parse_parameter_string(args.params))

    random_source = NumpyRandomSource(seed=args.seed)

    if args.stdin:
        return _run_stdin(
            registry,
            task_id=args.task,
            base_parameters=base_parameters,
            random_source=random_source,
            max_trials=args.max_trials,
            stdin=stdin if stdin is not None else sys.stdin,
            stdout=stdout if stdout is not None else sys.stdout,
        )

    recorder = Recorder()
    outcomes = _simulate(
        registry,
        task_id=args.task,
        parameters=base_parameters,
        recorder=recorder,
        random_source=random_source,
        mode=RecordingMode(args.mode),
        max_trials=args.max_trials,
    )

    output_dir = Path(args.output_dir)
    datum_paths = recorder.write_to_files(output_dir)
    summary_path = write_summary_csv(recorder.datums(), output_dir / f"{args.task}_summary.csv")

    n_trials = len(outcomes)
    accuracy = sum(outcome.accuracy for outcome in outcomes) / n_trials
    mean_rt = sum(outcome.reaction_time for outcome in outcomes) / n_trials
    print(f"Simulation complete: task={args.task}, n_trials={n_trials}, accuracy={accuracy:.3f}, mean_rt={mean_rt:.1f}")
    print(f"Datum CSVs: {len(datum_paths)} in {output_dir}")
    print(f"Summary CSV: {summary_path}")
    return 0


def _simulate(
    registry: PluginRegistry,
    *,
    task_id: str,
    parameters: dict[str, Any],
    recorder: Recorder,
    random_source: RandomSource,
    mode: RecordingMode,
    max_trials: int | None,
) -> list[Any]:
    """Build a task, register its datums, and run the experiment."""

    logger.info("simulating %s with %s", task_id, format_parameter_string(parameters) or "defaults")
    task = registry.create_task(task_id, recorder=recorder, random_source=random_source, **parameters)
    register_task_datums(
        recorder,
        task,
        n_contexts=task.config.n_contexts,
        n_targets=task.config.n_targets,
        mode=mode,
    )
    experiment = ExperimentConfig(
        max_trials=max_trials if max_trials is not None else task.config.max_trials,
        mode=mode,
    )
    return run_experiment(task, recorder, experiment)


def _run_stdin(
    registry: PluginRegistry,
    *,
    task_id: str,
    base_parameters: dict[str, Any],
    random_source: RandomSource,
    max_trials: int | None,
    stdin: TextIO,
    stdout: TextIO,
) -> int:
    """Run one batch experiment per input line until the first empty line."""

    writer = csv.DictWriter(stdout, fieldnames=("run", *SUMMARY_FIELDNAMES), lineterminator="\n")
    writer.writeheader()
    for run_index, line in enumerate(stdin):
        line = line.strip()
        if not line:
            break
        parameters = dict(base_parameters)
        parameters.update(parse_parameter_string(line))
        recorder = Recorder()
        _simulate(
            registry,
            task_id=task_id,
            parameters=parameters,
            recorder=recorder,
            random_source=random_source,
            mode=RecordingMode.BATCH,
            max_trials=max_trials,
        )
        for row in summary_records(recorder.datums()):
            writer.writerow({"run": run_index, **row})
        logger.info("finished parameter line %d", run_index)
    return 0


def main() -> None:
    """Execute the simulation CLI and exit with its returned code."""

    raise SystemExit(run_simulation_cli())


if __name__ == "__main__":
    main()


__all__ = ["main", "run_simulation_cli"]
