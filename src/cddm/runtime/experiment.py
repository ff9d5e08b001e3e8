"""Experiment runner that repeats one task for many trials."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cddm.core.contracts import DecisionTask
from cddm.core.errors import ConfigurationError
from cddm.recording.datums import (
    Datum,
    DummyDatum,
    EventDatum,
    IncrementalMeanVarianceDatum,
    RawVectorsDatum,
    TraceDatum,
)
from cddm.recording.recorder import Recorder

logger = logging.getLogger(__name__)


class RecordingMode(str, Enum):
    """How much of each trial is kept.

    Attributes
    ----------
    BATCH
        Running mean and variance of scalar summaries only.
    EVENT
        Raw scalar summaries and event intervals.
    TRACE
        Everything in ``EVENT`` plus posterior traces.
    """

    BATCH = "batch"
    EVENT = "event"
    TRACE = "trace"


def coerce_recording_mode(value: Any) -> RecordingMode:
    if isinstance(value, RecordingMode):
        return value
    try:
        return RecordingMode(str(value).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"unknown recording mode {value!r}; expected one of {[mode.value for mode in RecordingMode]}"
        ) from exc


@dataclass(frozen=True, slots=True)
class ExperimentConfig:
    """Trial limit and recording mode of one experiment.

    Parameters
    ----------
    max_trials : int
        Maximum number of trials to run. Must be positive.
    mode : RecordingMode
        Recording granularity.
    """

    max_trials: int = 100
    mode: RecordingMode = RecordingMode.BATCH

    def __post_init__(self) -> None:
        if int(self.max_trials) != self.max_trials or self.max_trials < 1:
            raise ConfigurationError(f"max_trials must be a positive integer, got {self.max_trials!r}")
        object.__setattr__(self, "mode", coerce_recording_mode(self.mode))


def _datum_factories(mode: RecordingMode) -> tuple[type[Datum], type[Datum], type[Datum]]:
    if mode is RecordingMode.BATCH:
        return DummyDatum, IncrementalMeanVarianceDatum, DummyDatum
    if mode is RecordingMode.EVENT:
        return DummyDatum, RawVectorsDatum, EventDatum
    return TraceDatum, RawVectorsDatum, EventDatum


def register_task_datums(
    recorder: Recorder,
    task: DecisionTask,
    *,
    n_contexts: int,
    n_targets: int,
    mode: RecordingMode | str = RecordingMode.BATCH,
) -> tuple[str, ...]:
    """Register one datum per trial type and task variable.

    Parameters
    ----------
    recorder : Recorder
        Recorder the task writes into.
    task : DecisionTask
        Task whose trace, summary, and event names are registered.
    n_contexts, n_targets : int
        Trial-type grid size.
    mode : RecordingMode | str, optional
        Chooses the datum type for each name group.

    Returns
    -------
    tuple[str, ...]
        Registered keys.
    """

    trace_type, summary_type, event_type = _datum_factories(coerce_recording_mode(mode))
    keys: list[str] = []
    for context in range(n_contexts):
        for target in range(n_targets):
            prefix = f"Context{context}_Target{target}_"
            for names, datum_type in (
                (task.trace_datum_names, trace_type),
                (task.summary_datum_names, summary_type),
                (task.event_datum_names, event_type),
            ):
                for name in names:
                    recorder.register_datum(prefix + name, datum_type())
                    keys.append(prefix + name)
    return tuple(keys)


def run_experiment(task: DecisionTask, recorder: Recorder, config: ExperimentConfig) -> list[Any]:
    """Run ``task`` for up to ``config.max_trials`` trials.

    Every trial starts with :meth:`Recorder.new_trial`. The loop stops early
    once :meth:`Recorder.recorded_enough` returns ``True``. Errors raised by a
    trial propagate and abort the experiment.

    Returns
    -------
    list[Any]
        Per-trial outcomes in run order.
    """

    logger.info("running up to %d trials in %s mode", config.max_trials, config.mode.value)
    outcomes: list[Any] = []
    for _ in range(config.max_trials):
        recorder.new_trial()
        outcomes.append(task.run())
        if recorder.recorded_enough():
            logger.info("recorder satisfied after %d trials", len(outcomes))
            break
    logger.info("finished %d trials", len(outcomes))
    return outcomes


__all__ = [
    "ExperimentConfig",
    "RecordingMode",
    "coerce_recording_mode",
    "register_task_datums",
    "run_experiment",
]
