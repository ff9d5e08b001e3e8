"""Tests for the experiment runner and datum registration."""

from __future__ import annotations

import pytest

from cddm.core import ConfigurationError
from cddm.recording import (
    DummyDatum,
    EventDatum,
    IncrementalMeanVarianceDatum,
    RawVectorsDatum,
    Recorder,
    TraceDatum,
)
from cddm.runtime import (
    ExperimentConfig,
    NumpyRandomSource,
    RecordingMode,
    coerce_recording_mode,
    register_task_datums,
    run_experiment,
)
from cddm.tasks import create_axcpt_task, create_flanker_task


class CountingTask:
    """Minimal task that counts trials and records nothing."""

    trace_datum_names = ("post",)
    summary_datum_names = ("RT",)
    event_datum_names = ("eblEvent",)

    def __init__(self) -> None:
        self.calls = 0

    def run(self) -> int:
        self.calls += 1
        return self.calls


class SatisfiedRecorder(Recorder):
    """Recorder that asks to stop after a fixed number of trials."""

    def __init__(self, n_trials: int) -> None:
        super().__init__()
        self.n_trials = n_trials
        self.started = 0

    def new_trial(self) -> None:
        super().new_trial()
        self.started += 1

    def recorded_enough(self) -> bool:
        return self.started >= self.n_trials


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        ("batch", (DummyDatum, IncrementalMeanVarianceDatum, DummyDatum)),
        ("event", (DummyDatum, RawVectorsDatum, EventDatum)),
        ("trace", (TraceDatum, RawVectorsDatum, EventDatum)),
    ],
)
def test_register_task_datums_picks_types_by_mode(mode: str, expected: tuple[type, ...]) -> None:
    """Each recording mode should register its datum types for every trial type."""

    recorder = Recorder()
    keys = register_task_datums(recorder, CountingTask(), n_contexts=2, n_targets=3, mode=mode)

    assert len(keys) == 2 * 3 * 3
    assert recorder.known_keys() == tuple(sorted(keys))
    trace_type, summary_type, event_type = expected
    assert type(recorder.get_datum("Context1_Target2_post")) is trace_type
    assert type(recorder.get_datum("Context0_Target0_RT")) is summary_type
    assert type(recorder.get_datum("Context1_Target0_eblEvent")) is event_type


def test_run_experiment_runs_max_trials() -> None:
    """The runner should call ``run`` once per trial and return every outcome."""

    task = CountingTask()

    outcomes = run_experiment(task, Recorder(), ExperimentConfig(max_trials=7))

    assert outcomes == [1, 2, 3, 4, 5, 6, 7]


def test_run_experiment_stops_when_recorder_is_satisfied() -> None:
    """``recorded_enough`` should end the experiment early."""

    task = CountingTask()
    recorder = SatisfiedRecorder(3)

    outcomes = run_experiment(task, recorder, ExperimentConfig(max_trials=50))

    assert len(outcomes) == 3
    assert task.calls == 3


def test_batch_experiment_accumulates_summaries() -> None:
    """A batch AX-CPT run should fill summary datums for the drawn trial types."""

    recorder = Recorder()
    task = create_axcpt_task(
        recorder=recorder,
        random_source=NumpyRandomSource(seed=31),
        context_noise=1.0,
        target_noise=1.0,
        decision_thresh=0.9,
        decay_rate=0.0,
    )
    register_task_datums(recorder, task, n_contexts=2, n_targets=2, mode=RecordingMode.BATCH)

    outcomes = run_experiment(task, recorder, ExperimentConfig(max_trials=40))

    totals = sum(recorder.get_datum(f"Context{c}_Target{t}_RT").n for c in range(2) for t in range(2))
    correct = sum(recorder.get_datum(f"Context{c}_Target{t}_CorrectRT").n for c in range(2) for t in range(2))
    assert totals == len(outcomes) == 40
    assert correct == sum(outcome.accuracy for outcome in outcomes)


def test_flanker_event_experiment_tags_events_by_trial() -> None:
    """Event-mode datums should carry the trial index of each observation."""

    recorder = Recorder()
    task = create_flanker_task(
        recorder=recorder,
        random_source=NumpyRandomSource(seed=32),
        context_noise=1.0,
        target_noise=1.0,
        decision_thresh=0.9,
    )
    register_task_datums(recorder, task, n_contexts=2, n_targets=2, mode="event")

    run_experiment(task, recorder, ExperimentConfig(max_trials=10, mode="event"))

    trace_ids = sorted(
        trace_id
        for c in range(2)
        for t in range(2)
        for trace_id, _, _ in recorder.get_datum(f"Context{c}_Target{t}_samplingEvent").events
    )
    assert trace_ids == list(range(10))


def test_experiment_config_validation() -> None:
    """Experiment settings should be validated at construction."""

    assert ExperimentConfig(mode="TRACE").mode is RecordingMode.TRACE
    assert coerce_recording_mode(RecordingMode.EVENT) is RecordingMode.EVENT
    with pytest.raises(ConfigurationError, match="positive integer"):
        ExperimentConfig(max_trials=0)
    with pytest.raises(ConfigurationError, match="unknown recording mode"):
        ExperimentConfig(mode="verbose")
