"""Tests for the Flanker decision loop."""

from __future__ import annotations

import numpy as np
import pytest

from cddm.belief import create_belief
from cddm.core import ConfigurationError, SampleLimitError
from cddm.recording import Recorder
from cddm.runtime import NumpyRandomSource, register_task_datums
from cddm.tasks import FlankerTask, create_flanker_task, task_config_from_mapping, trial_label

CONVERGENT = {"context_noise": 1.0, "target_noise": 1.0, "decision_thresh": 0.9}


class FixedArchitecture:
    """Architecture stub with constant non-decision durations."""

    def draw_ebl(self) -> float:
        return 40.0

    def draw_motor_planning(self) -> float:
        return 20.0

    def draw_motor_exec(self) -> float:
        return 90.0


class CountingBelief:
    """Plain belief that counts its updates."""

    def __init__(self, ur_prior, random_source) -> None:
        self.inner = create_belief(ur_prior=ur_prior, random_source=random_source)
        self.context_updates = 0
        self.target_updates = 0

    @property
    def n_contexts(self) -> int:
        return self.inner.n_contexts

    @property
    def n_targets(self) -> int:
        return self.inner.n_targets

    def reset(self) -> None:
        self.inner.reset()

    def set_true_stimulus(self, context: int, target: int) -> None:
        self.inner.set_true_stimulus(context, target)

    def update_from_context(self, noise: float, *, trial_time: float = 0.0) -> int:
        self.context_updates += 1
        return self.inner.update_from_context(noise, trial_time=trial_time)

    def update_from_target(self, noise: float) -> None:
        self.target_updates += 1
        self.inner.update_from_target(noise)

    def get_belief(self):
        return self.inner.get_belief()


def _build_task(parameters: dict, *, seed: int):
    config = task_config_from_mapping("flanker", parameters)
    source = NumpyRandomSource(seed=seed)
    belief = CountingBelief(config.ur_prior, source)
    recorder = Recorder()
    task = FlankerTask(
        config,
        recorder=recorder,
        random_source=source,
        belief=belief,
        architecture=FixedArchitecture(),
    )
    register_task_datums(recorder, task, n_contexts=2, n_targets=2, mode="event")
    recorder.new_trial()
    return task, recorder, belief


def test_trial_timing_and_events() -> None:
    """RT should add motor execution and eye-brain lag to the trial clock."""

    task, recorder, _ = _build_task(CONVERGENT, seed=21)

    outcome = task.run()
    label = trial_label(outcome.context, outcome.target)
    clock = outcome.trial_time

    assert outcome.correct_response == (0 if outcome.target == 0 else 1)
    assert outcome.response == (0 if outcome.decision_variable > 0.5 else 1)
    assert outcome.reaction_time == pytest.approx(clock + 90.0 + 40.0)
    assert clock == pytest.approx(10.0 * outcome.n_samples + 20.0)
    assert recorder.get_datum(label + "eblEvent").events == ((0, 0.0, 40.0),)
    assert recorder.get_datum(label + "samplingEvent").events == ((0, 0.0, clock),)
    assert recorder.get_datum(label + "motorPlanEvent").events == ((0, clock - 20.0, clock),)
    assert recorder.get_datum(label + "motorExecEvent").events == ((0, clock, clock + 90.0),)
    assert recorder.get_datum(label + "RT").values == (pytest.approx(outcome.reaction_time),)


def test_each_step_samples_every_flanker_and_the_target() -> None:
    """One step should update context once per flanker and target once."""

    task, _, belief = _build_task({**CONVERGENT, "n_flankers": 3}, seed=22)

    outcome = task.run()

    assert belief.context_updates == 3 * outcome.n_samples + 2
    assert belief.target_updates == outcome.n_samples + 2


def test_decision_variable_is_target_zero_mass() -> None:
    """The committed decision variable should be the first column's mass."""

    task, _, _ = _build_task(CONVERGENT, seed=23)

    for _ in range(20):
        task.recorder.new_trial()
        outcome = task.run()
        assert outcome.decision_variable > 0.9 or outcome.decision_variable < 0.1
        if outcome.target == 0:
            assert outcome.correct_response == 0


def test_accuracy_is_high_with_informative_evidence() -> None:
    """Low noise and a strict bound should produce mostly correct responses."""

    task, _, _ = _build_task({**CONVERGENT, "decision_thresh": 0.99}, seed=24)

    outcomes = []
    for _ in range(200):
        task.recorder.new_trial()
        outcomes.append(task.run())

    assert sum(outcome.accuracy for outcome in outcomes) / len(outcomes) > 0.9


def test_premature_response_returns_guess() -> None:
    """A premature guess should be timed by motor execution alone."""

    task, _, belief = _build_task({**CONVERGENT, "p_premature_resp": 1.0}, seed=25)

    outcome = task.run()

    assert outcome.premature
    assert outcome.reaction_time == 90.0
    assert outcome.response in (0, 1)
    assert belief.context_updates == 0
    assert belief.target_updates == 0


def test_sample_limit_aborts_the_trial() -> None:
    """Flanker trials must also stop at ``max_samples``."""

    task, _, _ = _build_task(
        {"context_noise": 50.0, "target_noise": 50.0, "decision_thresh": 0.99, "max_samples": 2},
        seed=26,
    )

    with pytest.raises(SampleLimitError, match="max_samples=2"):
        task.run()


def test_factory_uses_plain_belief() -> None:
    """The Flanker factory should build an exact-retrieval belief."""

    task = create_flanker_task(recorder=Recorder(), random_source=NumpyRandomSource(seed=0), nFlankers=4)

    assert task.config.n_flankers == 4
    assert task.belief.retrieval.__class__.__name__ == "ExactRetrieval"


@pytest.mark.parametrize(
    ("parameters", "message"),
    [
        ({"total_noise": 5.0, "proportion_context_noise": 0.5}, "unknown keys"),
        ({"retention_interval_dur": 100.0}, "flanker parameters has unknown keys"),
        ({"n_flankers": -1}, "n_flankers must be >= 0"),
        ({"trial_dist": [[0.5, 0.5], [0.5, 0.5]]}, "trial_dist is not proper"),
    ],
)
def test_config_rejects_invalid_parameters(parameters: dict, message: str) -> None:
    """Invalid Flanker parameters should fail at construction."""

    with pytest.raises(ConfigurationError, match=message):
        task_config_from_mapping("flanker", parameters)


class FrozenBelief:
    """Belief whose posterior never moves away from a uniform grid."""

    n_contexts = 2
    n_targets = 2

    def reset(self) -> None:
        pass

    def set_true_stimulus(self, context: int, target: int) -> None:
        pass

    def update_from_context(self, noise: float, *, trial_time: float = 0.0) -> int:
        return -1

    def update_from_target(self, noise: float) -> None:
        pass

    def get_belief(self):
        return np.full((2, 2), 0.25)


def test_unchanged_decision_variable_does_not_end_a_flanker_trial() -> None:
    """Flanker trials have no latch, so a frozen posterior runs into the sample limit."""

    config = task_config_from_mapping("flanker", {**CONVERGENT, "max_samples": 5})
    recorder = Recorder()
    task = FlankerTask(
        config,
        recorder=recorder,
        random_source=NumpyRandomSource(seed=27),
        belief=FrozenBelief(),
        architecture=FixedArchitecture(),
    )
    register_task_datums(recorder, task, n_contexts=2, n_targets=2, mode="batch")
    recorder.new_trial()

    with pytest.raises(SampleLimitError, match="max_samples=5"):
        task.run()
