"""Flanker task: target flanked by context stimuli, all visible at once."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from cddm.belief.engine import create_belief
from cddm.core.contracts import BeliefModel, RandomSource, StatsSink
from cddm.core.errors import SampleLimitError
from cddm.core.numerics import compensated_sum
from cddm.plugins import ComponentManifest
from cddm.runtime.architecture import Architecture
from cddm.runtime.random_source import NumpyRandomSource

from .base import Task, TrialOutcome
from .config import FlankerConfig, task_config_from_mapping

logger = logging.getLogger(__name__)


class FlankerTask(Task):
    """Flanker trial simulator.

    Each step draws one context sample per flanker and one target sample.
    The decision variable is the posterior mass on target ``0``; the
    response is ``0`` when it exceeds one half and ``1`` otherwise.
    Reaction time is ``clock + motor_exec + ebl``.
    """

    task_id = "flanker"
    summary_datum_names = ("RT", "Resp", "Acc")
    event_datum_names = ("eblEvent", "motorPlanEvent", "motorExecEvent", "samplingEvent")

    config: FlankerConfig

    def __init__(
        self,
        config: FlankerConfig,
        *,
        recorder: StatsSink,
        random_source: RandomSource,
        belief: BeliefModel | None = None,
        architecture: Architecture | None = None,
    ) -> None:
        if belief is None:
            belief = create_belief(
                ur_prior=config.ur_prior,
                random_source=random_source,
                context_mean_spacing=config.context_mean_spacing,
                target_mean_spacing=config.target_mean_spacing,
            )
        super().__init__(
            config,
            belief=belief,
            recorder=recorder,
            random_source=random_source,
            architecture=architecture,
        )

    def run(self) -> TrialOutcome:
        config = self.config
        self.trial_time = 0.0
        ebl = self.architecture.draw_ebl()
        sampling_start = self.trial_time
        context, target = self.draw_trial_type()
        correct_response = 0 if target == 0 else 1
        self.belief.set_true_stimulus(context, target)
        self.belief.reset()
        self.record_event("eblEvent", 0.0, ebl)
        logger.debug("%s trial start", self.label)

        premature = self.premature_response(correct_response)
        if premature is not None:
            return premature

        decision_variable = 0.0
        for n_samples in range(1, config.max_samples + 1):
            for _ in range(config.n_flankers):
                self.belief.update_from_context(config.context_noise)
            self.belief.update_from_target(config.target_noise)
            self.trial_time += self.time_per_step
            self.record_belief()
            decision_variable = _target_zero_mass(self.belief.get_belief())
            if decision_variable > config.decision_thresh or decision_variable < 1.0 - config.decision_thresh:
                break
        else:
            self.record_event("samplingEvent", sampling_start, self.trial_time)
            raise SampleLimitError(
                f"reached max_samples={config.max_samples} without a decision; "
                "raise max_samples only after checking the noise and threshold settings"
            )

        response = 0 if decision_variable > 0.5 else 1
        accuracy, motor_exec = self.commit(response, correct_response, self._planning_step)
        reaction_time = self.trial_time + motor_exec + ebl
        self.record("RT", reaction_time)
        self.record_event("samplingEvent", sampling_start, self.trial_time)
        logger.debug(
            "%s committed response %d after %d samples (dv=%.4f, rt=%.1f)",
            self.label,
            response,
            n_samples,
            decision_variable,
            reaction_time,
        )
        return TrialOutcome(
            context=context,
            target=target,
            correct_response=correct_response,
            response=response,
            accuracy=accuracy,
            reaction_time=reaction_time,
            premature=False,
            n_samples=n_samples,
            decision_variable=decision_variable,
            trial_time=self.trial_time,
        )

    def _planning_step(self) -> None:
        # one context sample per step while the response is being planned
        self.belief.update_from_context(self.config.context_noise)
        self.belief.update_from_target(self.config.target_noise)


def _target_zero_mass(posterior: np.ndarray) -> float:
    return compensated_sum(posterior[:, 0])


def create_flanker_task(
    *,
    recorder: StatsSink,
    random_source: RandomSource | None = None,
    **parameters: Any,
) -> FlankerTask:
    """Factory used by plugin discovery for the Flanker task."""

    config = task_config_from_mapping("flanker", parameters)
    assert isinstance(config, FlankerConfig)
    return FlankerTask(
        config,
        recorder=recorder,
        random_source=random_source if random_source is not None else NumpyRandomSource(),
    )


PLUGIN_MANIFESTS = [
    ComponentManifest(
        kind="task",
        component_id="flanker",
        factory=create_flanker_task,
        description="Flanker task with simultaneous flanker and target evidence",
    )
]


__all__ = ["FlankerTask", "create_flanker_task"]
