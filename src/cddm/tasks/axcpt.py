"""AX-CPT task: remembered context, delayed target.

The context cue disappears before the retention interval. During the
interval the agent samples only its (possibly decaying) memory of the cue.
After target onset it samples both memory and target until the posterior
mass on matching ``(context, target)`` pairs crosses a bound.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from cddm.belief.engine import create_decay_belief, create_forget_belief
from cddm.core.contracts import BeliefModel, RandomSource, StatsSink
from cddm.core.errors import SampleLimitError
from cddm.plugins import ComponentManifest
from cddm.runtime.architecture import Architecture
from cddm.runtime.random_source import NumpyRandomSource

from .base import Task, TrialOutcome
from .config import AxcptConfig, task_config_from_mapping

logger = logging.getLogger(__name__)

LATCH_TOLERANCE = 10 * np.finfo(float).tiny


def build_axcpt_belief(config: AxcptConfig, random_source: RandomSource) -> BeliefModel:
    """Build the memory model configured for an AX-CPT task."""

    if config.memory_model == "forget":
        return create_forget_belief(
            ur_prior=config.ur_prior,
            forget_prob=config.forget_prob,
            forget_to=config.forget_to,
            random_source=random_source,
            context_mean_spacing=config.context_mean_spacing,
            target_mean_spacing=config.target_mean_spacing,
        )
    return create_decay_belief(
        ur_prior=config.ur_prior,
        decay_rate=config.decay_rate,
        decay_to=config.decay_to,
        random_source=random_source,
        context_mean_spacing=config.context_mean_spacing,
        target_mean_spacing=config.target_mean_spacing,
    )


class AxcptTask(Task):
    """AX-CPT trial simulator.

    The correct response is ``1`` when context and target indices match.
    The decision variable is the trace of the posterior, i.e. the mass on
    matching pairs, and the response is ``1`` when it exceeds one half.

    Reaction time is measured from target onset:
    ``clock + motor_exec - retention_interval_dur + ebl``.
    """

    task_id = "axcpt"
    summary_datum_names = ("RT", "Resp", "Acc", "CorrectRT", "IncorrectRT")
    event_datum_names = (
        "eblEvent",
        "motorPlanEvent",
        "motorExecEvent",
        "samplingBothEvent",
        "samplingContextEvent",
    )

    config: AxcptConfig

    def __init__(
        self,
        config: AxcptConfig,
        *,
        recorder: StatsSink,
        random_source: RandomSource,
        belief: BeliefModel | None = None,
        architecture: Architecture | None = None,
    ) -> None:
        super().__init__(
            config,
            belief=belief if belief is not None else build_axcpt_belief(config, random_source),
            recorder=recorder,
            random_source=random_source,
            architecture=architecture,
        )

    def run(self) -> TrialOutcome:
        config = self.config
        context, target = self.draw_trial_type()
        self.belief.set_true_stimulus(context, target)
        self.belief.reset()
        self.trial_time = 0.0
        correct_response = 1 if context == target else 0
        ebl = self.architecture.draw_ebl()
        self.record_event("eblEvent", config.retention_interval_dur, config.retention_interval_dur + ebl)
        logger.debug("%s trial start", self.label)

        premature = self.premature_response(correct_response)
        if premature is not None:
            return premature

        self._sample_retention_interval()

        sampling_start = self.trial_time
        decision_variable = 0.0
        for n_samples in range(1, config.max_samples + 1):
            self._step()
            self.trial_time += self.time_per_step
            self.record_belief()
            previous = decision_variable
            decision_variable = float(np.trace(self.belief.get_belief()))
            if (
                decision_variable > config.decision_thresh
                or decision_variable < 1.0 - config.decision_thresh
                or abs(previous - decision_variable) <= LATCH_TOLERANCE
            ):
                break
        else:
            self.record_event("samplingBothEvent", sampling_start, self.trial_time)
            raise SampleLimitError(
                f"reached max_samples={config.max_samples} without a decision; "
                "raise max_samples only after checking the noise and threshold settings"
            )

        response = 1 if decision_variable > 0.5 else 0
        accuracy, motor_exec = self.commit(response, correct_response, self._planning_step)
        reaction_time = self.trial_time + motor_exec - config.retention_interval_dur + ebl
        self.record("RT", reaction_time)
        self.record("CorrectRT" if accuracy == 1 else "IncorrectRT", reaction_time)
        self.record_event("samplingBothEvent", sampling_start, self.trial_time)
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

    def _sample_retention_interval(self) -> None:
        n_steps = self.config.n_retention_steps
        for _ in range(n_steps):
            self.record_belief()
            self.trial_time += self.time_per_step
            self.belief.update_from_context(self.config.retention_noise, trial_time=self.trial_time)
        self.record_event("samplingContextEvent", 0.0, n_steps * self.time_per_step)

    def _step(self) -> None:
        self.belief.update_from_context(self.config.context_noise, trial_time=self.trial_time)
        self.belief.update_from_target(self.config.target_noise)

    def _planning_step(self) -> None:
        # the response is fixed; memory is sampled without decay
        self.belief.update_from_context(self.config.context_noise)
        self.belief.update_from_target(self.config.target_noise)


def create_axcpt_task(
    *,
    recorder: StatsSink,
    random_source: RandomSource | None = None,
    **parameters: Any,
) -> AxcptTask:
    """Factory used by plugin discovery for the AX-CPT task.

    Parameters
    ----------
    recorder : StatsSink
        Destination for trial observations.
    random_source : RandomSource | None, optional
        Random source shared by task, belief, and timing draws.
    **parameters : Any
        Flat task parameters; see :func:`task_config_from_mapping`.

    Returns
    -------
    AxcptTask
        Configured task.
    """

    config = task_config_from_mapping("axcpt", parameters)
    assert isinstance(config, AxcptConfig)
    return AxcptTask(
        config,
        recorder=recorder,
        random_source=random_source if random_source is not None else NumpyRandomSource(),
    )


PLUGIN_MANIFESTS = [
    ComponentManifest(
        kind="task",
        component_id="axcpt",
        factory=create_axcpt_task,
        description="AX-CPT with decaying or forgetful context memory over a retention interval",
    )
]


__all__ = ["AxcptTask", "LATCH_TOLERANCE", "build_axcpt_belief", "create_axcpt_task"]
