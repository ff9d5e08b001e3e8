"""Shared trial machinery for context/target decision tasks.

A task simulates exactly one trial per :meth:`Task.run` call:

1. draw the true ``(context, target)`` pair and reset the belief,
2. optionally emit a premature guess and stop,
3. accumulate evidence until the decision variable crosses a bound,
4. commit the response, keep sampling through motor planning for the
   trace, then add motor execution and perceptual lag to the RT.

Subclasses implement the task-specific accumulation step, decision variable,
response mapping, and RT offsets.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cddm.core.contracts import BeliefModel, RandomSource, StatsSink
from cddm.core.errors import ConfigurationError
from cddm.core.numerics import categorical_index
from cddm.recording.datums import Event, Timepoint
from cddm.runtime.architecture import Architecture

from .config import TaskConfig

logger = logging.getLogger(__name__)


def trial_label(context: int, target: int) -> str:
    """Return the datum-name prefix for one trial type."""

    return f"Context{context}_Target{target}_"


@dataclass(frozen=True, slots=True)
class TrialOutcome:
    """Result of one simulated trial.

    Parameters
    ----------
    context, target : int
        True stimulus of the trial.
    correct_response : int
        Response implied by the true stimulus.
    response : int
        Committed response.
    accuracy : int
        ``1`` if ``response == correct_response``, else ``0``.
    reaction_time : float
        Simulated reaction time (ms).
    premature : bool
        Whether the trial ended with a stimulus-independent guess.
    n_samples : int
        Accumulation steps taken before commit (``0`` for premature trials).
    decision_variable : float | None
        Decision variable at commit (``None`` for premature trials).
    trial_time : float
        Trial clock when the trial ended.
    """

    context: int
    target: int
    correct_response: int
    response: int
    accuracy: int
    reaction_time: float
    premature: bool
    n_samples: int
    decision_variable: float | None
    trial_time: float


class Task:
    """Base class for one-trial-per-call decision tasks.

    Parameters
    ----------
    config : TaskConfig
        Validated task parameters.
    belief : BeliefModel
        Belief engine driven by this task. Must match the shape of
        ``config.trial_dist``.
    recorder : StatsSink
        Destination for trial observations.
    random_source : RandomSource
        Source of trial-type, premature-response, and guess draws.
    architecture : Architecture | None, optional
        Non-decision timing model. Built from ``config.architecture`` when
        omitted.
    """

    task_id: str = ""
    trace_datum_names: tuple[str, ...] = ("post",)
    summary_datum_names: tuple[str, ...] = ("RT", "Resp", "Acc")
    event_datum_names: tuple[str, ...] = ("eblEvent", "motorPlanEvent", "motorExecEvent")

    def __init__(
        self,
        config: TaskConfig,
        *,
        belief: BeliefModel,
        recorder: StatsSink,
        random_source: RandomSource,
        architecture: Architecture | None = None,
    ) -> None:
        if (belief.n_contexts, belief.n_targets) != config.trial_dist.shape:
            raise ConfigurationError(
                f"belief shape {(belief.n_contexts, belief.n_targets)} differs from trial_dist shape "
                f"{config.trial_dist.shape}"
            )
        self.config = config
        self.belief = belief
        self.recorder = recorder
        self.random_source = random_source
        self.architecture = (
            architecture
            if architecture is not None
            else Architecture(config.architecture, random_source=random_source)
        )
        self.context = -1
        self.target = -1
        self.label = ""
        self.trial_time = 0.0

    @property
    def time_per_step(self) -> float:
        return self.config.time_per_step

    def run(self) -> TrialOutcome:
        raise NotImplementedError

    def draw_trial_type(self) -> tuple[int, int]:
        """Draw the true stimulus for the next trial.

        Cells of the trial distribution are scanned in row-major order and
        the first cell whose cumulative probability meets the uniform draw
        is chosen.
        """

        flat_index = categorical_index(self.config.trial_dist, self.random_source.uniform())
        context, target = divmod(flat_index, self.config.n_targets)
        self.context = int(context)
        self.target = int(target)
        self.label = trial_label(self.context, self.target)
        return self.context, self.target

    def record(self, name: str, value: Any) -> None:
        self.recorder.update_datum(self.label + name, value)

    def record_event(self, name: str, start: float, end: float) -> None:
        self.record(name, Event(start, end))

    def record_belief(self) -> None:
        self.record("post", Timepoint(self.trial_time, self.belief.get_belief().ravel()))

    def premature_response(self, correct_response: int) -> TrialOutcome | None:
        """Emit a coin-flip guess with probability ``p_premature_resp``.

        Returns
        -------
        TrialOutcome | None
            Outcome of the guess, or ``None`` when the trial continues
            normally. The belief is never updated on a guessed trial.
        """

        p_premature = self.config.p_premature_resp
        if p_premature <= 0.0 or self.random_source.bernoulli(p_premature) == 0:
            return None

        motor_planning = self.architecture.draw_motor_planning()
        motor_exec = self.architecture.draw_motor_exec()
        response = self.random_source.bernoulli(0.5)
        accuracy = int(response == correct_response)
        self.record_event("motorPlanEvent", 0.0, motor_planning)
        self.record("Resp", float(response))
        self.record("Acc", float(accuracy))
        self.record_event("motorExecEvent", 0.0, motor_exec)
        self.record("RT", motor_exec)
        logger.debug("%s premature response %d (acc=%d)", self.label, response, accuracy)
        return TrialOutcome(
            context=self.context,
            target=self.target,
            correct_response=correct_response,
            response=response,
            accuracy=accuracy,
            reaction_time=motor_exec,
            premature=True,
            n_samples=0,
            decision_variable=None,
            trial_time=self.trial_time,
        )

    def commit(self, response: int, correct_response: int, step: Callable[[], None]) -> tuple[int, float]:
        """Lock in ``response`` and run out the motor-planning delay.

        Parameters
        ----------
        response : int
            Committed response.
        correct_response : int
            Response implied by the true stimulus.
        step : Callable[[], None]
            One accumulation step's belief updates. Repeated through motor
            planning for the posterior trace only; the response is already
            fixed.

        Returns
        -------
        tuple[int, float]
            Accuracy and the drawn motor-execution duration.
        """

        motor_planning = self.architecture.draw_motor_planning()
        self.record_event("motorPlanEvent", self.trial_time, self.trial_time + motor_planning)
        accuracy = int(response == correct_response)
        self.record("Resp", float(response))
        self.record("Acc", float(accuracy))

        for _ in range(int(round(motor_planning / self.time_per_step))):
            step()
            self.trial_time += self.time_per_step
            self.record_belief()

        motor_exec = self.architecture.draw_motor_exec()
        self.record_event("motorExecEvent", self.trial_time, self.trial_time + motor_exec)
        return accuracy, motor_exec


__all__ = ["Task", "TrialOutcome", "trial_label"]
