"""Task configuration dataclasses and mapping parsers.

Configurations are frozen dataclasses validated in ``__post_init__``. The
mapping parser fills documented defaults, accepts the legacy camelCase key
names, and resolves the two ways of specifying evidence noise.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from cddm.belief.retrieval import PriorType, coerce_prior_type
from cddm.core.config_validation import (
    coerce_float,
    coerce_int,
    coerce_probability,
    coerce_probability_matrix,
    coerce_threshold,
    validate_allowed_keys,
)
from cddm.core.errors import ConfigurationError
from cddm.runtime.architecture import ArchitectureConfig

DEFAULT_JOINT_DISTRIBUTION = ((0.4, 0.3), (0.2, 0.1))
STEP_COUNT_ATOL = 1e-9

MEMORY_MODELS = ("decay", "forget")

LEGACY_KEY_ALIASES: dict[str, str] = {
    "timePerStep": "time_per_step",
    "retentionIntervalDur": "retention_interval_dur",
    "maxTrials": "max_trials",
    "maxSamps": "max_samples",
    "contextNoise": "context_noise",
    "targetNoise": "target_noise",
    "retentionNoise": "retention_noise",
    "totalNoise": "total_noise",
    "proportionContextNoise": "proportion_context_noise",
    "decisionThresh": "decision_thresh",
    "eblMean": "ebl_mean",
    "eblSd": "ebl_sd",
    "motorPlanMean": "motor_plan_mean",
    "motorExecMean": "motor_exec_mean",
    "motorSd": "motor_sd",
    "urPrior": "ur_prior",
    "trialDist": "trial_dist",
    "nContexts": "n_contexts",
    "nTargets": "n_targets",
    "decayRate": "decay_rate",
    "decayTo": "decay_to",
    "forgetProb": "forget_prob",
    "forgetTo": "forget_to",
    "pPrematureResp": "p_premature_resp",
    "contextMeanSpacing": "context_mean_spacing",
    "targetMeanSpacing": "target_mean_spacing",
    "memoryModel": "memory_model",
    "nFlankers": "n_flankers",
}

ARCHITECTURE_KEYS = (
    "time_per_step",
    "ebl_mean",
    "ebl_sd",
    "motor_plan_mean",
    "motor_exec_mean",
    "motor_sd",
)

COMMON_KEYS = (
    *ARCHITECTURE_KEYS,
    "max_trials",
    "max_samples",
    "context_noise",
    "target_noise",
    "decision_thresh",
    "p_premature_resp",
    "ur_prior",
    "trial_dist",
    "n_contexts",
    "n_targets",
    "context_mean_spacing",
    "target_mean_spacing",
)

AXCPT_KEYS = (
    *COMMON_KEYS,
    "retention_interval_dur",
    "retention_noise",
    "total_noise",
    "proportion_context_noise",
    "memory_model",
    "decay_rate",
    "decay_to",
    "forget_prob",
    "forget_to",
)

FLANKER_KEYS = (*COMMON_KEYS, "n_flankers")


def _default_matrix() -> np.ndarray:
    return np.array(DEFAULT_JOINT_DISTRIBUTION, dtype=float)


@dataclass(frozen=True, slots=True)
class TaskConfig:
    """Parameters shared by every decision task.

    Parameters
    ----------
    architecture : ArchitectureConfig
        Step size and non-decision duration parameters.
    max_trials : int
        Number of trials an experiment runs.
    max_samples : int
        Accumulation steps allowed per trial before the run is aborted.
    context_noise, target_noise : float
        Evidence standard deviations. Must be positive.
    decision_thresh : float
        Probability-space threshold in ``[0, 1)``.
    p_premature_resp : float
        Probability of a stimulus-independent guess at trial start.
    ur_prior : numpy.ndarray
        Trial-start prior of the belief engine.
    trial_dist : numpy.ndarray
        Distribution the true ``(context, target)`` pair is drawn from.
    context_mean_spacing, target_mean_spacing : float
        Evidence mean spacings.

    Raises
    ------
    ConfigurationError
        If any parameter is out of range, a distribution is improper, or the
        prior and trial distribution shapes differ.
    """

    architecture: ArchitectureConfig = field(default_factory=ArchitectureConfig)
    max_trials: int = 100
    max_samples: int = 1000
    context_noise: float = 3.0
    target_noise: float = 3.0
    decision_thresh: float = 0.95
    p_premature_resp: float = 0.0
    ur_prior: np.ndarray = field(default_factory=_default_matrix)
    trial_dist: np.ndarray = field(default_factory=_default_matrix)
    context_mean_spacing: float = 1.0
    target_mean_spacing: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "ur_prior", coerce_probability_matrix(self.ur_prior, field_name="ur_prior"))
        object.__setattr__(
            self, "trial_dist", coerce_probability_matrix(self.trial_dist, field_name="trial_dist")
        )
        if self.ur_prior.shape != self.trial_dist.shape:
            raise ConfigurationError(
                f"ur_prior shape {self.ur_prior.shape} differs from trial_dist shape {self.trial_dist.shape}"
            )
        coerced = {
            "max_trials": coerce_int(self.max_trials, field_name="max_trials", minimum=1),
            "max_samples": coerce_int(self.max_samples, field_name="max_samples", minimum=1),
            "context_noise": coerce_float(self.context_noise, field_name="context_noise", strictly_positive=True),
            "target_noise": coerce_float(self.target_noise, field_name="target_noise", strictly_positive=True),
            "decision_thresh": coerce_threshold(self.decision_thresh),
            "p_premature_resp": coerce_probability(self.p_premature_resp, field_name="p_premature_resp"),
            "context_mean_spacing": coerce_float(
                self.context_mean_spacing, field_name="context_mean_spacing", strictly_positive=True
            ),
            "target_mean_spacing": coerce_float(
                self.target_mean_spacing, field_name="target_mean_spacing", strictly_positive=True
            ),
        }
        for name, value in coerced.items():
            object.__setattr__(self, name, value)

    @property
    def n_contexts(self) -> int:
        return int(self.ur_prior.shape[0])

    @property
    def n_targets(self) -> int:
        return int(self.ur_prior.shape[1])

    @property
    def time_per_step(self) -> float:
        return self.architecture.time_per_step


@dataclass(frozen=True, slots=True)
class AxcptConfig(TaskConfig):
    """AX-CPT parameters.

    Parameters
    ----------
    retention_interval_dur : float
        Delay between context offset and target onset. Must be a whole number
        of steps.
    retention_noise : float | None
        Context noise during the retention interval. ``None`` uses
        ``context_noise``.
    memory_model : {"decay", "forget"}
        How the remembered context degrades.
    decay_rate : float
        Exponential decay rate of correct retrieval.
    decay_to : PriorType
        Distribution of corrupted retrievals under decay.
    forget_prob : float
        Per-trial probability of forgetting the context.
    forget_to : PriorType
        Distribution the forgotten context is replaced from.
    """

    retention_interval_dur: float = 200.0
    retention_noise: float | None = None
    memory_model: str = "decay"
    decay_rate: float = 0.01
    decay_to: PriorType = PriorType.INFORMATIVE
    forget_prob: float = 0.0
    forget_to: PriorType = PriorType.INFORMATIVE

    def __post_init__(self) -> None:
        TaskConfig.__post_init__(self)
        if self.retention_noise is None:
            object.__setattr__(self, "retention_noise", self.context_noise)
        object.__setattr__(
            self,
            "retention_noise",
            coerce_float(self.retention_noise, field_name="retention_noise", strictly_positive=True),
        )
        object.__setattr__(
            self,
            "retention_interval_dur",
            coerce_float(self.retention_interval_dur, field_name="retention_interval_dur", minimum=0.0),
        )
        steps = self.retention_interval_dur / self.time_per_step
        if abs(steps - round(steps)) > STEP_COUNT_ATOL:
            raise ConfigurationError(
                "retention_interval_dur must be a whole number of time_per_step steps, "
                f"got {self.retention_interval_dur!r} / {self.time_per_step!r} = {steps!r}"
            )
        if self.memory_model not in MEMORY_MODELS:
            raise ConfigurationError(f"memory_model must be one of {MEMORY_MODELS}, got {self.memory_model!r}")
        object.__setattr__(self, "decay_rate", coerce_float(self.decay_rate, field_name="decay_rate", minimum=0.0))
        object.__setattr__(self, "forget_prob", coerce_probability(self.forget_prob, field_name="forget_prob"))
        object.__setattr__(self, "decay_to", coerce_prior_type(self.decay_to))
        object.__setattr__(self, "forget_to", coerce_prior_type(self.forget_to))

    @property
    def n_retention_steps(self) -> int:
        """Number of context-only updates during the retention interval."""

        return int(round(self.retention_interval_dur / self.time_per_step))


@dataclass(frozen=True, slots=True)
class FlankerConfig(TaskConfig):
    """Flanker parameters.

    Parameters
    ----------
    n_flankers : int
        Context updates per step, one per flanking stimulus.
    """

    n_flankers: int = 2

    def __post_init__(self) -> None:
        TaskConfig.__post_init__(self)
        object.__setattr__(self, "n_flankers", coerce_int(self.n_flankers, field_name="n_flankers", minimum=0))


TASK_CONFIG_KEYS: dict[str, tuple[str, ...]] = {
    "axcpt": AXCPT_KEYS,
    "flanker": FLANKER_KEYS,
}


def normalize_parameter_keys(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Translate legacy camelCase keys to their snake_case names.

    Raises
    ------
    ConfigurationError
        If a key is given under both its legacy and current name.
    """

    normalized: dict[str, Any] = {}
    for raw_key, value in mapping.items():
        key = LEGACY_KEY_ALIASES.get(str(raw_key), str(raw_key))
        if key in normalized:
            raise ConfigurationError(f"parameter {key!r} given more than once")
        normalized[key] = value
    return normalized


def _resolve_noise(params: dict[str, Any], *, allow_total: bool) -> dict[str, float]:
    direct = [key for key in ("context_noise", "target_noise") if key in params]
    total = [key for key in ("total_noise", "proportion_context_noise") if key in params]

    if total:
        if not allow_total:
            raise ConfigurationError("total_noise/proportion_context_noise are not supported by this task")
        if direct:
            raise ConfigurationError(
                "noise given both directly (context_noise/target_noise) and as "
                "total_noise/proportion_context_noise"
            )
        if len(total) != 2:
            raise ConfigurationError("total_noise and proportion_context_noise must be given together")
        total_noise = coerce_float(params.pop("total_noise"), field_name="total_noise", strictly_positive=True)
        proportion = coerce_float(params.pop("proportion_context_noise"), field_name="proportion_context_noise")
        if proportion <= 0.0 or proportion >= 1.0:
            raise ConfigurationError(f"proportion_context_noise must be in (0, 1), got {proportion!r}")
        variance = total_noise * total_noise
        return {
            "context_noise": math.sqrt(variance * proportion),
            "target_noise": math.sqrt(variance * (1.0 - proportion)),
        }

    resolved: dict[str, float] = {}
    for key in direct:
        resolved[key] = coerce_float(params.pop(key), field_name=key, strictly_positive=True)
    return resolved


def task_config_from_mapping(task_id: str, mapping: Mapping[str, Any]) -> TaskConfig:
    """Build a validated task configuration from a flat parameter mapping.

    Parameters
    ----------
    task_id : {"axcpt", "flanker"}
        Task the parameters belong to.
    mapping : Mapping[str, Any]
        Flat parameters, snake_case or legacy camelCase. Missing keys take
        their documented defaults.

    Returns
    -------
    TaskConfig
        :class:`AxcptConfig` or :class:`FlankerConfig`.

    Raises
    ------
    ConfigurationError
        If the task is unknown, keys are unknown, or any value is invalid.
    """

    if task_id not in TASK_CONFIG_KEYS:
        raise ConfigurationError(f"unknown task {task_id!r}; expected one of {sorted(TASK_CONFIG_KEYS)}")

    params = normalize_parameter_keys(mapping)
    validate_allowed_keys(params, field_name=f"{task_id} parameters", allowed_keys=TASK_CONFIG_KEYS[task_id])

    architecture_kwargs = {
        key: coerce_float(params.pop(key), field_name=key) for key in ARCHITECTURE_KEYS if key in params
    }
    kwargs: dict[str, Any] = {"architecture": ArchitectureConfig(**architecture_kwargs)}
    kwargs.update(_resolve_noise(params, allow_total=task_id == "axcpt"))

    n_contexts = params.pop("n_contexts", None)
    n_targets = params.pop("n_targets", None)

    for key in ("max_trials", "max_samples", "n_flankers"):
        if key in params:
            kwargs[key] = coerce_int(params.pop(key), field_name=key)
    for key in ("memory_model",):
        if key in params:
            kwargs[key] = str(params.pop(key)).strip().lower()
    kwargs.update(params)

    config: TaskConfig
    if task_id == "axcpt":
        config = AxcptConfig(**kwargs)
    else:
        config = FlankerConfig(**kwargs)

    if n_contexts is not None and coerce_int(n_contexts, field_name="n_contexts") != config.n_contexts:
        raise ConfigurationError(f"n_contexts={n_contexts!r} does not match ur_prior rows ({config.n_contexts})")
    if n_targets is not None and coerce_int(n_targets, field_name="n_targets") != config.n_targets:
        raise ConfigurationError(f"n_targets={n_targets!r} does not match ur_prior columns ({config.n_targets})")
    return config


__all__ = [
    "AxcptConfig",
    "DEFAULT_JOINT_DISTRIBUTION",
    "FlankerConfig",
    "LEGACY_KEY_ALIASES",
    "MEMORY_MODELS",
    "TASK_CONFIG_KEYS",
    "TaskConfig",
    "normalize_parameter_keys",
    "task_config_from_mapping",
]
