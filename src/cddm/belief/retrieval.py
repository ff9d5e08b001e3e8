"""Context-retrieval strategies for belief updates from memory.

A retrieval strategy decides which context a context-evidence sample is drawn
from, and with what probability the sample reflects the true context. The
belief engine owns the posterior; strategies only own their per-trial state.

Strategies
----------
ExactRetrieval
    Always samples the true context.
DecayRetrieval
    Samples the true context with probability ``exp(-decay_rate * t)``,
    re-drawn on every update. The likelihood is the matching mixture.
ForgetRetrieval
    Draws once per trial whether the context is forgotten. A forgotten
    context is replaced for the rest of the trial.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import numpy as np

from cddm.core.contracts import RandomSource
from cddm.core.errors import ConfigurationError
from cddm.core.numerics import categorical_index

CORRECT_RETRIEVAL = -1


class PriorType(str, Enum):
    """Distribution a corrupted retrieval is drawn from."""

    INFORMATIVE = "informative"
    UNIFORM = "uniform"


def coerce_prior_type(value: Any) -> PriorType:
    """Coerce names, enum members, or the legacy ``0``/``1`` codes.

    ``0`` maps to :attr:`PriorType.INFORMATIVE` and any other integer to
    :attr:`PriorType.UNIFORM`.
    """

    if isinstance(value, PriorType):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return PriorType.INFORMATIVE if int(value) == 0 else PriorType.UNIFORM
    try:
        return PriorType(str(value).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"unknown prior type {value!r}; expected 'informative' or 'uniform'"
        ) from exc


@dataclass(frozen=True, slots=True)
class Retrieval:
    """Result of consulting a retrieval strategy for one context update.

    Parameters
    ----------
    context : int
        Context the evidence sample is drawn from.
    p_correct : float
        Mixture weight of the hypothesized context in the likelihood. ``1.0``
        gives the plain Gaussian likelihood.
    substituted : int
        ``-1`` if the true context was used, else the substituted index.
    replaces_truth : bool
        Whether the engine must overwrite its true context for the rest of
        the trial.
    """

    context: int
    p_correct: float = 1.0
    substituted: int = CORRECT_RETRIEVAL
    replaces_truth: bool = False


@runtime_checkable
class ContextRetrieval(Protocol):
    """Strategy interface consulted by the belief engine."""

    def start_trial(self) -> None:
        """Clear any per-trial state."""

    def retrieve(
        self,
        *,
        true_context: int,
        trial_time: float,
        marginals: np.ndarray,
        random_source: RandomSource,
    ) -> Retrieval:
        """Choose the context the next sample is drawn from."""


def draw_substitute_context(
    prior_type: PriorType,
    *,
    marginals: np.ndarray,
    random_source: RandomSource,
) -> int:
    """Draw a replacement context index.

    Parameters
    ----------
    prior_type : PriorType
        ``UNIFORM`` draws uniformly over all contexts (the true one
        included); ``INFORMATIVE`` draws from the context marginals.
    marginals : numpy.ndarray
        Context marginal probabilities of the trial-start prior.
    random_source : RandomSource
        Source of uniform draws.

    Returns
    -------
    int
        Substituted context index.
    """

    if prior_type is PriorType.UNIFORM:
        return random_source.uniform_int(len(marginals))
    return categorical_index(marginals, random_source.uniform())


class ExactRetrieval:
    """Retrieval that always returns the true context."""

    def start_trial(self) -> None:
        """No per-trial state."""

    def retrieve(
        self,
        *,
        true_context: int,
        trial_time: float,
        marginals: np.ndarray,
        random_source: RandomSource,
    ) -> Retrieval:
        del trial_time, marginals, random_source
        return Retrieval(context=true_context)


class DecayRetrieval:
    """Exponentially decaying retrieval of the true context.

    Parameters
    ----------
    decay_rate : float
        Decay rate ``beta >= 0``. ``0`` reproduces :class:`ExactRetrieval`.
    decay_to : PriorType, optional
        Distribution of corrupted retrievals.
    """

    def __init__(self, decay_rate: float, decay_to: PriorType = PriorType.INFORMATIVE) -> None:
        if decay_rate < 0.0:
            raise ConfigurationError("decay_rate must be >= 0")
        self.decay_rate = float(decay_rate)
        self.decay_to = coerce_prior_type(decay_to)

    def start_trial(self) -> None:
        """No per-trial state; corruption is re-drawn at every update."""

    def p_correct(self, trial_time: float) -> float:
        """Probability of a correct retrieval at elapsed time ``trial_time``."""

        if self.decay_rate == 0.0 or trial_time == 0.0:
            return 1.0
        return math.exp(-self.decay_rate * trial_time)

    def retrieve(
        self,
        *,
        true_context: int,
        trial_time: float,
        marginals: np.ndarray,
        random_source: RandomSource,
    ) -> Retrieval:
        p_correct = self.p_correct(trial_time)
        if p_correct == 1.0:
            return Retrieval(context=true_context)

        if random_source.bernoulli(p_correct) == 1:
            return Retrieval(context=true_context, p_correct=p_correct)

        substitute = draw_substitute_context(self.decay_to, marginals=marginals, random_source=random_source)
        return Retrieval(context=substitute, p_correct=p_correct, substituted=substitute)


class ForgetRetrieval:
    """One-shot, irrevocable forgetting of the true context.

    Parameters
    ----------
    forget_prob : float
        Probability, drawn once per trial on the first context update, that
        the context is forgotten.
    forget_to : PriorType, optional
        Distribution the replacement context is drawn from.

    Notes
    -----
    After a successful forget draw the engine's true context is overwritten,
    so later updates in the same trial are ordinary updates against the
    replacement.
    """

    def __init__(self, forget_prob: float, forget_to: PriorType = PriorType.INFORMATIVE) -> None:
        if forget_prob < 0.0 or forget_prob > 1.0:
            raise ConfigurationError("forget_prob must be in [0, 1]")
        self.forget_prob = float(forget_prob)
        self.forget_to = coerce_prior_type(forget_to)
        self._drawn = False
        self._forgot = False

    @property
    def forgot(self) -> bool:
        """Whether the context was forgotten in the current trial."""

        return self._forgot

    def start_trial(self) -> None:
        """Re-arm the once-per-trial forget draw."""

        self._drawn = False
        self._forgot = False

    def retrieve(
        self,
        *,
        true_context: int,
        trial_time: float,
        marginals: np.ndarray,
        random_source: RandomSource,
    ) -> Retrieval:
        del trial_time
        if self._drawn or self.forget_prob == 0.0:
            return Retrieval(context=true_context)

        self._drawn = True
        if random_source.bernoulli(self.forget_prob) == 0:
            return Retrieval(context=true_context)

        self._forgot = True
        substitute = draw_substitute_context(self.forget_to, marginals=marginals, random_source=random_source)
        return Retrieval(context=substitute, substituted=substitute, replaces_truth=True)


__all__ = [
    "CORRECT_RETRIEVAL",
    "ContextRetrieval",
    "DecayRetrieval",
    "ExactRetrieval",
    "ForgetRetrieval",
    "PriorType",
    "Retrieval",
    "coerce_prior_type",
    "draw_substitute_context",
]
