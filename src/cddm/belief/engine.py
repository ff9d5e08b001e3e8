"""Joint (context, target) posterior updated from Gaussian evidence."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from cddm.belief.likelihood import context_likelihood, target_likelihood
from cddm.belief.retrieval import (
    CORRECT_RETRIEVAL,
    ContextRetrieval,
    DecayRetrieval,
    ExactRetrieval,
    ForgetRetrieval,
    PriorType,
)
from cddm.core.config_validation import coerce_float, coerce_probability_matrix
from cddm.core.contracts import RandomSource
from cddm.core.errors import ConfigurationError, DegenerateBeliefError, StimulusRangeError
from cddm.core.numerics import compensated_sum
from cddm.plugins import ComponentManifest
from cddm.runtime.random_source import NumpyRandomSource

logger = logging.getLogger(__name__)


class Belief:
    """Discrete Bayesian belief over joint (context, target) hypotheses.

    Model Contract
    --------------
    Evidence
        A context update draws ``x ~ Normal(c* * context_spacing, noise)``
        where ``c*`` is the context chosen by the retrieval strategy. A
        target update draws ``x ~ Normal(t* * target_spacing, noise)``.
    Update Rule
        ``posterior <- posterior * likelihood(x) / Z`` where ``Z`` is the
        compensated sum of the product. Each update is atomic: the posterior
        is replaced only after the new matrix has been normalized.
    Retrieval
        Context updates consult an injected :class:`ContextRetrieval`.
        :class:`ExactRetrieval` gives the plain model, while
        :class:`DecayRetrieval` and :class:`ForgetRetrieval` give the decaying
        and forgetting variants.

    Parameters
    ----------
    ur_prior : Any
        Trial-start prior with rows as contexts and columns as targets.
    random_source : RandomSource
        Source of evidence and retrieval draws.
    context_mean_spacing : float, optional
        Distance between consecutive context means.
    target_mean_spacing : float, optional
        Distance between consecutive target means.
    retrieval : ContextRetrieval | None, optional
        Context-retrieval strategy. Defaults to :class:`ExactRetrieval`.

    Raises
    ------
    ConfigurationError
        If the prior is not a proper 2-D distribution or a spacing is not
        positive.
    """

    def __init__(
        self,
        ur_prior: Any,
        *,
        random_source: RandomSource,
        context_mean_spacing: float = 1.0,
        target_mean_spacing: float = 1.0,
        retrieval: ContextRetrieval | None = None,
    ) -> None:
        self._ur_prior = coerce_probability_matrix(ur_prior, field_name="ur_prior")
        self._context_spacing = coerce_float(
            context_mean_spacing, field_name="context_mean_spacing", strictly_positive=True
        )
        self._target_spacing = coerce_float(
            target_mean_spacing, field_name="target_mean_spacing", strictly_positive=True
        )
        self._random = random_source
        self._retrieval = retrieval if retrieval is not None else ExactRetrieval()

        marginals = np.array([compensated_sum(row) for row in self._ur_prior], dtype=float)
        marginals.setflags(write=False)
        self._marginals = marginals

        self._posterior = self._ur_prior.copy()
        self._likelihood = np.ones_like(self._posterior)
        self._true_context: int | None = None
        self._true_target: int | None = None

    @property
    def n_contexts(self) -> int:
        """Number of context hypotheses."""

        return int(self._ur_prior.shape[0])

    @property
    def n_targets(self) -> int:
        """Number of target hypotheses."""

        return int(self._ur_prior.shape[1])

    @property
    def ur_prior(self) -> np.ndarray:
        """Read-only trial-start prior."""

        return self._ur_prior

    @property
    def marginals(self) -> np.ndarray:
        """Read-only context marginals (row sums of the prior)."""

        return self._marginals

    @property
    def retrieval(self) -> ContextRetrieval:
        """Context-retrieval strategy consulted by context updates."""

        return self._retrieval

    @property
    def true_stimulus(self) -> tuple[int | None, int | None]:
        """Current ``(context, target)`` evidence is drawn from."""

        return self._true_context, self._true_target

    def reset(self) -> None:
        """Reset the posterior to the prior and re-arm per-trial retrieval state."""

        self._posterior = self._ur_prior.copy()
        self._likelihood = np.ones_like(self._posterior)
        self._retrieval.start_trial()

    def set_true_stimulus(self, context: int, target: int) -> None:
        """Store the stimulus subsequent evidence is drawn from.

        Raises
        ------
        StimulusRangeError
            If either index lies outside the configured hypothesis counts.
        """

        if context < 0 or context >= self.n_contexts:
            raise StimulusRangeError(
                f"context index {context} outside [0, {self.n_contexts})"
            )
        if target < 0 or target >= self.n_targets:
            raise StimulusRangeError(
                f"target index {target} outside [0, {self.n_targets})"
            )
        self._true_context = int(context)
        self._true_target = int(target)

    def update_from_context(self, noise: float, *, trial_time: float = 0.0) -> int:
        """Apply one context-evidence update.

        Parameters
        ----------
        noise : float
            Evidence standard deviation. Must be positive.
        trial_time : float, optional
            Elapsed time used by decaying retrieval.

        Returns
        -------
        int
            ``-1`` if the true context was sampled, else the index of the
            substituted context.
        """

        _validate_noise(noise)
        true_context, _ = self._require_stimulus()
        retrieval = self._retrieval.retrieve(
            true_context=true_context,
            trial_time=trial_time,
            marginals=self._marginals,
            random_source=self._random,
        )
        if retrieval.replaces_truth:
            logger.debug("context %d forgotten, replaced by %d", true_context, retrieval.context)
            self._true_context = retrieval.context

        sample = self._random.normal(retrieval.context * self._context_spacing, noise)
        likelihood = context_likelihood(
            sample,
            noise,
            shape=self._posterior.shape,
            spacing=self._context_spacing,
            p_correct=retrieval.p_correct,
            marginals=self._marginals,
            density=self._random.normal_pdf,
        )
        self._apply(likelihood)
        return retrieval.substituted

    def update_from_target(self, noise: float) -> None:
        """Apply one target-evidence update."""

        _validate_noise(noise)
        _, true_target = self._require_stimulus()
        sample = self._random.normal(true_target * self._target_spacing, noise)
        likelihood = target_likelihood(
            sample,
            noise,
            shape=self._posterior.shape,
            spacing=self._target_spacing,
            density=self._random.normal_pdf,
        )
        self._apply(likelihood)

    def get_belief(self) -> np.ndarray:
        """Return a copy of the current posterior."""

        return self._posterior.copy()

    def get_likelihood(self) -> np.ndarray:
        """Return a copy of the likelihood used by the most recent update."""

        return self._likelihood.copy()

    def _apply(self, likelihood: np.ndarray) -> None:
        product = self._posterior * likelihood
        normalizer = compensated_sum(product)
        if normalizer == 0.0:
            raise DegenerateBeliefError(
                "posterior normalizer underflowed to zero; evidence is incompatible with every hypothesis"
            )
        self._posterior = product / normalizer
        self._likelihood = likelihood

    def _require_stimulus(self) -> tuple[int, int]:
        if self._true_context is None or self._true_target is None:
            raise RuntimeError("set_true_stimulus must be called before updating the belief")
        return self._true_context, self._true_target


def _validate_noise(noise: float) -> None:
    if not noise > 0.0:
        raise ConfigurationError(f"evidence noise must be > 0, got {noise!r}")


def create_belief(
    *,
    ur_prior: Any,
    random_source: RandomSource | None = None,
    context_mean_spacing: float = 1.0,
    target_mean_spacing: float = 1.0,
) -> Belief:
    """Factory used by plugin discovery for the plain belief engine."""

    return Belief(
        ur_prior,
        random_source=random_source if random_source is not None else NumpyRandomSource(),
        context_mean_spacing=context_mean_spacing,
        target_mean_spacing=target_mean_spacing,
    )


def create_decay_belief(
    *,
    ur_prior: Any,
    decay_rate: float = 0.01,
    decay_to: PriorType | str = PriorType.INFORMATIVE,
    random_source: RandomSource | None = None,
    context_mean_spacing: float = 1.0,
    target_mean_spacing: float = 1.0,
) -> Belief:
    """Factory for a belief whose context retrieval decays over trial time.

    Parameters
    ----------
    ur_prior : Any
        Trial-start prior.
    decay_rate : float, optional
        Exponential decay rate of correct retrieval.
    decay_to : PriorType | str, optional
        Distribution corrupted retrievals are drawn from.
    random_source : RandomSource | None, optional
        Random source. A fresh unseeded source is used when omitted.
    context_mean_spacing, target_mean_spacing : float, optional
        Evidence mean spacings.

    Returns
    -------
    Belief
        Belief engine with a :class:`DecayRetrieval` strategy.
    """

    return Belief(
        ur_prior,
        random_source=random_source if random_source is not None else NumpyRandomSource(),
        context_mean_spacing=context_mean_spacing,
        target_mean_spacing=target_mean_spacing,
        retrieval=DecayRetrieval(decay_rate, decay_to),
    )


def create_forget_belief(
    *,
    ur_prior: Any,
    forget_prob: float = 0.0,
    forget_to: PriorType | str = PriorType.INFORMATIVE,
    random_source: RandomSource | None = None,
    context_mean_spacing: float = 1.0,
    target_mean_spacing: float = 1.0,
) -> Belief:
    """Factory for a belief that may forget its context once per trial."""

    return Belief(
        ur_prior,
        random_source=random_source if random_source is not None else NumpyRandomSource(),
        context_mean_spacing=context_mean_spacing,
        target_mean_spacing=target_mean_spacing,
        retrieval=ForgetRetrieval(forget_prob, forget_to),
    )


PLUGIN_MANIFESTS = [
    ComponentManifest(
        kind="belief",
        component_id="belief",
        factory=create_belief,
        description="Joint context/target posterior with exact context retrieval",
    ),
    ComponentManifest(
        kind="belief",
        component_id="decay_belief",
        factory=create_decay_belief,
        description="Posterior whose context retrieval decays exponentially with trial time",
    ),
    ComponentManifest(
        kind="belief",
        component_id="forget_belief",
        factory=create_forget_belief,
        description="Posterior that may irrevocably forget its context once per trial",
    ),
]


__all__ = [
    "Belief",
    "CORRECT_RETRIEVAL",
    "create_belief",
    "create_decay_belief",
    "create_forget_belief",
]
