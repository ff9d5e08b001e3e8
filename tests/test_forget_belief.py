"""Tests for one-shot context forgetting."""

from __future__ import annotations

from collections import deque

import numpy as np
import pytest
from scipy.stats import norm

from cddm.belief import CORRECT_RETRIEVAL, ForgetRetrieval, PriorType, create_belief, create_forget_belief
from cddm.core import ConfigurationError
from cddm.runtime import NumpyRandomSource

PRIOR = [[0.5, 0.2], [0.2, 0.1]]


class ScriptedRandomSource:
    """Random source that fails loudly when a scripted queue runs dry."""

    def __init__(self, *, bernoullis=(), uniforms=(), ints=()) -> None:
        self.bernoullis = deque(bernoullis)
        self.uniforms = deque(uniforms)
        self.ints = deque(ints)
        self.normal_means: list[float] = []

    def normal(self, mean: float, sd: float) -> float:
        self.normal_means.append(mean)
        return mean

    def normal_pdf(self, x, mean, sd):
        return norm.pdf(x, loc=mean, scale=sd)

    def bernoulli(self, p: float) -> int:
        return self.bernoullis.popleft()

    def uniform(self) -> float:
        return self.uniforms.popleft()

    def uniform_int(self, n: int) -> int:
        return self.ints.popleft()


def test_forget_draw_happens_once_per_trial() -> None:
    """Only the first context update of a trial consults the forget draw."""

    source = ScriptedRandomSource(bernoullis=[0])
    belief = create_forget_belief(ur_prior=PRIOR, forget_prob=0.5, random_source=source)
    belief.set_true_stimulus(1, 0)
    belief.reset()

    results = [belief.update_from_context(1.0) for _ in range(10)]

    assert results == [CORRECT_RETRIEVAL] * 10
    assert source.normal_means == [1.0] * 10
    assert not belief.retrieval.forgot


def test_forgotten_context_replaces_truth_for_rest_of_trial() -> None:
    """A successful forget should redirect every later context sample."""

    source = ScriptedRandomSource(bernoullis=[1], uniforms=[0.8])
    belief = create_forget_belief(ur_prior=PRIOR, forget_prob=0.3, random_source=source)
    belief.set_true_stimulus(0, 1)
    belief.reset()

    first = belief.update_from_context(1.0)
    later = [belief.update_from_context(1.0) for _ in range(5)]

    assert first == 1
    assert later == [CORRECT_RETRIEVAL] * 5
    assert belief.true_stimulus == (1, 1)
    assert belief.retrieval.forgot
    assert source.normal_means == [1.0] * 6


def test_uniform_forget_target_uses_integer_draw() -> None:
    """Uniform replacement should come from ``uniform_int``."""

    source = ScriptedRandomSource(bernoullis=[1], ints=[0])
    belief = create_forget_belief(
        ur_prior=PRIOR,
        forget_prob=1.0,
        forget_to=PriorType.UNIFORM,
        random_source=source,
    )
    belief.set_true_stimulus(1, 0)
    belief.reset()

    assert belief.update_from_context(1.0) == 0
    assert belief.true_stimulus == (0, 0)


def test_reset_rearms_the_forget_draw() -> None:
    """Each trial gets its own forget draw after ``reset``."""

    source = ScriptedRandomSource(bernoullis=[0, 1], uniforms=[0.1])
    belief = create_forget_belief(ur_prior=PRIOR, forget_prob=0.5, random_source=source)
    belief.set_true_stimulus(1, 1)
    belief.reset()
    assert belief.update_from_context(1.0) == CORRECT_RETRIEVAL

    belief.set_true_stimulus(1, 1)
    belief.reset()
    assert not belief.retrieval.forgot
    assert belief.update_from_context(1.0) == 0
    assert belief.retrieval.forgot


def test_zero_forget_probability_consumes_no_randomness() -> None:
    """With ``forget_prob == 0`` the model matches the base belief exactly."""

    base = create_belief(ur_prior=PRIOR, random_source=NumpyRandomSource(seed=3))
    forgetful = create_forget_belief(ur_prior=PRIOR, forget_prob=0.0, random_source=NumpyRandomSource(seed=3))
    for belief in (base, forgetful):
        belief.set_true_stimulus(0, 1)
        belief.reset()

    for _ in range(100):
        assert forgetful.update_from_context(1.5) == CORRECT_RETRIEVAL
        base.update_from_context(1.5)
        forgetful.update_from_target(1.5)
        base.update_from_target(1.5)

    assert np.array_equal(base.get_belief(), forgetful.get_belief())


def test_forget_likelihood_is_plain_gaussian() -> None:
    """Forgetting changes the sampled context, not the likelihood form."""

    source = ScriptedRandomSource(bernoullis=[1], uniforms=[0.95])
    belief = create_forget_belief(ur_prior=PRIOR, forget_prob=0.9, random_source=source)
    belief.set_true_stimulus(0, 0)
    belief.reset()
    belief.update_from_context(1.0)

    likelihood = belief.get_likelihood()
    assert likelihood[0, 0] == pytest.approx(norm.pdf(1.0, 0.0, 1.0))
    assert likelihood[1, 0] == pytest.approx(norm.pdf(0.0))


def test_forget_rate_matches_probability() -> None:
    """The share of forgetful trials should approach ``forget_prob``."""

    belief = create_forget_belief(ur_prior=PRIOR, forget_prob=0.25, random_source=NumpyRandomSource(seed=8))
    n_trials = 10000
    forgotten = 0
    for _ in range(n_trials):
        belief.set_true_stimulus(0, 0)
        belief.reset()
        belief.update_from_context(1.0)
        forgotten += int(belief.retrieval.forgot)

    assert forgotten / n_trials == pytest.approx(0.25, abs=0.015)


@pytest.mark.parametrize("forget_prob", [-0.1, 1.5])
def test_forget_probability_outside_unit_interval_is_rejected(forget_prob: float) -> None:
    """Forget probabilities must lie in ``[0, 1]``."""

    with pytest.raises(ConfigurationError, match="forget_prob"):
        ForgetRetrieval(forget_prob)
