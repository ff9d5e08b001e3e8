"""Belief engine, evidence likelihoods, and context-retrieval strategies."""

from .engine import Belief, create_belief, create_decay_belief, create_forget_belief
from .likelihood import context_likelihood, gaussian_density, target_likelihood
from .retrieval import (
    CORRECT_RETRIEVAL,
    ContextRetrieval,
    DecayRetrieval,
    ExactRetrieval,
    ForgetRetrieval,
    PriorType,
    Retrieval,
    coerce_prior_type,
    draw_substitute_context,
)

__all__ = [
    "Belief",
    "CORRECT_RETRIEVAL",
    "ContextRetrieval",
    "DecayRetrieval",
    "ExactRetrieval",
    "ForgetRetrieval",
    "PriorType",
    "Retrieval",
    "coerce_prior_type",
    "context_likelihood",
    "create_belief",
    "create_decay_belief",
    "create_forget_belief",
    "draw_substitute_context",
    "gaussian_density",
    "target_likelihood",
]
