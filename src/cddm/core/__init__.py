"""Core contracts, errors, numerics, and configuration helpers."""

from .config_loading import (
    SUPPORTED_CONFIG_SUFFIXES,
    format_parameter_string,
    load_config_mapping,
    parse_parameter_string,
)
from .config_validation import (
    coerce_float,
    coerce_int,
    coerce_probability,
    coerce_probability_matrix,
    coerce_threshold,
    validate_allowed_keys,
)
from .contracts import BeliefModel, DecisionTask, RandomSource, StatsSink
from .errors import (
    CddmError,
    ConfigurationError,
    DegenerateBeliefError,
    SampleLimitError,
    StimulusRangeError,
)
from .numerics import categorical_index, compensated_sum, round_to_increment

__all__ = [
    "BeliefModel",
    "CddmError",
    "ConfigurationError",
    "DecisionTask",
    "DegenerateBeliefError",
    "RandomSource",
    "SUPPORTED_CONFIG_SUFFIXES",
    "SampleLimitError",
    "StatsSink",
    "StimulusRangeError",
    "categorical_index",
    "coerce_float",
    "coerce_int",
    "coerce_probability",
    "coerce_probability_matrix",
    "coerce_threshold",
    "compensated_sum",
    "format_parameter_string",
    "load_config_mapping",
    "parse_parameter_string",
    "round_to_increment",
    "validate_allowed_keys",
]
