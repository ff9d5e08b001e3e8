"""Random source, non-decision timing, and the experiment runner."""

from .architecture import Architecture, ArchitectureConfig
from .experiment import (
    ExperimentConfig,
    RecordingMode,
    coerce_recording_mode,
    register_task_datums,
    run_experiment,
)
from .random_source import NumpyRandomSource

__all__ = [
    "Architecture",
    "ArchitectureConfig",
    "ExperimentConfig",
    "NumpyRandomSource",
    "RecordingMode",
    "coerce_recording_mode",
    "register_task_datums",
    "run_experiment",
]
