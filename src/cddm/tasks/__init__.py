"""Decision tasks and their configuration."""

from .axcpt import AxcptTask, create_axcpt_task
from .base import Task, TrialOutcome, trial_label
from .config import AxcptConfig, FlankerConfig, TaskConfig, task_config_from_mapping
from .flanker import FlankerTask, create_flanker_task

__all__ = [
    "AxcptConfig",
    "AxcptTask",
    "FlankerConfig",
    "FlankerTask",
    "Task",
    "TaskConfig",
    "TrialOutcome",
    "create_axcpt_task",
    "create_flanker_task",
    "task_config_from_mapping",
    "trial_label",
]
