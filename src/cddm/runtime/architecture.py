"""Non-decision-time model of the simulated agent.

The architecture has three gamma-distributed components: eye-brain lag
(perceptual delay before evidence reaches the decision process), motor
planning, and motor execution. Every draw is rounded to the simulation's
discretization step so durations line up with belief-update boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass

from cddm.core.contracts import RandomSource
from cddm.core.errors import ConfigurationError
from cddm.core.numerics import round_to_increment


@dataclass(frozen=True, slots=True)
class ArchitectureConfig:
    """Means and standard deviations of non-decision durations.

    Parameters
    ----------
    time_per_step : float
        Duration (ms) of one simulation step. Must be positive.
    ebl_mean : float
        Mean eye-brain lag.
    ebl_sd : float
        Standard deviation of the eye-brain lag.
    motor_plan_mean : float
        Mean motor planning time.
    motor_exec_mean : float
        Mean motor execution time.
    motor_sd : float
        Standard deviation shared by motor planning and execution.

    Raises
    ------
    ConfigurationError
        If the step is not positive, a mean is negative, or a standard
        deviation is not positive for a component with positive mean.
    """

    time_per_step: float = 10.0
    ebl_mean: float = 50.0
    ebl_sd: float = 20.0
    motor_plan_mean: float = 150.0
    motor_exec_mean: float = 150.0
    motor_sd: float = 50.0

    def __post_init__(self) -> None:
        if self.time_per_step <= 0.0:
            raise ConfigurationError("time_per_step must be > 0")
        for name, mean, sd in (
            ("ebl", self.ebl_mean, self.ebl_sd),
            ("motor_plan", self.motor_plan_mean, self.motor_sd),
            ("motor_exec", self.motor_exec_mean, self.motor_sd),
        ):
            if mean < 0.0:
                raise ConfigurationError(f"{name}_mean must be >= 0")
            if mean > 0.0 and sd <= 0.0:
                raise ConfigurationError(f"standard deviation for {name} must be > 0 when its mean is > 0")


class Architecture:
    """Stateless sampler of discretized non-decision durations.

    Parameters
    ----------
    config : ArchitectureConfig
        Duration parameters.
    random_source : RandomSource
        Source of gamma variates.
    """

    def __init__(self, config: ArchitectureConfig, *, random_source: RandomSource) -> None:
        self.config = config
        self._random = random_source

    def draw_ebl(self) -> float:
        """Draw one eye-brain lag, rounded to the step."""

        return self._draw(self.config.ebl_mean, self.config.ebl_sd)

    def draw_motor_planning(self) -> float:
        """Draw one motor planning duration, rounded to the step."""

        return self._draw(self.config.motor_plan_mean, self.config.motor_sd)

    def draw_motor_exec(self) -> float:
        """Draw one motor execution duration, rounded to the step."""

        return self._draw(self.config.motor_exec_mean, self.config.motor_sd)

    def _draw(self, mean: float, sd: float) -> float:
        if mean == 0.0:
            return 0.0
        return round_to_increment(self._random.gamma(mean, sd), self.config.time_per_step)


__all__ = ["Architecture", "ArchitectureConfig"]
