"""Tests for the non-decision timing model."""

from __future__ import annotations

import pytest

from cddm.core import ConfigurationError
from cddm.runtime import Architecture, ArchitectureConfig, NumpyRandomSource


class FixedGammaSource:
    """Random source stub that returns a fixed gamma value and logs calls."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls: list[tuple[float, float]] = []

    def gamma(self, mean: float, sd: float) -> float:
        self.calls.append((mean, sd))
        return self.value


def test_draws_with_unit_step_are_integers() -> None:
    """A step of one should yield whole-number durations."""

    config = ArchitectureConfig(time_per_step=1.0)
    architecture = Architecture(config, random_source=NumpyRandomSource(seed=11))

    for _ in range(500):
        for draw in (
            architecture.draw_ebl(),
            architecture.draw_motor_planning(),
            architecture.draw_motor_exec(),
        ):
            assert float(draw).is_integer()


def test_draws_are_multiples_of_the_step() -> None:
    """Durations should land on the discretization grid."""

    architecture = Architecture(ArchitectureConfig(time_per_step=10.0), random_source=NumpyRandomSource(seed=2))

    for _ in range(200):
        draw = architecture.draw_motor_exec()
        assert draw / 10.0 == pytest.approx(round(draw / 10.0))


def test_zero_mean_components_always_return_zero() -> None:
    """A zero-mean component should never be sampled."""

    config = ArchitectureConfig(ebl_mean=0.0, ebl_sd=0.0, motor_plan_mean=0.0, motor_exec_mean=0.0)
    source = FixedGammaSource(123.0)
    architecture = Architecture(config, random_source=source)

    for _ in range(20):
        assert architecture.draw_ebl() == 0.0
        assert architecture.draw_motor_planning() == 0.0
        assert architecture.draw_motor_exec() == 0.0
    assert source.calls == []


def test_each_component_uses_its_own_mean_and_rounds_half_up() -> None:
    """Components should pass their own mean and sd to the gamma draw."""

    config = ArchitectureConfig(
        time_per_step=10.0,
        ebl_mean=50.0,
        ebl_sd=20.0,
        motor_plan_mean=100.0,
        motor_exec_mean=200.0,
        motor_sd=30.0,
    )
    source = FixedGammaSource(44.9)
    architecture = Architecture(config, random_source=source)

    assert architecture.draw_ebl() == 40.0
    source.value = 45.0
    assert architecture.draw_motor_planning() == 50.0
    assert architecture.draw_motor_exec() == 50.0
    assert source.calls == [(50.0, 20.0), (100.0, 30.0), (200.0, 30.0)]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"time_per_step": 0.0}, "time_per_step must be > 0"),
        ({"ebl_mean": -1.0}, "ebl_mean must be >= 0"),
        ({"motor_sd": 0.0}, "motor_plan"),
    ],
)
def test_invalid_architecture_config_is_rejected(kwargs, message) -> None:
    """Bad timing parameters should fail at construction."""

    with pytest.raises(ConfigurationError, match=message):
        ArchitectureConfig(**kwargs)
