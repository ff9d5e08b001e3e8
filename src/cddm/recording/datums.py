"""Named observation series held by :class:`~cddm.recording.recorder.Recorder`.

Every datum accepts observations through :meth:`record` and reports them as
flat row dictionaries through :meth:`records`, so the recorder can serialize
any datum without knowing its type.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from cddm.core.numerics import compensated_sum


@dataclass(frozen=True, slots=True)
class Timepoint:
    """Vector-valued observation stamped with trial time.

    Parameters
    ----------
    time : float
        Trial time (ms) of the observation.
    value : numpy.ndarray
        Observed vector, for example a flattened posterior.
    """

    time: float
    value: np.ndarray


@dataclass(frozen=True, slots=True)
class Event:
    """Interval ``[start, end]`` in trial time.

    Raises
    ------
    ValueError
        If ``start`` is later than ``end``.
    """

    start: float
    end: float

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"event start {self.start!r} is later than its end {self.end!r}")


class Datum:
    """Base class for recorder series."""

    fieldnames: tuple[str, ...] = ()
    writes_output: bool = True

    def record(self, value: Any) -> None:
        raise NotImplementedError

    def new_trial(self) -> None:
        """Mark the start of a new trial. Ignored by trial-agnostic datums."""

    def records(self) -> list[dict[str, Any]]:
        """Return the datum as flat CSV rows."""

        return []

    def columns(self) -> tuple[str, ...]:
        """Return the CSV header for :meth:`records`."""

        return self.fieldnames


class DummyDatum(Datum):
    """Datum that discards every observation."""

    writes_output = False

    def record(self, value: Any) -> None:
        del value


class RawVectorsDatum(Datum):
    """Keeps every scalar observation together with its trial index."""

    fieldnames = ("trace_id", "value")

    def __init__(self) -> None:
        self._values: list[float] = []
        self._trace_ids: list[int] = []
        self._latest_trace_id = -1

    def record(self, value: Any) -> None:
        self._trace_ids.append(self._latest_trace_id)
        self._values.append(float(value))

    def new_trial(self) -> None:
        self._latest_trace_id += 1

    @property
    def n(self) -> int:
        return len(self._values)

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(self._values)

    @property
    def mean(self) -> float:
        if not self._values:
            return math.nan
        return compensated_sum(self._values) / len(self._values)

    @property
    def variance(self) -> float:
        """Sample variance with ``n - 1`` denominator (``nan`` below two observations)."""

        if len(self._values) < 2:
            return math.nan
        mean = self.mean
        return compensated_sum((value - mean) ** 2 for value in self._values) / (len(self._values) - 1)

    def records(self) -> list[dict[str, Any]]:
        return [
            {"trace_id": trace_id, "value": value}
            for trace_id, value in zip(self._trace_ids, self._values)
        ]


class IncrementalMeanVarianceDatum(Datum):
    """Running mean and variance by Welford's online update.

    Notes
    -----
    Only ``n``, the mean, and the sum of squared deviations are stored, so
    memory does not grow with the number of trials.
    """

    fieldnames = ("mean", "variance", "n")

    def __init__(self) -> None:
        self._mean = 0.0
        self._ssq = 0.0
        self._n = 0

    def record(self, value: Any) -> None:
        value = float(value)
        old_mean = self._mean
        self._n += 1
        self._mean += (value - old_mean) / self._n
        self._ssq += (value - old_mean) * (value - self._mean)

    @property
    def n(self) -> int:
        return self._n

    @property
    def mean(self) -> float:
        return self._mean if self._n else math.nan

    @property
    def variance(self) -> float:
        if self._n < 2:
            return math.nan
        return self._ssq / (self._n - 1)

    def records(self) -> list[dict[str, Any]]:
        return [{"mean": self.mean, "variance": self.variance, "n": self._n}]


class EventDatum(Datum):
    """Keeps ``[start, end]`` intervals together with their trial index."""

    fieldnames = ("trace_id", "start", "end")

    def __init__(self) -> None:
        self._events: list[tuple[int, float, float]] = []
        self._latest_trace_id = -1

    def record(self, value: Event) -> None:
        self._events.append((self._latest_trace_id, float(value.start), float(value.end)))

    def new_trial(self) -> None:
        self._latest_trace_id += 1

    @property
    def events(self) -> tuple[tuple[int, float, float], ...]:
        """Recorded ``(trace_id, start, end)`` triples."""

        return tuple(self._events)

    def records(self) -> list[dict[str, Any]]:
        return [
            {"trace_id": trace_id, "start": start, "end": end}
            for trace_id, start, end in self._events
        ]


class TraceDatum(Datum):
    """Keeps time-stamped vectors (posterior snapshots) per trial."""

    def __init__(self) -> None:
        self._times: list[float] = []
        self._values: list[np.ndarray] = []
        self._trace_ids: list[int] = []
        self._latest_trace_id = -1

    def record(self, value: Timepoint) -> None:
        self._trace_ids.append(self._latest_trace_id)
        self._times.append(float(value.time))
        self._values.append(np.asarray(value.value, dtype=float).ravel().copy())

    def new_trial(self) -> None:
        self._latest_trace_id += 1

    @property
    def n(self) -> int:
        return len(self._times)

    def columns(self) -> tuple[str, ...]:
        width = len(self._values[-1]) if self._values else 0
        return ("trace_id", "time", *(f"value_{index}" for index in range(width)))

    def traces(self) -> np.ndarray:
        """Return rows of ``[trace_id, time, value_0, ...]``."""

        if not self._times:
            return np.empty((0, 2))
        return np.column_stack(
            (
                np.asarray(self._trace_ids, dtype=float),
                np.asarray(self._times, dtype=float),
                np.vstack(self._values),
            )
        )

    def records(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for trace_id, time, value in zip(self._trace_ids, self._times, self._values):
            row: dict[str, Any] = {"trace_id": trace_id, "time": time}
            for index, entry in enumerate(value):
                row[f"value_{index}"] = float(entry)
            rows.append(row)
        return rows


SummaryDatum = RawVectorsDatum | IncrementalMeanVarianceDatum


__all__ = [
    "Datum",
    "DummyDatum",
    "Event",
    "EventDatum",
    "IncrementalMeanVarianceDatum",
    "RawVectorsDatum",
    "SummaryDatum",
    "Timepoint",
    "TraceDatum",
]
