"""Recording of trial observations and their CSV serialization."""

from .datums import (
    Datum,
    DummyDatum,
    Event,
    EventDatum,
    IncrementalMeanVarianceDatum,
    RawVectorsDatum,
    SummaryDatum,
    Timepoint,
    TraceDatum,
)
from .recorder import Recorder
from .serialization import (
    SUMMARY_FIELDNAMES,
    split_datum_key,
    summary_records,
    write_records_csv,
    write_summary_csv,
)

__all__ = [
    "Datum",
    "DummyDatum",
    "Event",
    "EventDatum",
    "IncrementalMeanVarianceDatum",
    "RawVectorsDatum",
    "Recorder",
    "SUMMARY_FIELDNAMES",
    "SummaryDatum",
    "Timepoint",
    "TraceDatum",
    "split_datum_key",
    "summary_records",
    "write_records_csv",
    "write_summary_csv",
]
