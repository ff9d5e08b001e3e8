"""Serialization helpers for recorder contents."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .datums import Datum, IncrementalMeanVarianceDatum, RawVectorsDatum

SUMMARY_FIELDNAMES = ("context", "target", "variable", "mean", "variance", "n")


def split_datum_key(key: str) -> tuple[int, int, str] | None:
    """Split ``Context{c}_Target{t}_{variable}`` into its parts.

    Returns
    -------
    tuple[int, int, str] | None
        ``(context, target, variable)`` or ``None`` for keys without a
        trial-type prefix.
    """

    parts = key.split("_", 2)
    if len(parts) != 3 or not parts[0].startswith("Context") or not parts[1].startswith("Target"):
        return None
    try:
        context = int(parts[0][len("Context"):])
        target = int(parts[1][len("Target"):])
    except ValueError:
        return None
    return context, target, parts[2]


def summary_records(datums: Mapping[str, Datum]) -> list[dict[str, Any]]:
    """Flatten summary datums into one row per trial type and variable.

    Parameters
    ----------
    datums : Mapping[str, Datum]
        Recorder contents keyed by datum name.

    Returns
    -------
    list[dict[str, Any]]
        Rows with ``context``, ``target``, ``variable``, ``mean``,
        ``variance``, and ``n``, sorted by trial type then variable. Datums
        that are not scalar summaries, or have no trial-type prefix, are
        skipped.
    """

    rows: list[dict[str, Any]] = []
    for key, datum in datums.items():
        if not isinstance(datum, (RawVectorsDatum, IncrementalMeanVarianceDatum)):
            continue
        parts = split_datum_key(key)
        if parts is None:
            continue
        context, target, variable = parts
        rows.append(
            {
                "context": context,
                "target": target,
                "variable": variable,
                "mean": datum.mean,
                "variance": datum.variance,
                "n": datum.n,
            }
        )
    rows.sort(key=lambda row: (row["context"], row["target"], row["variable"]))
    return rows


def write_records_csv(
    rows: list[dict[str, Any]],
    path: str | Path,
    *,
    fieldnames: Iterable[str] | None = None,
) -> Path:
    """Write generic row dictionaries to CSV.

    Parameters
    ----------
    rows : list[dict[str, Any]]
        Row dictionaries to write.
    path : str | pathlib.Path
        Destination CSV path.
    fieldnames : Iterable[str] | None, optional
        Explicit header. Inferred from the rows in first-seen order when
        omitted.

    Returns
    -------
    pathlib.Path
        Output path.

    Raises
    ------
    ValueError
        If ``rows`` is empty and no header is given.
    """

    if fieldnames is None:
        if not rows:
            raise ValueError("rows must not be empty when fieldnames are not given")
        header: list[str] = []
        seen: set[str] = set()
        for row in rows:
            for key in row:
                if key in seen:
                    continue
                seen.add(key)
                header.append(str(key))
    else:
        header = [str(name) for name in fieldnames]

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=header)
        writer.writeheader()
        writer.writerows(rows)

    return output_path


def write_summary_csv(datums: Mapping[str, Datum], path: str | Path) -> Path:
    """Serialize the scalar summaries of a recorder as one CSV."""

    return write_records_csv(summary_records(datums), path, fieldnames=SUMMARY_FIELDNAMES)


__all__ = [
    "SUMMARY_FIELDNAMES",
    "split_datum_key",
    "summary_records",
    "write_records_csv",
    "write_summary_csv",
]
