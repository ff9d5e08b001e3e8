"""Recorder that collects named observations emitted by tasks."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .datums import Datum
from .serialization import write_records_csv

logger = logging.getLogger(__name__)


class Recorder:
    """Append-only store of named datums.

    Tasks only register and update datums; nothing in a trial reads recorder
    state back. Subclasses may override :meth:`recorded_enough` to stop an
    experiment once a precision target is met.
    """

    def __init__(self) -> None:
        self._contents: dict[str, Datum] = {}

    def register_datum(self, key: str, datum: Datum) -> None:
        """Register a datum under ``key``.

        Raises
        ------
        KeyError
            If ``key`` is already registered.
        """

        if key in self._contents:
            raise KeyError(f"datum {key!r} is already registered")
        self._contents[key] = datum

    def update_datum(self, key: str, value: Any) -> None:
        """Record one observation in the datum registered under ``key``.

        Raises
        ------
        KeyError
            If ``key`` was never registered.
        """

        try:
            datum = self._contents[key]
        except KeyError:
            raise KeyError(f"datum {key!r} is not registered") from None
        datum.record(value)

    def get_datum(self, key: str) -> Datum:
        """Return the datum registered under ``key``."""

        try:
            return self._contents[key]
        except KeyError:
            raise KeyError(f"datum {key!r} is not registered") from None

    def new_trial(self) -> None:
        """Tell every datum a new trial started."""

        for datum in self._contents.values():
            datum.new_trial()

    def known_keys(self) -> tuple[str, ...]:
        """Return registered datum names in sorted order."""

        return tuple(sorted(self._contents))

    def datums(self) -> dict[str, Datum]:
        """Return a shallow copy of the registered datums."""

        return dict(self._contents)

    def recorded_enough(self) -> bool:
        """Return whether the experiment may stop early. Always ``False`` here."""

        return False

    def reset(self) -> None:
        """Forget every registered datum."""

        self._contents.clear()

    def write_to_files(self, directory: str | Path) -> tuple[Path, ...]:
        """Write one CSV per datum into ``directory``.

        Datums that discard their observations are skipped.

        Returns
        -------
        tuple[pathlib.Path, ...]
            Written file paths.
        """

        base = Path(directory)
        base.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for key in self.known_keys():
            datum = self._contents[key]
            if not datum.writes_output:
                continue
            written.append(write_records_csv(datum.records(), base / f"{key}.csv", fieldnames=datum.columns()))
        logger.info("wrote %d datum files to %s", len(written), base)
        return tuple(written)


__all__ = ["Recorder"]
