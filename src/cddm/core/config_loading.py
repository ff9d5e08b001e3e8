"""Load simulator parameters from files and inline parameter strings.

Two surfaces are supported:

* JSON/YAML files whose root is a mapping, for reproducible runs.
* ``key=value,key=value`` strings, one parameter set per line, for batch
  sweeps piped through standard input. Matrices use ``"a b; c d"`` notation
  with rows separated by semicolons.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, TextIO

import yaml

_PARSERS: dict[str, Callable[[TextIO], Any]] = {
    ".json": json.load,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}
SUPPORTED_CONFIG_SUFFIXES: tuple[str, ...] = tuple(_PARSERS)


def load_config_mapping(path: str | Path) -> dict[str, Any]:
    """Load one JSON/YAML config file whose root is an object mapping.

    Parameters
    ----------
    path : str | pathlib.Path
        Config file path. Supported suffixes are `.json`, `.yaml`, and `.yml`.

    Returns
    -------
    dict[str, Any]
        Parsed config mapping.

    Raises
    ------
    ValueError
        If suffix is unsupported or config root is not an object mapping.
    """

    config_path = Path(path)
    parser = _PARSERS.get(config_path.suffix.lower())
    if parser is None:
        raise ValueError(
            f"unsupported config file extension {config_path.suffix.lower()!r}; "
            f"expected one of {', '.join(SUPPORTED_CONFIG_SUFFIXES)}"
        )
    with config_path.open("r", encoding="utf-8") as handle:
        raw = parser(handle)
    if not isinstance(raw, dict):
        raise ValueError(f"config root of {config_path.name} must be a JSON/YAML object, got {type(raw).__name__}")
    return raw


def parse_parameter_string(text: str) -> dict[str, Any]:
    """Parse a ``key=value,key=value`` parameter string.

    Parameters
    ----------
    text : str
        Parameter assignments separated by commas or newlines. Values that
        contain a semicolon or whitespace-separated numbers are parsed as
        matrices; other values are parsed as int, float, or left as strings.

    Returns
    -------
    dict[str, Any]
        Parsed parameters. Matrices are returned as nested lists.

    Raises
    ------
    ValueError
        If an assignment has no ``=`` or an empty key.

    Examples
    --------
    >>> parse_parameter_string("decision_thresh=0.9,ur_prior=0.5 0.2; 0.2 0.1")
    {'decision_thresh': 0.9, 'ur_prior': [[0.5, 0.2], [0.2, 0.1]]}
    """

    parsed: dict[str, Any] = {}
    for chunk in text.replace("\n", ",").split(","):
        assignment = chunk.strip()
        if not assignment or assignment.startswith("#"):
            continue
        if "=" not in assignment:
            raise ValueError(f"parameter assignment {assignment!r} must have the form key=value")
        key, _, value = assignment.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"parameter assignment {assignment!r} has an empty key")
        parsed[key] = _parse_value(value.strip())
    return parsed


def format_parameter_string(parameters: dict[str, Any]) -> str:
    """Render parameters back into ``key=value`` form.

    Parameters
    ----------
    parameters : dict[str, Any]
        Parameter mapping. Nested sequences are rendered in matrix notation.

    Returns
    -------
    str
        Comma-separated assignments, sorted by key.
    """

    parts = []
    for key in sorted(parameters):
        value = parameters[key]
        if isinstance(value, (list, tuple)) and value and isinstance(value[0], (list, tuple)):
            rendered = "; ".join(" ".join(_format_number(item) for item in row) for row in value)
        elif isinstance(value, (list, tuple)):
            rendered = " ".join(_format_number(item) for item in value)
        else:
            rendered = _format_number(value)
        parts.append(f"{key}={rendered}")
    return ",".join(parts)


def _parse_value(text: str) -> Any:
    """Parse one scalar or matrix value."""

    if ";" in text or len(text.split()) > 1:
        rows = [row.split() for row in text.split(";") if row.strip()]
        return [[_parse_scalar(item) for item in row] for row in rows]
    return _parse_scalar(text)


def _parse_scalar(text: str) -> Any:
    """Parse an int, then a float, falling back to the raw string."""

    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def _format_number(value: Any) -> str:
    """Format one scalar without trailing float noise."""

    if isinstance(value, float):
        return repr(value)
    return str(value)


__all__ = [
    "SUPPORTED_CONFIG_SUFFIXES",
    "format_parameter_string",
    "load_config_mapping",
    "parse_parameter_string",
]
