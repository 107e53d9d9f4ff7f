"""Environment and ``.env`` configuration helpers.

Purpose
-------
Let deployments keep sink settings (notably forwarder credentials) in the
environment or a ``.env`` file, and parse the human-friendly option values
used in sink configuration.

Contents
--------
* :func:`enable_dotenv` - load the nearest ``.env`` without overriding the
  real environment.
* :func:`env_option` - read ``LOG_SINKS_<NAME>`` overrides.
* :func:`parse_bool`, :func:`parse_size`, :func:`parse_duration` - option
  value parsers shared by the sink option dataclasses.

System Role
-----------
Imported by the CLI (``--use-dotenv``) and by the sink builders, which fall back
to :func:`env_option` for values missing from the supplied options.
"""

from __future__ import annotations

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "LOG_SINKS_"
DOTENV_ENV_VAR = f"{ENV_PREFIX}USE_DOTENV"

_dotenv_path: Path | None = None
_dotenv_loaded = False

_TRUE = frozenset({"1", "true", "yes", "on", "y", "t"})
_FALSE = frozenset({"0", "false", "no", "off", "n", "f", ""})

_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
}
_SIZE_RE = re.compile(r"^\s*(?P<number>\d+)\s*(?P<unit>[a-zA-Z]*)\s*$")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART_RE = re.compile(r"(?P<number>\d+(?:\.\d+)?)(?P<unit>ns|us|µs|ms|s|m|h)")


def enable_dotenv(search_from: str | os.PathLike[str] | None = None) -> Path | None:
    """Load the nearest ``.env`` file once; existing variables keep precedence.

    Returns the resolved path of the loaded file, or ``None`` when no file was
    found.
    """

    global _dotenv_path, _dotenv_loaded
    if _dotenv_loaded:
        return _dotenv_path
    if search_from is not None:
        candidate = _search_upwards(Path(search_from))
    else:
        found = find_dotenv(usecwd=True)
        candidate = Path(found).resolve() if found else None
    if candidate is not None:
        load_dotenv(candidate, override=False)
    _dotenv_path = candidate
    _dotenv_loaded = True
    return candidate


def _search_upwards(start: Path) -> Path | None:
    start = start.resolve()
    directory = start if start.is_dir() else start.parent
    for folder in (directory, *directory.parents):
        candidate = folder / ".env"
        if candidate.is_file():
            return candidate
    return None


def _reset_dotenv_state_for_testing() -> None:
    global _dotenv_path, _dotenv_loaded
    _dotenv_path = None
    _dotenv_loaded = False


def env_option(name: str, default: str | None = None) -> str | None:
    """Return ``LOG_SINKS_<NAME>`` from the environment, or ``default``."""

    value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
    if value is None or not value.strip():
        return default
    return value.strip()


def parse_bool(value: Any) -> bool:
    """Interpret booleans the way environment variables usually spell them.

    Examples
    --------
    >>> parse_bool("Yes"), parse_bool("0"), parse_bool(True)
    (True, False, True)
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def parse_size(value: Any) -> int:
    """Parse a byte count such as ``4096``, ``"64KB"``, or ``"1 MiB"``.

    Examples
    --------
    >>> parse_size("64KB"), parse_size(512), parse_size("2m")
    (65536, 512, 2097152)
    """

    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Size must not be negative: {value!r}")
        return value
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    match = _SIZE_RE.match(str(value))
    if match is None:
        raise ValueError(f"Invalid size: {value!r}")
    unit = match.group("unit").lower()
    if unit not in _SIZE_UNITS:
        raise ValueError(f"Unknown size unit in {value!r}")
    return int(match.group("number")) * _SIZE_UNITS[unit]


def parse_duration(value: Any) -> float:
    """Parse seconds from a number, :class:`~datetime.timedelta`, or ``"1m30s"`` style text.

    Examples
    --------
    >>> parse_duration("10s"), parse_duration("1m30s"), parse_duration("250ms"), parse_duration(5)
    (10.0, 90.0, 0.25, 5.0)
    """

    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        pass
    sign = 1.0
    if text[:1] in "+-" and text:
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    position = 0
    total = 0.0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != position:
            break
        total += float(match.group("number")) * _DURATION_UNITS[match.group("unit")]
        position = match.end()
    if not text or position != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return sign * total


__all__ = [
    "DOTENV_ENV_VAR",
    "ENV_PREFIX",
    "enable_dotenv",
    "env_option",
    "parse_bool",
    "parse_duration",
    "parse_size",
]
