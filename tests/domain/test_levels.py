from __future__ import annotations

import logging

import pytest

from lib_log_sinks.domain.levels import LogLevel, level_name, parse_level


@pytest.mark.parametrize(
    "level, severity, icon, python_level",
    [
        (LogLevel.DEBUG, "debug", "\U0001f41e", logging.DEBUG),
        (LogLevel.INFO, "info", "ℹ", logging.INFO),
        (LogLevel.WARNING, "warning", "⚠", logging.WARNING),
        (LogLevel.ERROR, "error", "✖", logging.ERROR),
        (LogLevel.CRITICAL, "critical", "☠", logging.CRITICAL),
    ],
)
def test_log_level_metadata(level: LogLevel, severity: str, icon: str, python_level: int) -> None:
    assert level.severity == severity
    assert level.icon == icon
    assert level.to_python_level() == python_level


@pytest.mark.parametrize("name", ["warn", "WARN", " Warning "])
def test_from_name_accepts_warn_alias(name: str) -> None:
    assert LogLevel.from_name(name) is LogLevel.WARNING


def test_from_name_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        LogLevel.from_name("verbose")


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, LogLevel.DEBUG),
        (10, LogLevel.DEBUG),
        (19, LogLevel.DEBUG),
        (20, LogLevel.INFO),
        (45, LogLevel.ERROR),
        (99, LogLevel.CRITICAL),
    ],
)
def test_floor_picks_highest_named_level_not_above(value: int, expected: LogLevel) -> None:
    assert LogLevel.floor(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (20, "INFO"),
        (22, "INFO+2"),
        (6, "DEBUG-4"),
        (2, "DEBUG-8"),
        (51, "CRITICAL+1"),
        (LogLevel.WARNING, "WARNING"),
    ],
)
def test_level_name_renders_offsets(value: int, expected: str) -> None:
    assert level_name(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("info", 20),
        ("WARN", 30),
        ("DEBUG-4", 6),
        ("debug - 8", 2),
        ("INFO+2", 22),
        (" 25 ", 25),
        (45, 45),
        (LogLevel.ERROR, 40),
    ],
)
def test_parse_level_accepts_names_offsets_and_numbers(value: object, expected: int) -> None:
    assert parse_level(value) == expected  # type: ignore[arg-type]


@pytest.mark.parametrize("value", ["loud", "INFO+", "", True])
def test_parse_level_rejects_garbage(value: object) -> None:
    with pytest.raises(ValueError):
        parse_level(value)  # type: ignore[arg-type]
