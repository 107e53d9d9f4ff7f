"""Runtime-mutable severity window shared by a sink and all of its clones."""

from __future__ import annotations

from .levels import LogLevel, parse_level


class LevelGate:
    """Minimum and optional maximum severity consulted by ``enabled``.

    The gate is shared by reference: clones produced through ``with_attrs`` /
    ``with_group`` keep the same instance, so assigning :attr:`minimum` or
    :attr:`maximum` reconfigures every clone at once.

    Examples
    --------
    >>> gate = LevelGate(LogLevel.INFO, LogLevel.ERROR)
    >>> gate.enabled(LogLevel.DEBUG), gate.enabled(LogLevel.WARNING), gate.enabled(LogLevel.CRITICAL)
    (False, True, False)
    >>> gate.maximum = None
    >>> gate.enabled(LogLevel.CRITICAL)
    True
    """

    __slots__ = ("_minimum", "_maximum")

    def __init__(self, minimum: int | str = LogLevel.INFO, maximum: int | str | None = None) -> None:
        self._minimum = parse_level(minimum)
        self._maximum = None if maximum is None else parse_level(maximum)

    @property
    def minimum(self) -> int:
        return self._minimum

    @minimum.setter
    def minimum(self, value: int | str) -> None:
        self._minimum = parse_level(value)

    @property
    def maximum(self) -> int | None:
        return self._maximum

    @maximum.setter
    def maximum(self, value: int | str | None) -> None:
        self._maximum = None if value is None else parse_level(value)

    def enabled(self, level: int) -> bool:
        if level < self._minimum:
            return False
        maximum = self._maximum
        return maximum is None or level <= maximum

    def __repr__(self) -> str:
        return f"LevelGate(minimum={self._minimum!r}, maximum={self._maximum!r})"


__all__ = ["LevelGate"]
