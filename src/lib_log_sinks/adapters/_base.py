"""Shared plumbing for level-gated leaf sinks.

Purpose
-------
Keep gate checks, clone-on-extend, option parsing, and error-handler routing in
one place so each concrete sink only implements formatting and output.

Contents
--------
* :class:`SinkOptions` - mixin for option dataclasses (mapping parsing and
  introspection).
* :class:`GatedSink` - base class implementing the non-output half of
  :class:`~lib_log_sinks.application.ports.sink.SinkPort`.
* Common option converters.
"""

from __future__ import annotations

import copy
import dataclasses
import sys
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, ClassVar, TypeVar

from lib_log_sinks.application.error_handling import invoke_error_handler
from lib_log_sinks.application.ports.sink import ErrorHandler
from lib_log_sinks.config import parse_bool, parse_size
from lib_log_sinks.domain.attrs import Attr, AttrScope
from lib_log_sinks.domain.errors import OptionsValidationError
from lib_log_sinks.domain.events import LogEvent
from lib_log_sinks.domain.gate import LevelGate
from lib_log_sinks.domain.levels import level_name, parse_level

OptionsT = TypeVar("OptionsT", bound="SinkOptions")
SinkT = TypeVar("SinkT", bound="GatedSink")

#: Converters shared by every option dataclass carrying a level window.
GATE_CONVERTERS: Mapping[str, Callable[[Any], Any]] = {
    "level": parse_level,
    "max_level": parse_level,
    "include_caller": parse_bool,
    "buffer_size": parse_size,
}

_LEVEL_FIELDS = frozenset({"level", "max_level"})
_HOOK_FIELDS = frozenset({"replace_attr", "error_handler", "level_translator"})


def program_name() -> str:
    """Return the running program's name without extension, or an empty string."""
    argv0 = sys.argv[0] if sys.argv else ""
    stem = Path(argv0).stem if argv0 else ""
    return "" if stem in ("", "-c", "-m") else stem


def _normalise_key(key: str) -> str:
    return str(key).strip().lower().replace("-", "_")


class SinkOptions:
    """Mixin turning raw JSON-like mappings into typed option dataclasses."""

    sink_type: ClassVar[str] = ""
    converters: ClassVar[Mapping[str, Callable[[Any], Any]]] = GATE_CONVERTERS

    @classmethod
    def from_mapping(cls: type[OptionsT], raw: Mapping[str, Any] | None) -> OptionsT:
        """Build the options from ``raw``; unknown keys or bad values raise.

        Raises
        ------
        OptionsValidationError
            When ``raw`` names an unknown option or a value cannot be converted.
        """

        known = {item.name for item in dataclasses.fields(cls)}  # type: ignore[arg-type]
        values: dict[str, Any] = {}
        for key, value in (raw or {}).items():
            name = _normalise_key(key)
            if name not in known:
                raise OptionsValidationError(
                    f"option {key!r} does not exist for sink type {cls.sink_type!r}",
                    sink_type=cls.sink_type,
                    option=str(key),
                )
            convert = cls.converters.get(name)
            try:
                values[name] = convert(value) if convert is not None and value is not None else value
            except (TypeError, ValueError) as exc:
                raise OptionsValidationError(
                    f"invalid value for option {key!r}",
                    sink_type=cls.sink_type,
                    option=str(key),
                ) from exc
        return cls(**values)

    def validate(self) -> None:
        """Raise :class:`OptionsValidationError` when required values are missing."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-compatible options; hooks and other callables are left out."""

        data: dict[str, Any] = {}
        for item in dataclasses.fields(self):  # type: ignore[arg-type]
            value = getattr(self, item.name)
            if item.name in _HOOK_FIELDS or callable(value):
                continue
            if item.name in _LEVEL_FIELDS and value is not None:
                value = level_name(value)
            data[item.name] = value
        return data


class GatedSink:
    """Base class for leaf sinks: shared gate, private scope, error routing."""

    type_name: ClassVar[str] = ""

    def __init__(self, options: SinkOptions, *, gate: LevelGate, error_handler: ErrorHandler | None) -> None:
        self._options = options
        self._gate = gate
        self._scope = AttrScope()
        self._error_handler = error_handler

    @property
    def type(self) -> str:
        return self.type_name

    @property
    def options(self) -> SinkOptions:
        return self._options

    @property
    def level_gate(self) -> LevelGate:
        return self._gate

    def enabled(self, level: int) -> bool:
        return self._gate.enabled(level)

    def with_attrs(self: SinkT, attrs: Iterable[Attr] | Mapping[str, Any]) -> SinkT:
        return self._with_scope(self._scope.with_attrs(attrs))

    def with_group(self: SinkT, name: str) -> SinkT:
        return self._with_scope(self._scope.with_group(name))

    def child_sinks(self) -> list[Any]:
        return []

    def _with_scope(self: SinkT, scope: AttrScope) -> SinkT:
        if scope is self._scope:
            return self
        clone = copy.copy(self)
        clone._scope = scope
        return clone

    def _report(self, exc: Exception, event: LogEvent | None) -> None:
        """Route ``exc`` through the error handler and raise whatever it returns."""
        outcome = invoke_error_handler(self._error_handler, exc, event)
        if outcome is not None:
            raise outcome

    def __repr__(self) -> str:
        return f"{type(self).__name__}(gate={self._gate!r})"


__all__ = ["GATE_CONVERTERS", "GatedSink", "SinkOptions", "program_name"]
