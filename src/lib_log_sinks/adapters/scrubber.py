"""Regex-based attribute redaction usable as a ``replace_attr`` hook.

Purpose
-------
Mask secrets in attribute values before any sink serializes them.

Contents
--------
* :class:`RegexRedactor` - callable matching the
  :data:`~lib_log_sinks.domain.attrs.ReplaceAttr` signature.

System Role
-----------
Plugged into the ``replace_attr`` option of the console, file, or forwarder
sinks; it sees every non-group attribute together with its group path.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence, Set as AbstractSet
from typing import Any, Dict

from lib_log_sinks.domain.attrs import Attr


class RegexRedactor:
    """Redact attribute values whose key has a pattern and whose value matches it.

    Parameters
    ----------
    patterns:
        Mapping of attribute key → regex string. A key may be dotted
        (``"request.token"``) to match only inside that group path.
    replacement:
        Token replacing matched values (defaults to ``"***"``).

    Examples
    --------
    >>> redactor = RegexRedactor(patterns={"token": "secret"})
    >>> redactor((), Attr("token", "secret123")).value
    '***'
    >>> redactor(("req",), Attr("token", "public")).value
    'public'
    """

    def __init__(self, *, patterns: Mapping[str, str], replacement: str = "***") -> None:
        """Compile the provided ``patterns`` and store the replacement token."""
        self._patterns: Dict[str, re.Pattern[str]] = {key: re.compile(pattern) for key, pattern in patterns.items()}
        self._replacement = replacement

    def __call__(self, groups: tuple[str, ...], attr: Attr) -> Attr:
        pattern = self._patterns.get(".".join((*groups, attr.key))) or self._patterns.get(attr.key)
        if pattern is None:
            return attr
        scrubbed = self._scrub_value(attr.value, pattern)
        if scrubbed is attr.value:
            return attr
        return Attr(attr.key, scrubbed)

    def _scrub_value(self, value: Any, pattern: re.Pattern[str]) -> Any:
        """Recursively scrub ``value``: strings, bytes, mappings, sets, and sequences."""

        if isinstance(value, str):
            return self._replacement if pattern.search(value) else value
        if isinstance(value, bytes):
            text = value.decode("utf-8", errors="ignore")
            return self._replacement if pattern.search(text) else value
        if isinstance(value, Mapping):
            return {k: self._scrub_value(v, pattern) for k, v in value.items()}
        if isinstance(value, AbstractSet):
            return type(value)(self._scrub_value(item, pattern) for item in value)
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            converted = [self._scrub_value(item, pattern) for item in value]
            if isinstance(value, tuple):
                return tuple(converted)
            return type(value)(converted)
        return value


__all__ = ["RegexRedactor"]
