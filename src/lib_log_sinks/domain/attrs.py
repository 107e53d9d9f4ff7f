"""Structured attributes and the per-sink attribute scope.

Purpose
-------
Model key/value attributes (including nested groups) and the immutable prefix
of attributes and open groups a sink accumulates through ``with_attrs`` /
``with_group``.

Contents
--------
* :class:`Attr` / :class:`AttrGroup` - attribute values, groups nest.
* :func:`group` and :func:`attrs_from_mapping` - construction helpers.
* :func:`resolve_attrs` - turn attributes into nested dictionaries.
* :class:`AttrScope` - clone-on-extend prefix applied when a sink formats.

System Role
-----------
Every formatter resolves the record's attributes through the owning sink's
:class:`AttrScope`, so extending a sink never touches the scope other call sites
hold.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(slots=True, frozen=True)
class AttrGroup:
    """Ordered collection of attributes stored as the value of a group attribute."""

    attrs: tuple["Attr", ...] = ()


@dataclass(slots=True, frozen=True)
class Attr:
    """Single key/value pair; a value of :class:`AttrGroup` makes it a group."""

    key: str
    value: Any

    @property
    def is_group(self) -> bool:
        return isinstance(self.value, AttrGroup)


ReplaceAttr = Callable[[tuple[str, ...], Attr], Attr | None]
"""Rewrite hook receiving the open group path and one attribute; ``None`` drops it."""


def group(key: str, *attrs: Attr) -> Attr:
    """Return a group attribute named ``key`` holding ``attrs``."""

    return Attr(key, AttrGroup(tuple(attrs)))


def attrs_from_mapping(mapping: Mapping[str, Any] | None) -> tuple[Attr, ...]:
    """Convert a plain mapping into attributes; nested mappings become groups.

    Examples
    --------
    >>> attrs_from_mapping({"user": {"id": 7}, "ok": True})
    (Attr(key='user', value=AttrGroup(attrs=(Attr(key='id', value=7),))), Attr(key='ok', value=True))
    """

    if not mapping:
        return ()
    result: list[Attr] = []
    for key, value in mapping.items():
        if isinstance(value, Attr):
            result.append(value)
        elif isinstance(value, Mapping):
            result.append(group(str(key), *attrs_from_mapping(value)))
        else:
            result.append(Attr(str(key), value))
    return tuple(result)


def coerce_attrs(attrs: Iterable[Attr] | Mapping[str, Any] | None) -> tuple[Attr, ...]:
    if attrs is None:
        return ()
    if isinstance(attrs, Mapping):
        return attrs_from_mapping(attrs)
    return tuple(attrs)


def resolve_attrs(
    attrs: Iterable[Attr],
    groups: tuple[str, ...] = (),
    replace_attr: ReplaceAttr | None = None,
) -> dict[str, Any]:
    """Resolve ``attrs`` into a nested dictionary.

    Empty groups are omitted, groups with an empty key are inlined into their
    parent, and ``replace_attr`` is consulted for every non-group attribute.
    """

    resolved: dict[str, Any] = {}
    for attr in attrs:
        if attr.is_group:
            if not attr.key:
                resolved.update(resolve_attrs(attr.value.attrs, groups, replace_attr))
                continue
            nested = resolve_attrs(attr.value.attrs, groups + (attr.key,), replace_attr)
            if nested:
                _merge(resolved, attr.key, nested)
            continue
        if replace_attr is not None:
            replaced = replace_attr(groups, attr)
            if replaced is None:
                continue
            attr = replaced
            if attr.is_group:
                nested = resolve_attrs(attr.value.attrs, groups + (attr.key,))
                if nested:
                    _merge(resolved, attr.key, nested)
                continue
        if not attr.key:
            continue
        resolved[attr.key] = attr.value
    return resolved


def _merge(target: dict[str, Any], key: str, nested: dict[str, Any]) -> None:
    existing = target.get(key)
    if isinstance(existing, dict):
        existing.update(nested)
    else:
        target[key] = nested


def _descend(root: dict[str, Any], path: tuple[str, ...]) -> dict[str, Any]:
    node = root
    for name in path:
        child = node.get(name)
        if not isinstance(child, dict):
            child = {}
            node[name] = child
        node = child
    return node


@dataclass(slots=True, frozen=True)
class AttrScope:
    """Immutable attribute/group prefix owned by one sink value.

    ``frames`` keeps each batch of attributes together with the group path that
    was open when it was added; ``groups`` is the path open for record
    attributes.

    Examples
    --------
    >>> scope = AttrScope().with_attrs([Attr("app", "svc")]).with_group("req")
    >>> scope.apply([Attr("id", 1)])
    {'app': 'svc', 'req': {'id': 1}}
    >>> scope.apply([])
    {'app': 'svc'}
    """

    frames: tuple[tuple[tuple[str, ...], tuple[Attr, ...]], ...] = ()
    groups: tuple[str, ...] = ()

    def with_attrs(self, attrs: Iterable[Attr] | Mapping[str, Any]) -> "AttrScope":
        collected = coerce_attrs(attrs)
        if not collected:
            return self
        return replace(self, frames=self.frames + ((self.groups, collected),))

    def with_group(self, name: str) -> "AttrScope":
        if not name:
            return self
        return replace(self, groups=self.groups + (name,))

    def apply(
        self,
        record_attrs: Iterable[Attr],
        *,
        replace_attr: ReplaceAttr | None = None,
    ) -> dict[str, Any]:
        """Return scope attributes merged with ``record_attrs`` at the open group."""

        root: dict[str, Any] = {}
        for path, attrs in self.frames:
            resolved = resolve_attrs(attrs, path, replace_attr)
            if resolved:
                _descend(root, path).update(resolved)
        resolved = resolve_attrs(record_attrs, self.groups, replace_attr)
        if resolved:
            _descend(root, self.groups).update(resolved)
        return root


__all__ = [
    "Attr",
    "AttrGroup",
    "AttrScope",
    "ReplaceAttr",
    "attrs_from_mapping",
    "coerce_attrs",
    "group",
    "resolve_attrs",
]
