"""Static package metadata surfaced by the CLI ``info`` command."""

from __future__ import annotations

from typing import Callable

name = "lib_log_sinks"
title = "Composable, level-gated log sinks with batching HTTP event-collector forwarding"
version = "0.1.0"
homepage = "https://pypi.org/project/lib_log_sinks/"
author = "lib_log_sinks maintainers"
shell_command = "lib_log_sinks"


def print_info(writer: Callable[[str], None] | None = None) -> None:
    """Write the metadata banner through ``writer`` (``print`` without newline by default)."""

    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("homepage", homepage),
        ("author", author),
        ("shell_command", shell_command),
    ]
    width = max(len(label) for label, _ in fields)
    lines = [f"Info for {name}:\n", "\n"]
    lines.extend(f"    {label.ljust(width)} = {value}\n" for label, value in fields)
    emit = writer or (lambda text: print(text, end=""))
    for line in lines:
        emit(line)


__all__ = ["author", "homepage", "name", "print_info", "shell_command", "title", "version"]
