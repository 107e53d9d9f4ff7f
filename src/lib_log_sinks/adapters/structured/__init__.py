"""Sinks forwarding structured records to remote collectors."""

from __future__ import annotations

from .hec import EventCollectorOptions, EventCollectorSink, translate_level

__all__ = ["EventCollectorOptions", "EventCollectorSink", "translate_level"]
