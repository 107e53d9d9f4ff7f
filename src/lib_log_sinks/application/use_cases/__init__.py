"""Use cases orchestrating record dispatch and shutdown."""

from __future__ import annotations

from .process_event import ProcessResult, create_process_log_event
from .shutdown import create_shutdown

__all__ = ["ProcessResult", "create_process_log_event", "create_shutdown"]
