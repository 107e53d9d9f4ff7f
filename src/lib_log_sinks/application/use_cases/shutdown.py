"""Shutdown orchestration for a sink graph.

Purpose
-------
Provide a unified shutdown routine that closes every sink once, so buffered
file records and pending forwarder batches are flushed before exit.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from lib_log_sinks.application.ports.sink import SinkPort

logger = logging.getLogger(__name__)


def create_shutdown(*, sink: SinkPort | None) -> Callable[[], None]:
    """Return an idempotent callable closing ``sink``.

    Errors raised by ``close`` propagate from the first call; later calls are
    no-ops.
    """

    lock = threading.Lock()
    done = False

    def shutdown() -> None:
        """Close the sink graph, flushing buffered state."""
        nonlocal done
        with lock:
            if done:
                return
            done = True
        if sink is not None:
            logger.debug("Closing sink graph %r", sink)
            sink.close()

    return shutdown


__all__ = ["create_shutdown"]
