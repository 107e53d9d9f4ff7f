from __future__ import annotations

from datetime import datetime, timezone
from io import StringIO
from typing import Any, Callable

import pytest
from rich.console import Console

from lib_log_sinks import config as log_config
from lib_log_sinks.domain.attrs import coerce_attrs
from lib_log_sinks.domain.events import LogEvent, Source
from lib_log_sinks.domain.levels import LogLevel

FIXED_TIME = datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def record_console() -> Console:
    """Rich console writing plain text into memory."""

    return Console(file=StringIO(), record=True, width=240, color_system=None, force_terminal=False)


@pytest.fixture
def make_event() -> Callable[..., LogEvent]:
    def factory(
        message: str = "hello",
        *,
        level: int = LogLevel.INFO,
        attrs: Any = None,
        source: Source | None = None,
        timestamp: datetime = FIXED_TIME,
    ) -> LogEvent:
        return LogEvent(timestamp=timestamp, level=level, message=message, attrs=coerce_attrs(attrs), source=source)

    return factory


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HEC_API_TOKEN", "HEC_INGEST_HOSTNAME", "HEC_SCOPE", "USE_DOTENV"):
        monkeypatch.delenv(f"{log_config.ENV_PREFIX}{name}", raising=False)
    log_config._reset_dotenv_state_for_testing()
    yield
    log_config._reset_dotenv_state_for_testing()
