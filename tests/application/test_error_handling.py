from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from lib_log_sinks.application.error_handling import default_error_handler, invoke_error_handler
from lib_log_sinks.domain.errors import HandleRecordError, SinkError


def test_default_handler_reports_record_and_wraps_error(make_event) -> None:
    stream = StringIO()
    original = SinkError("write failed", path="/tmp/x")

    result = default_error_handler(original, make_event(attrs={"k": "v"}), stream=stream)

    assert isinstance(result, HandleRecordError)
    assert result.__cause__ is original
    report = json.loads(stream.getvalue())
    assert report["record"]["msg"] == "hello"
    assert report["record"]["attrs"] == {"k": "v"}
    assert report["error"]["message"] == "write failed"
    assert report["error"]["path"] == "/tmp/x"


def test_default_handler_accepts_missing_record() -> None:
    stream = StringIO()

    default_error_handler(ValueError("nope"), None, stream=stream)

    report = json.loads(stream.getvalue())
    assert report["record"] is None
    assert report["error"] == {"message": "nope", "code": 2, "error": "ValueError"}


def test_default_handler_writes_to_stderr_by_default(capsys: pytest.CaptureFixture[str]) -> None:
    default_error_handler(SinkError("boom"), None)

    assert '"boom"' in capsys.readouterr().err


def test_invoke_without_handler_returns_original() -> None:
    error = SinkError("x")

    assert invoke_error_handler(None, error, None) is error


def test_invoke_allows_suppression_and_transformation() -> None:
    replacement = RuntimeError("mapped")

    assert invoke_error_handler(lambda exc, event: None, SinkError("x"), None) is None
    assert invoke_error_handler(lambda exc, event: replacement, SinkError("x"), None) is replacement


def test_invoke_keeps_original_when_handler_raises(caplog: pytest.LogCaptureFixture) -> None:
    error = SinkError("x")

    def broken(exc: Exception, event: object) -> Exception:
        raise RuntimeError("handler failed")

    with caplog.at_level(logging.ERROR):
        assert invoke_error_handler(broken, error, None) is error

    assert "Error handler raised" in caplog.text
