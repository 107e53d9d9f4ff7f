from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from lib_log_sinks.adapters.file import FileOptions, FileSink, default_log_path
from lib_log_sinks.domain.errors import BufferWriteError, OptionsValidationError
from lib_log_sinks.domain.levels import LogLevel


def _lines(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_file_sink_appends_json_lines(tmp_path: Path, make_event) -> None:
    path = tmp_path / "logs" / "app.log"
    sink = FileSink(FileOptions(path=str(path)))

    sink.handle(make_event(attrs={"n": 1}))
    sink.with_group("req").with_attrs({"id": "r-1"}).handle(make_event("second"))
    sink.close()

    first, second = _lines(path)
    assert first == {"time": "2025-09-23T12:00:00+00:00", "level": "INFO", "msg": "hello", "n": 1}
    assert second["req"] == {"id": "r-1"}


def test_file_sink_buffers_until_close(tmp_path: Path, make_event) -> None:
    path = tmp_path / "app.log"
    sink = FileSink(FileOptions(path=str(path), buffer_size=4096))

    sink.handle(make_event())
    assert not path.exists() or path.read_bytes() == b""

    sink.close()

    assert len(_lines(path)) == 1


@pytest.mark.parametrize("buffer_size", [0, 4096])
def test_closing_a_clone_keeps_siblings_writing(tmp_path: Path, make_event, buffer_size: int) -> None:
    path = tmp_path / "app.log"
    sink = FileSink(FileOptions(path=str(path), buffer_size=buffer_size))
    child = sink.with_attrs({"k": 1})

    child.handle(make_event("from child"))
    child.close()
    sink.handle(make_event("from parent"))
    sink.close()

    assert [line["msg"] for line in _lines(path)] == ["from child", "from parent"]
    assert _lines(path)[0]["k"] == 1


def test_file_sink_flush_writes_buffer(tmp_path: Path, make_event) -> None:
    path = tmp_path / "app.log"
    sink = FileSink(FileOptions(path=str(path), buffer_size=4096))

    sink.handle(make_event())
    sink.flush()

    assert len(_lines(path)) == 1
    sink.close()


def test_file_sink_applies_file_mode(tmp_path: Path, make_event) -> None:
    path = tmp_path / "app.log"
    sink = FileSink(FileOptions(path=str(path), file_mode=0o600))

    sink.handle(make_event())
    sink.close()

    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) & 0o077 == 0


def test_file_sink_rejects_missing_parent_when_creation_disabled(tmp_path: Path) -> None:
    options = FileOptions(path=str(tmp_path / "missing" / "app.log"), auto_create_parent=False)

    with pytest.raises(OptionsValidationError, match="does not exist"):
        FileSink(options)


def test_file_sink_rejects_negative_buffer(tmp_path: Path) -> None:
    with pytest.raises(OptionsValidationError):
        FileSink(FileOptions(path=str(tmp_path / "app.log"), buffer_size=-1))


def test_file_sink_reports_write_failures(make_event) -> None:
    class _Broken:
        def write(self, data: bytes) -> int:
            raise OSError("disk full")

        def flush(self) -> None:
            return None

        def close(self) -> None:
            return None

    received: list[Exception] = []

    def handler(exc: Exception, event: object) -> None:
        received.append(exc)
        return None

    sink = FileSink(FileOptions(error_handler=handler), writer=_Broken())

    sink.handle(make_event())

    assert isinstance(received[0], BufferWriteError)


def test_file_options_parse_modes_sizes_and_levels() -> None:
    options = FileOptions.from_mapping(
        {
            "path": "/var/log/app.log",
            "file_mode": "0600",
            "dir_mode": "0o700",
            "buffer_size": "64KB",
            "max_count": 3,
            "level": "DEBUG-4",
            "compress": "true",
        }
    )

    assert options.file_mode == 0o600
    assert options.dir_mode == 0o700
    assert options.buffer_size == 65536
    assert options.max_count == 3
    assert options.level == 6
    assert options.compress is True
    assert options.to_dict()["level"] == "DEBUG-4"


def test_file_options_reject_unknown_keys() -> None:
    with pytest.raises(OptionsValidationError, match="does not exist"):
        FileOptions.from_mapping({"rotate": True})


def test_resolved_path_expands_user_and_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_ROOT", str(tmp_path))

    assert FileOptions(path="$LOG_ROOT/app.log").resolved_path() == (tmp_path / "app.log").resolve()


def test_default_path_uses_program_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["/usr/bin/worker.py"])
    assert default_log_path() == Path(".") / "worker.log"

    monkeypatch.setattr("sys.argv", ["-c"])
    assert default_log_path() == Path(".") / "app.log"


def test_file_sink_level_gate(tmp_path: Path) -> None:
    sink = FileSink(FileOptions(path=str(tmp_path / "app.log"), level=LogLevel.WARNING))

    assert not sink.enabled(LogLevel.INFO)
    assert sink.enabled(LogLevel.ERROR)
    sink.close()
