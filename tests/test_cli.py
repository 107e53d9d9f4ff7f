"""CLI behaviour coverage for the Click command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from lib_log_sinks import __init__conf__, summary_info
from lib_log_sinks import cli as cli_mod
from lib_log_sinks.__main__ import main


def run_cli(args: list[str] | None = None) -> tuple[int, str, BaseException | None]:
    """Invoke the command group with ``CliRunner`` and capture output."""

    runner = CliRunner()
    result = runner.invoke(cli_mod.cli, args or [], prog_name=__init__conf__.shell_command)
    return result.exit_code, result.output, result.exception


def test_cli_without_subcommand_prints_summary() -> None:
    exit_code, stdout, _ = run_cli()

    assert exit_code == 0
    assert stdout == summary_info()


def test_cli_info_command_matches_summary() -> None:
    exit_code, stdout, _ = run_cli(["info"])

    assert exit_code == 0
    assert stdout.startswith("Info for lib_log_sinks:")
    assert __init__conf__.version in stdout


def test_cli_version_option() -> None:
    exit_code, stdout, _ = run_cli(["--version"])

    assert exit_code == 0
    assert stdout.strip() == __init__conf__.version


def test_cli_lists_registered_types() -> None:
    exit_code, stdout, _ = run_cli(["types"])

    assert exit_code == 0
    assert stdout.split() == ["console", "discard", "fanout", "file", "sentinelone:hec"]


def test_cli_severity_table() -> None:
    exit_code, stdout, _ = run_cli(["severity", "INFO", "DEBUG-4", "45"])

    assert exit_code == 0
    assert "trace" in stdout
    assert "DEBUG-4" in stdout
    assert "ERROR+5" in stdout
    assert "critical" in stdout


def test_cli_severity_rejects_unknown_level() -> None:
    exit_code, stdout, _ = run_cli(["severity", "LOUD"])

    assert exit_code == 2
    assert "Unknown log level" in stdout


def test_cli_emit_writes_json_to_file(tmp_path: Path) -> None:
    path = tmp_path / "cli.log"
    options = json.dumps({"path": str(path)})

    exit_code, _, exception = run_cli(["emit", "--type", "file", "--options", options, "--level", "WARNING", "hello"])

    assert exception is None
    assert exit_code == 0
    record = json.loads(path.read_text(encoding="utf-8"))
    assert record["msg"] == "hello"
    assert record["level"] == "WARNING"


def test_cli_emit_reports_disabled_level(tmp_path: Path) -> None:
    options = json.dumps({"path": str(tmp_path / "cli.log")})

    exit_code, stdout, _ = run_cli(["emit", "--type", "file", "--options", options, "--level", "DEBUG", "hidden"])

    assert exit_code == 1
    assert "level_disabled" in stdout


@pytest.mark.parametrize(
    "args, message",
    [
        (["emit", "--type", "syslog", "x"], "unsupported sink type"),
        (["emit", "--options", "{oops", "x"], "invalid JSON"),
        (["emit", "--options", '{"colour": 1}', "x"], "does not exist"),
    ],
)
def test_cli_emit_rejects_bad_configuration(args: list[str], message: str) -> None:
    exit_code, stdout, _ = run_cli(args)

    assert exit_code != 0
    assert message in stdout


def test_main_returns_exit_code_for_click_errors(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["emit", "--type", "syslog", "x"]) == 1
    assert "unsupported sink type" in capsys.readouterr().err


def test_main_runs_info(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["info"]) == 0
    assert "Info for lib_log_sinks:" in capsys.readouterr().out
