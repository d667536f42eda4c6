from __future__ import annotations

import json
from pathlib import Path

import pytest

from abs_geography.cli import main, parse_args, run_command
from abs_geography.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS


def _args(tmp_path: Path, *command: str):
    overlay = tmp_path / "overlay"
    overlay.mkdir(exist_ok=True)
    (overlay / "geography.yml").write_text(f"cache:\n  directory: {tmp_path / 'cache'}\n", encoding="utf-8")
    return parse_args(
        [
            "--config-dir",
            "config",
            "--overlay-config-dir",
            str(overlay),
            "--log-dir",
            str(tmp_path / "logs"),
            "--run-id",
            "geo-test",
            *command,
        ]
    )


@pytest.mark.integration
def test_cli_status_and_lookups(tmp_path: Path, capsys):
    assert run_command(_args(tmp_path, "status")) == EXIT_SUCCESS
    status = json.loads(capsys.readouterr().out)
    assert status["postcode_ready"] is True
    assert status["boundary_count"] == 11

    assert run_command(_args(tmp_path, "postcode", "3000")) == EXIT_SUCCESS
    assert json.loads(capsys.readouterr().out)["sa2_codes"] == ["20604"]

    assert run_command(_args(tmp_path, "postcode", "9999")) == EXIT_PARTIAL
    assert json.loads(capsys.readouterr().out)["status"] == "not_found"

    assert run_command(_args(tmp_path, "postcode", "99")) == EXIT_HARD_FAIL
    assert json.loads(capsys.readouterr().out)["status"] == "invalid_postcode"

    assert run_command(_args(tmp_path, "coordinate", "-33.8688", "151.2093")) == EXIT_SUCCESS
    payload = json.loads(capsys.readouterr().out)
    assert payload["method"] == "containment"
    assert payload["region"]["sa2_code"] == "11703"

    assert run_command(_args(tmp_path, "coordinate", "-91", "151.2093")) == EXIT_HARD_FAIL
    assert json.loads(capsys.readouterr().out)["status"] == "out_of_range"

    assert (tmp_path / "logs" / "run_meta" / "geo-test.log.jsonl").exists()


@pytest.mark.integration
def test_cli_missing_config_is_hard_fail(tmp_path: Path):
    assert main(["--config-dir", str(tmp_path), "status"]) == EXIT_HARD_FAIL
