from __future__ import annotations

from typing import Any, Dict, List

import pytest
from rich.console import Console
from typer.testing import CliRunner

from remediation import main, reporter
from remediation.config import Settings
from remediation.orchestrator import AVATAR_JOB, DATA_COMPLETENESS_JOB, JOB_LEVEL_RECORD_ID
from remediation.resolution.resolver import Resolution

runner = CliRunner()


def _summary(**overrides: Any) -> Dict[str, Any]:
    summary = {
        "job_type": AVATAR_JOB,
        "target_count": 2,
        "success_count": 1,
        "failure_count": 1,
        "errors": [{"record_id": "c-9", "error": "Character not found"}],
        "duration_ms": 4200,
    }
    summary.update(overrides)
    return summary


@pytest.fixture
def cli(monkeypatch, settings):
    calls: List[Dict[str, Any]] = []

    def fake_run_batch(job, limit=None, delay_seconds=None):
        calls.append({"job": job, "limit": limit, "delay": delay_seconds})
        return _summary(job_type=job)

    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(main, "run_batch", fake_run_batch)
    return calls


def test_jobs_lists_registered_jobs(cli) -> None:
    result = runner.invoke(main.app, ["jobs"])

    assert result.exit_code == 0
    assert DATA_COMPLETENESS_JOB in result.output
    assert AVATAR_JOB in result.output


def test_run_dispatches_to_orchestrator(cli) -> None:
    result = runner.invoke(main.app, ["run", "--job", AVATAR_JOB, "--limit", "3", "--delay", "0"])

    assert result.exit_code == 0
    assert cli == [{"job": AVATAR_JOB, "limit": 3, "delay": 0.0}]
    assert "c-9" in result.output


def test_run_rejects_unknown_job(cli) -> None:
    result = runner.invoke(main.app, ["run", "--job", "nope"])

    assert result.exit_code == 2
    assert cli == []


def test_run_refuses_when_corrections_disabled(monkeypatch, cli) -> None:
    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None, correction_enabled=False))

    refused = runner.invoke(main.app, ["run", "--job", AVATAR_JOB])
    forced = runner.invoke(main.app, ["run", "--job", AVATAR_JOB, "--force"])

    assert refused.exit_code == 1
    assert forced.exit_code == 0
    assert len(cli) == 1


def test_run_exits_non_zero_on_job_level_failure(monkeypatch, cli) -> None:
    failed = _summary(
        target_count=0,
        success_count=0,
        failure_count=0,
        errors=[{"record_id": JOB_LEVEL_RECORD_ID, "error": "catalog offline"}],
    )
    monkeypatch.setattr(main, "run_batch", lambda job, limit=None, delay_seconds=None: failed)

    result = runner.invoke(main.app, ["run", "--job", DATA_COMPLETENESS_JOB])

    assert result.exit_code == 1


def test_print_summary_caps_error_rows() -> None:
    console = Console(record=True, width=120)
    errors = [{"record_id": f"c-{i}", "error": "boom"} for i in range(reporter.MAX_ERROR_ROWS + 5)]

    reporter.print_summary(_summary(target_count=len(errors), success_count=0, errors=errors), console=console)

    text = console.export_text()
    assert f"Showing {reporter.MAX_ERROR_ROWS} of {len(errors)}" in text
    assert "c-0" in text
    assert f"c-{len(errors) - 1}" not in text


def test_print_resolution_shows_strategy() -> None:
    console = Console(record=True, width=120)

    reporter.print_resolution(
        "dark elf",
        Resolution(species_id="sp-elf", strategy="synonym_mapping", species_name="Elf"),
        console=console,
    )

    text = console.export_text()
    assert "synonym_mapping" in text
    assert "Elf" in text
