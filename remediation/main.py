from __future__ import annotations

import sys
from typing import Optional

import typer

from remediation.config import get_settings
from remediation.infrastructure.repositories import PostgresJobLogStore, PostgresSpeciesCatalog
from remediation.orchestrator import available_jobs, run_batch
from remediation.reporter import print_job_logs, print_resolution, print_summary
from remediation.resolution.resolver import SpeciesResolver
from remediation.utils.logging import configure_logging

app = typer.Typer(help="Character catalog remediation CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"enabled={settings.correction_enabled} bot={settings.bot_user_id} "
        f"data_limit={settings.correction_data_daily_limit} "
        f"avatar_limit={settings.correction_avatar_daily_limit} "
        f"delay={settings.correction_item_delay_seconds}s"
    )


@app.command()
def jobs() -> None:
    """
    List registered remediation jobs.
    """
    typer.echo("Available jobs: " + ", ".join(available_jobs()))


@app.command()
def run(
    job: str = typer.Option(
        ...,
        "--job",
        "-j",
        help="Job to run (data-completeness-correction, avatar-correction).",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        min=1,
        help="Maximum number of candidates (default: the job's daily limit).",
    ),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        min=0.0,
        help="Seconds to pause between items (default from settings).",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Run even when CORRECTION_ENABLED is false.",
    ),
) -> None:
    """
    Run one remediation job and record it in the job log.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    if job not in available_jobs():
        typer.echo(f"Unknown job '{job}'. Available: {', '.join(available_jobs())}", err=True)
        raise typer.Exit(code=2)
    if not settings.correction_enabled and not force:
        typer.echo("Correction jobs are disabled (CORRECTION_ENABLED=false).", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Running job='{job}' limit={limit or 'default'}.")
    summary = run_batch(job, limit=limit, delay_seconds=delay)
    print_summary(summary)
    if summary["errors"] and summary["target_count"] == 0:
        # Job-level failure
        raise typer.Exit(code=1)


@app.command()
def resolve(label: str = typer.Argument(..., help="Free-text species label.")) -> None:
    """
    Resolve a species label against the taxonomy and show the matching strategy.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    resolver = SpeciesResolver.from_settings(PostgresSpeciesCatalog(), settings)
    print_resolution(label, resolver.resolve_match(label))


@app.command()
def logs(
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Number of rows to show."),
    job: Optional[str] = typer.Option(None, "--job", "-j", help="Only show this job type."),
) -> None:
    """
    Show the most recent job log rows.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    print_job_logs(PostgresJobLogStore().recent(limit=limit, job_type=job))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
