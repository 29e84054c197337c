"""
Batch orchestrator for the remediation jobs.

Usage (example from CLI):
    from remediation.orchestrator import run_batch

    summary = run_batch("data-completeness-correction", limit=10)
    print(summary["success_count"], summary["errors"])

A run selects candidates once, repairs them one at a time with a fixed pause
between items, and writes exactly one row to `correction_job_logs`, including
when there is nothing to do and when the run fails before reaching its loop.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from remediation.config import Settings, get_settings
from remediation.domain.models import BatchSummary, JobLogEntry, RecordError
from remediation.executors.abstract import RemediationExecutor, RemediationOutcome
from remediation.executors.avatar import AvatarExecutor
from remediation.executors.data_completeness import DataCompletenessExecutor
from remediation.infrastructure.clients import (
    CharacterGenerationClient,
    ImageGenerationClient,
    StorageClient,
)
from remediation.infrastructure.repositories import (
    JobLogStore,
    PostgresCharacterStore,
    PostgresImageStore,
    PostgresJobLogStore,
    PostgresSpeciesCatalog,
)
from remediation.resolution.resolver import SpeciesResolver
from remediation.selectors import CandidateSelector, IncompleteDataSelector, MissingAvatarSelector
from remediation.utils.logging import get_logger, job_logger
from remediation.utils.profiler import profile_block

log = get_logger(__name__)

DATA_COMPLETENESS_JOB = "data-completeness-correction"
AVATAR_JOB = "avatar-correction"
JOB_LEVEL_RECORD_ID = "N/A"
NO_CANDIDATES_MESSAGE = "No characters found needing correction"
JOB_FAILED_MESSAGE = "Batch job failed before processing characters"


@dataclass
class RemediationJob:
    """A selector paired with the executor that repairs what it selects."""

    job_type: str
    selector: CandidateSelector
    executor: RemediationExecutor
    default_limit: int


def _data_completeness_job(settings: Settings) -> RemediationJob:
    characters = PostgresCharacterStore()
    resolver = SpeciesResolver.from_settings(
        PostgresSpeciesCatalog(), settings, cache_taxonomy=True
    )
    return RemediationJob(
        job_type=DATA_COMPLETENESS_JOB,
        selector=IncompleteDataSelector(characters, settings=settings),
        executor=DataCompletenessExecutor(
            characters,
            CharacterGenerationClient.from_settings(settings),
            resolver,
            settings=settings,
        ),
        default_limit=settings.correction_data_daily_limit,
    )


def _avatar_job(settings: Settings) -> RemediationJob:
    characters = PostgresCharacterStore()
    return RemediationJob(
        job_type=AVATAR_JOB,
        selector=MissingAvatarSelector(characters, settings=settings),
        executor=AvatarExecutor(
            characters,
            PostgresImageStore(),
            ImageGenerationClient.from_settings(settings),
            StorageClient.from_settings(settings),
            settings=settings,
        ),
        default_limit=settings.correction_avatar_daily_limit,
    )


def _job_factories() -> Dict[str, Callable[[Settings], RemediationJob]]:
    """Registry of available jobs."""
    return {
        DATA_COMPLETENESS_JOB: _data_completeness_job,
        AVATAR_JOB: _avatar_job,
    }


def available_jobs() -> List[str]:
    """List available job names."""
    return sorted(_job_factories().keys())


def _check_job_name(name: str) -> Callable[[Settings], RemediationJob]:
    factories = _job_factories()
    if name not in factories:
        raise ValueError(f"Unknown job '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name]


def _empty_summary(job_type: str, errors: Optional[List[RecordError]] = None) -> BatchSummary:
    return BatchSummary(
        job_type=job_type,
        target_count=0,
        success_count=0,
        failure_count=0,
        errors=list(errors or []),
        duration_ms=0,
    )


def _process_candidates(
    job: RemediationJob,
    limit: int,
    delay_seconds: float,
    sleep: Callable[[float], None],
) -> Tuple[BatchSummary, Dict[str, Any]]:
    jlog = job_logger(log, job.job_type)
    candidates = job.selector.find_defective(limit)
    target_count = len(candidates)
    if target_count == 0:
        jlog.info(NO_CANDIDATES_MESSAGE, extra={"limit": limit})
        return _empty_summary(job.job_type), {"message": NO_CANDIDATES_MESSAGE, "limit": limit}

    jlog.info(
        f"Processing {target_count} characters for {job.job_type}",
        extra={"target_count": target_count, "limit": limit},
    )

    errors: List[RecordError] = []
    success_count = 0
    for index, record in enumerate(candidates, start=1):
        try:
            outcome = job.executor.remediate(record.id)
        except Exception as exc:  # noqa: BLE001 - one record never stops the batch
            jlog.exception(
                f"Executor raised for {record.id}",
                extra={"record_id": record.id},
            )
            outcome = RemediationOutcome.failed(record.id, str(exc) or exc.__class__.__name__)

        if outcome:
            success_count += 1
        else:
            errors.append(
                RecordError(
                    record_id=record.id,
                    error=outcome.error or "Correction returned false (check logs for details)",
                )
            )
        jlog.info(
            f"[{index}/{target_count}] {record.id} {'corrected' if outcome else 'failed'}",
            extra={
                "record_id": record.id,
                "progress": f"{index}/{target_count}",
                "success": bool(outcome),
            },
        )

        if index < target_count and delay_seconds > 0:
            sleep(delay_seconds)

    summary = BatchSummary(
        job_type=job.job_type,
        target_count=target_count,
        success_count=success_count,
        failure_count=len(errors),
        errors=errors,
        duration_ms=0,
    )
    metadata = {
        "processed_at": datetime.now(timezone.utc).isoformat(),
        "limit": limit,
    }
    return summary, metadata


def _write_job_log(store: JobLogStore, summary: BatchSummary, metadata: Dict[str, Any]) -> None:
    entry = JobLogEntry(
        job_type=summary["job_type"],
        target_count=summary["target_count"],
        success_count=summary["success_count"],
        failure_count=summary["failure_count"],
        duration_seconds=summary["duration_ms"] // 1000,
        completed_at=datetime.now(timezone.utc),
        errors=list(summary["errors"]) or None,
        metadata=metadata,
    )
    try:
        store.append(entry)
    except Exception as exc:  # noqa: BLE001 - the run itself already completed
        log.error(
            f"Failed to write job log for {summary['job_type']}: {exc}",
            extra={"job_type": summary["job_type"]},
        )


def run_batch(
    job_name: str,
    limit: Optional[int] = None,
    delay_seconds: Optional[float] = None,
    job_log: Optional[JobLogStore] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchSummary:
    """
    Run one remediation job over up to `limit` candidates.

    Parameters
    ----------
    job_name : str
        One of `available_jobs()`.
    limit : int | None
        Candidate cap. Defaults to the job's daily limit from settings.
    delay_seconds : float | None
        Pause between items (not after the last). Defaults to
        settings.correction_item_delay_seconds.
    job_log : JobLogStore | None
        Where the run is recorded. Defaults to the Postgres job log.
    sleep : callable
        Used for the inter-item pause.

    Returns
    -------
    BatchSummary
        Counts, per-record errors and wall time. A job-level failure yields
        zero counts and a single error with record_id "N/A". An unknown job
        name or a non-positive limit is such a failure; the run is still
        recorded in the job log.
    """
    settings = get_settings()
    delay = settings.correction_item_delay_seconds if delay_seconds is None else delay_seconds
    store = job_log if job_log is not None else PostgresJobLogStore()

    log.info(f"[JOB START] {job_name}", extra={"job_type": job_name, "limit": limit})
    with profile_block(job_name) as stats:
        try:
            factory = _check_job_name(job_name)
            if limit is not None and limit <= 0:
                raise ValueError(f"limit must be a positive integer, got {limit}")
            job = factory(settings)
            effective_limit = limit or job.default_limit
            summary, metadata = _process_candidates(job, effective_limit, delay, sleep)
        except Exception as exc:  # noqa: BLE001 - recorded as a job-level failure
            log.exception(f"[JOB FAILED] {job_name} failed at job level", extra={"job_type": job_name})
            summary = _empty_summary(
                job_name,
                [RecordError(record_id=JOB_LEVEL_RECORD_ID, error=str(exc) or exc.__class__.__name__)],
            )
            metadata = {"message": JOB_FAILED_MESSAGE, "limit": limit}

    summary["duration_ms"] = int(stats.duration_seconds * 1000)
    metadata["profile"] = stats.as_metadata()
    _write_job_log(store, summary, metadata)

    log.info(
        f"[JOB COMPLETE] {job_name}",
        extra={
            "job_type": job_name,
            "target_count": summary["target_count"],
            "success_count": summary["success_count"],
            "failure_count": summary["failure_count"],
            "duration_ms": summary["duration_ms"],
        },
    )
    return summary


__all__ = [
    "AVATAR_JOB",
    "DATA_COMPLETENESS_JOB",
    "RemediationJob",
    "available_jobs",
    "run_batch",
]
