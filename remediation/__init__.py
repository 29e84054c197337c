"""
Catalog Remediation - batch repair jobs for auto-generated characters.

This package finds bot-generated characters with incomplete data or no avatar
and repairs them through external generation services:

- Candidate selectors over the PostgreSQL catalog
- A cascading species resolver (synonyms, exact, fuzzy, substring, token,
  humanoid heuristic, sentinel fallback)
- Per-record executors that never raise past their boundary
- A sequential batch orchestrator writing one job log row per run
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from remediation.config import Settings, get_settings
from remediation.executors.abstract import (
    AbstractRemediationExecutor,
    RemediationExecutor,
    RemediationOutcome,
)
from remediation.orchestrator import available_jobs, run_batch
from remediation.resolution.resolver import Resolution, SpeciesResolver
from remediation.utils.logging import configure_logging, get_logger
from remediation.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "available_jobs",
    "run_batch",
    # Executor abstractions
    "AbstractRemediationExecutor",
    "RemediationExecutor",
    "RemediationOutcome",
    # Resolution
    "Resolution",
    "SpeciesResolver",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
