"""
Executors package.

Re-exports the executor interfaces and the concrete executors so downstream
code can import from `remediation.executors` directly.
"""

from remediation.executors.abstract import (
    AbstractRemediationExecutor,
    RemediationExecutor,
    RemediationOutcome,
)
from remediation.executors.avatar import AvatarExecutor
from remediation.executors.data_completeness import DataCompletenessExecutor

__all__ = [
    # Abstracts
    "AbstractRemediationExecutor",
    "RemediationExecutor",
    "RemediationOutcome",
    # Concrete executors
    "AvatarExecutor",
    "DataCompletenessExecutor",
]
