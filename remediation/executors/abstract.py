"""
Executor interfaces and the per-record result contract.

Concrete executors (data completeness, avatar) implement the
RemediationExecutor Protocol, usually through AbstractRemediationExecutor, and
return a RemediationOutcome instead of raising so the batch loop never sees an
exception from a single record.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from remediation.config import Settings, get_settings
from remediation.domain.models import CharacterRecord
from remediation.infrastructure.repositories import CharacterStore
from remediation.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RemediationOutcome:
    """
    Result of repairing one record.

    Truthiness is the success flag, so callers can write `if executor.remediate(id):`.
    `error` carries the failure message and is None on success.
    """

    record_id: str
    success: bool
    error: Optional[str] = None
    skipped: bool = False

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, record_id: str, skipped: bool = False) -> "RemediationOutcome":
        return cls(record_id=record_id, success=True, skipped=skipped)

    @classmethod
    def failed(cls, record_id: str, error: str) -> "RemediationOutcome":
        return cls(record_id=record_id, success=False, error=error)


@runtime_checkable
class RemediationExecutor(Protocol):
    """
    Common interface all remediation executors must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the repair.
    """

    name: str
    description: str

    def remediate(self, record_id: str) -> RemediationOutcome:
        """
        Repair one record. Never raises.

        Parameters
        ----------
        record_id : str
            Identifier of the character to repair.
        """
        ...


class AbstractRemediationExecutor(abc.ABC):
    """
    Shared guard handling for class-based executors.

    Subclasses implement `_repair`, which may raise freely: `remediate` loads
    the record, applies the not-found and ownership guards, and converts any
    exception into a failed outcome.
    """

    name: str
    description: str

    def __init__(self, characters: CharacterStore, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.characters = characters
        self.owner_id = self.settings.bot_user_id

    def _guard(self, record_id: str) -> "CharacterRecord | RemediationOutcome":
        record = self.characters.get(record_id)
        if record is None:
            log.warning(
                f"Character {record_id} not found for {self.name}",
                extra={"record_id": record_id, "executor": self.name},
            )
            return RemediationOutcome.failed(record_id, "Character not found")
        if record.user_id != self.owner_id:
            log.warning(
                f"Character {record_id} is not owned by the bot user, skipping {self.name}",
                extra={"record_id": record_id, "executor": self.name, "user_id": record.user_id},
            )
            return RemediationOutcome.failed(record_id, "Character not owned by bot user")
        return record

    def remediate(self, record_id: str) -> RemediationOutcome:
        log.info(
            f"[{self.name.upper()} START] {record_id}",
            extra={"record_id": record_id, "executor": self.name},
        )
        try:
            guarded = self._guard(record_id)
            if isinstance(guarded, RemediationOutcome):
                return guarded
            outcome = self._repair(guarded)
        except Exception as exc:  # noqa: BLE001 - failures are reported, never raised
            log.exception(
                f"[{self.name.upper()} FAILED] {record_id}",
                extra={"record_id": record_id, "executor": self.name},
            )
            return RemediationOutcome.failed(record_id, str(exc) or exc.__class__.__name__)

        log.info(
            f"[{self.name.upper()} {'SUCCESS' if outcome else 'FAILED'}] {record_id}",
            extra={
                "record_id": record_id,
                "executor": self.name,
                "skipped": outcome.skipped,
                "error": outcome.error,
            },
        )
        return outcome

    @abc.abstractmethod
    def _repair(self, record: CharacterRecord) -> RemediationOutcome:  # pragma: no cover - interface only
        """Perform the repair for a guarded record."""
        raise NotImplementedError


__all__ = [
    "AbstractRemediationExecutor",
    "RemediationExecutor",
    "RemediationOutcome",
]
