"""
Candidate selectors: find the records a remediation job should repair.

Both selectors only look at records owned by the generating (bot) principal,
return them oldest first and bounded by `limit`, and never raise on a store
failure: they log it and return an empty list, which the orchestrator treats
as "nothing to do".
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from remediation.config import Settings, get_settings
from remediation.domain.models import AVATAR_IMAGE_TYPE, CharacterRecord
from remediation.infrastructure.repositories import CharacterStore
from remediation.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_BATCH_LIMIT = 50


@runtime_checkable
class CandidateSelector(Protocol):
    name: str

    def find_defective(self, limit: int = DEFAULT_BATCH_LIMIT) -> List[CharacterRecord]:
        ...


def _check_limit(limit: int) -> None:
    if limit <= 0:
        raise ValueError(f"limit must be a positive integer, got {limit}")


class IncompleteDataSelector(CandidateSelector):
    """Bot-owned characters with no species or a placeholder first name."""

    name = "incomplete-data"

    def __init__(
        self,
        store: CharacterStore,
        owner_id: Optional[str] = None,
        placeholder_first_name: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.owner_id = owner_id or settings.bot_user_id
        self.placeholder_first_name = placeholder_first_name or settings.placeholder_first_name

    def find_defective(self, limit: int = DEFAULT_BATCH_LIMIT) -> List[CharacterRecord]:
        _check_limit(limit)
        try:
            records = self.store.find_incomplete(self.owner_id, self.placeholder_first_name, limit)
        except Exception as exc:  # noqa: BLE001 - an empty batch is an acceptable degraded outcome
            log.error(
                f"Failed to select characters with incomplete data: {exc}",
                extra={"selector": self.name, "limit": limit},
            )
            return []

        # The store filters by owner; this keeps the guarantee even for a misbehaving store.
        records = [r for r in records if r.user_id == self.owner_id][:limit]
        log.info(
            f"Found {len(records)} characters with incomplete data",
            extra={"selector": self.name, "limit": limit, "found": len(records)},
        )
        return records


class MissingAvatarSelector(CandidateSelector):
    """Bot-owned characters without an active avatar image."""

    name = "missing-avatar"

    def __init__(
        self,
        store: CharacterStore,
        owner_id: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.owner_id = owner_id or settings.bot_user_id

    def find_defective(self, limit: int = DEFAULT_BATCH_LIMIT) -> List[CharacterRecord]:
        _check_limit(limit)
        try:
            records = self.store.find_without_active_image(self.owner_id, AVATAR_IMAGE_TYPE, limit)
        except Exception as exc:  # noqa: BLE001
            log.error(
                f"Failed to select characters without avatar: {exc}",
                extra={"selector": self.name, "limit": limit},
            )
            return []

        records = [r for r in records if r.user_id == self.owner_id][:limit]
        log.info(
            f"Found {len(records)} characters without avatar",
            extra={"selector": self.name, "limit": limit, "found": len(records)},
        )
        return records


__all__ = [
    "DEFAULT_BATCH_LIMIT",
    "CandidateSelector",
    "IncompleteDataSelector",
    "MissingAvatarSelector",
]
