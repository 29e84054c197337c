"""
Species resolver: maps free-text species labels onto the canonical taxonomy.

The resolver runs an ordered list of matching strategies (see
`remediation.resolution.strategies`) and returns the first hit. When nothing
matches, when the label is blank, or when the taxonomy cannot be loaded, it
returns the fixed sentinel ("Unknown") id. It never raises and never returns
None.

Usage:
    resolver = SpeciesResolver.from_settings(PostgresSpeciesCatalog())
    species_id = resolver.resolve("Dark Elf", record_id="c-123")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from remediation.config import Settings, get_settings
from remediation.domain.models import SpeciesEntry
from remediation.infrastructure.repositories import SpeciesCatalog
from remediation.resolution.strategies import (
    DEFAULT_STRATEGIES,
    ResolutionContext,
    SpeciesStrategy,
)
from remediation.resolution.synonyms import inert_synonyms, load_synonyms, normalize_label
from remediation.utils.logging import get_logger

log = get_logger(__name__)

SENTINEL_NAME = "unknown"
FALLBACK_STRATEGY = "fallback_to_unknown"


@dataclass(frozen=True)
class Resolution:
    """Outcome of one resolution: the id plus how it was reached."""

    species_id: str
    strategy: str
    species_name: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_fallback(self) -> bool:
        return self.strategy == FALLBACK_STRATEGY


class TaxonomySnapshot:
    """
    Matchable taxonomy entries, sorted by (lower-cased name, id).

    The sentinel entry (by id or by the name "Unknown") and entries with a
    blank name are dropped.
    """

    def __init__(self, entries: Sequence[SpeciesEntry], sentinel_id: str) -> None:
        self.sentinel_id = sentinel_id
        self.candidates: List[SpeciesEntry] = sorted(
            (
                e
                for e in entries
                if e.id != sentinel_id
                and e.name.strip()
                and e.name.strip().lower() != SENTINEL_NAME
            ),
            key=lambda e: (e.name.lower(), e.id),
        )

    @classmethod
    def load(cls, catalog: SpeciesCatalog, sentinel_id: str) -> "TaxonomySnapshot":
        return cls(catalog.list_species(), sentinel_id)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.candidates]

    def __len__(self) -> int:
        return len(self.candidates)


class SpeciesResolver:
    """
    Ordered strategy cascade over a species taxonomy.

    Parameters
    ----------
    catalog : SpeciesCatalog
        Source of the taxonomy.
    sentinel_id : str
        Id returned when nothing matches.
    synonyms : Mapping[str, str] | None
        Lower-cased variant -> canonical name. Defaults to the built-in table.
    strategies : Sequence[SpeciesStrategy]
        Matching functions, tried in order.
    cache_taxonomy : bool
        Load the taxonomy once and reuse it until `refresh()`. Batch jobs
        enable this; one-off lookups leave it off to always see fresh data.
    """

    def __init__(
        self,
        catalog: SpeciesCatalog,
        sentinel_id: str,
        synonyms: Optional[Mapping[str, str]] = None,
        strategies: Sequence[SpeciesStrategy] = DEFAULT_STRATEGIES,
        admission_threshold: float = 0.4,
        accept_threshold: float = 0.3,
        cache_taxonomy: bool = False,
    ) -> None:
        self.catalog = catalog
        self.sentinel_id = sentinel_id
        self.synonyms: Mapping[str, str] = synonyms if synonyms is not None else load_synonyms()
        self.strategies = tuple(strategies)
        self.admission_threshold = admission_threshold
        self.accept_threshold = accept_threshold
        self.cache_taxonomy = cache_taxonomy
        self._snapshot: Optional[TaxonomySnapshot] = None

    @classmethod
    def from_settings(
        cls,
        catalog: SpeciesCatalog,
        settings: Optional[Settings] = None,
        cache_taxonomy: bool = False,
    ) -> "SpeciesResolver":
        settings = settings or get_settings()
        return cls(
            catalog,
            settings.unknown_species_id,
            synonyms=load_synonyms(settings.species_synonyms_file),
            admission_threshold=settings.fuzzy_admission_threshold,
            accept_threshold=settings.fuzzy_accept_threshold,
            cache_taxonomy=cache_taxonomy,
        )

    def refresh(self) -> None:
        """Drop the cached taxonomy so the next lookup reloads it."""
        self._snapshot = None

    def snapshot(self) -> TaxonomySnapshot:
        if self._snapshot is not None:
            return self._snapshot
        snapshot = TaxonomySnapshot.load(self.catalog, self.sentinel_id)
        inert = inert_synonyms(self.synonyms, snapshot.names)
        if inert:
            log.warning(
                f"{len(inert)} species synonyms point at names missing from the taxonomy",
                extra={"inert_synonyms": inert[:20], "inert_count": len(inert)},
            )
        if self.cache_taxonomy:
            self._snapshot = snapshot
        return snapshot

    def _fallback(self, record_id: Optional[str], raw_label: Optional[str], reason: str) -> Resolution:
        log.info(
            f"Species fallback to Unknown for record {record_id}",
            extra={
                "record_id": record_id,
                "label": raw_label,
                "strategy": FALLBACK_STRATEGY,
                "reason": reason,
            },
        )
        return Resolution(self.sentinel_id, FALLBACK_STRATEGY, detail={"reason": reason})

    def resolve_match(self, raw_label: Optional[str], record_id: Optional[str] = None) -> Resolution:
        normalized = normalize_label(raw_label)
        if not normalized:
            return self._fallback(record_id, raw_label, "empty_label")

        try:
            snapshot = self.snapshot()
        except Exception as exc:  # noqa: BLE001 - resolution must always yield an id
            log.error(
                f"Failed to load species taxonomy: {exc}",
                extra={"record_id": record_id, "label": raw_label},
            )
            return self._fallback(record_id, raw_label, "taxonomy_unavailable")

        ctx = ResolutionContext(
            raw_label=raw_label or "",
            normalized=normalized,
            candidates=snapshot.candidates,
            synonyms=self.synonyms,
            admission_threshold=self.admission_threshold,
            accept_threshold=self.accept_threshold,
        )

        for strategy in self.strategies:
            name = getattr(strategy, "__name__", repr(strategy))
            try:
                match = strategy(ctx)
            except Exception:  # noqa: BLE001 - a broken strategy must not end the cascade
                log.exception(
                    f"Species strategy {name} failed",
                    extra={"record_id": record_id, "label": raw_label, "strategy": name},
                )
                continue
            if match is None:
                log.debug(
                    f"Species strategy {name} found no match",
                    extra={"record_id": record_id, "label": normalized, "strategy": name},
                )
                continue

            log.info(
                f"Species resolved via {match.strategy}: '{raw_label}' -> '{match.species.name}'",
                extra={
                    "record_id": record_id,
                    "label": raw_label,
                    "strategy": match.strategy,
                    "species_id": match.species.id,
                    "species_name": match.species.name,
                    **match.detail,
                },
            )
            return Resolution(match.species.id, match.strategy, match.species.name, dict(match.detail))

        return self._fallback(record_id, raw_label, "no_match")

    def resolve(self, raw_label: Optional[str], record_id: Optional[str] = None) -> str:
        """Canonical species id for `raw_label`; the sentinel id when nothing matches."""
        return self.resolve_match(raw_label, record_id).species_id


__all__ = ["FALLBACK_STRATEGY", "Resolution", "SpeciesResolver", "TaxonomySnapshot"]
