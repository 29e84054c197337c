"""
Species matching strategies.

Each strategy is an independent function taking a `ResolutionContext` and
returning a `SpeciesMatch` or None. The resolver runs them in order and stops
at the first hit. Candidates in the context are already sorted by
case-insensitive name, then id, and never contain the sentinel entry, so
"first qualifying candidate" is deterministic across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from rapidfuzz import process, utils
from rapidfuzz.distance import Levenshtein

from remediation.domain.models import SpeciesEntry

HUMANOID_TERMS: Tuple[str, ...] = ("girl", "boy", "woman", "man", "person", "human", "humanoid")
HUMAN_SPECIES_NAME = "human"
MIN_TOKEN_LENGTH = 3


@dataclass(frozen=True)
class ResolutionContext:
    """Inputs shared by every strategy for a single label."""

    raw_label: str
    normalized: str
    candidates: Sequence[SpeciesEntry]
    synonyms: Mapping[str, str]
    admission_threshold: float = 0.4
    accept_threshold: float = 0.3

    def by_name(self, name: str) -> Optional[SpeciesEntry]:
        """Exact, case-insensitive lookup among the candidates."""
        wanted = name.strip().lower()
        for entry in self.candidates:
            if entry.name.lower() == wanted:
                return entry
        return None


@dataclass(frozen=True)
class SpeciesMatch:
    species: SpeciesEntry
    strategy: str
    detail: Dict[str, Any] = field(default_factory=dict)


SpeciesStrategy = Callable[[ResolutionContext], Optional[SpeciesMatch]]


def synonym_match(ctx: ResolutionContext) -> Optional[SpeciesMatch]:
    canonical = ctx.synonyms.get(ctx.normalized)
    if canonical is None:
        return None
    if ctx.by_name(ctx.normalized) is not None:
        # A label that is itself a taxonomy name is left to exact_match
        return None
    entry = ctx.by_name(canonical)
    if entry is None:
        # Inert synonym: canonical name not in the taxonomy
        return None
    return SpeciesMatch(entry, "synonym_mapping", {"synonym": ctx.normalized, "canonical": canonical})


def exact_match(ctx: ResolutionContext) -> Optional[SpeciesMatch]:
    entry = ctx.by_name(ctx.normalized)
    return SpeciesMatch(entry, "exact_match") if entry else None


def fuzzy_match(ctx: ResolutionContext) -> Optional[SpeciesMatch]:
    """
    Approximate match on normalized Levenshtein distance (0.0 identical, 1.0 disjoint).

    Candidates farther than `admission_threshold` are never considered; the
    closest admitted candidate is accepted only when its distance is strictly
    below `accept_threshold`. Equal distances keep the earliest candidate.
    """
    if not ctx.candidates:
        return None
    best = process.extractOne(
        ctx.normalized,
        [entry.name for entry in ctx.candidates],
        scorer=Levenshtein.normalized_distance,
        processor=utils.default_process,
        score_cutoff=ctx.admission_threshold,
    )
    if best is None:
        return None
    _, distance, index = best
    if distance >= ctx.accept_threshold:
        return None
    return SpeciesMatch(ctx.candidates[index], "fuzzy_search", {"score": round(distance, 4)})


def partial_match(ctx: ResolutionContext) -> Optional[SpeciesMatch]:
    for entry in ctx.candidates:
        name = entry.name.lower()
        if name in ctx.normalized or ctx.normalized in name:
            return SpeciesMatch(entry, "partial_match")
    return None


def word_match(ctx: ResolutionContext) -> Optional[SpeciesMatch]:
    for word in ctx.normalized.split():
        if len(word) < MIN_TOKEN_LENGTH:
            continue
        for entry in ctx.candidates:
            name = entry.name.lower()
            if name == word or word in name or name in word:
                return SpeciesMatch(entry, "word_match", {"word": word})
    return None


def humanoid_fallback(ctx: ResolutionContext) -> Optional[SpeciesMatch]:
    term = next((t for t in HUMANOID_TERMS if t in ctx.normalized), None)
    if term is None:
        return None
    entry = ctx.by_name(HUMAN_SPECIES_NAME)
    return SpeciesMatch(entry, "humanoid_fallback", {"term": term}) if entry else None


DEFAULT_STRATEGIES: Tuple[SpeciesStrategy, ...] = (
    synonym_match,
    exact_match,
    fuzzy_match,
    partial_match,
    word_match,
    humanoid_fallback,
)


__all__ = [
    "DEFAULT_STRATEGIES",
    "HUMANOID_TERMS",
    "ResolutionContext",
    "SpeciesMatch",
    "SpeciesStrategy",
    "exact_match",
    "fuzzy_match",
    "humanoid_fallback",
    "partial_match",
    "synonym_match",
    "word_match",
]
