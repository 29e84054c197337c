"""
Species resolution package.

Re-exports the resolver, its strategy functions and the synonym table so
callers can import from `remediation.resolution` directly.
"""

from remediation.resolution.resolver import (
    FALLBACK_STRATEGY,
    Resolution,
    SpeciesResolver,
    TaxonomySnapshot,
)
from remediation.resolution.strategies import (
    DEFAULT_STRATEGIES,
    ResolutionContext,
    SpeciesMatch,
    SpeciesStrategy,
)
from remediation.resolution.synonyms import SPECIES_SYNONYMS, inert_synonyms, load_synonyms

__all__ = [
    "DEFAULT_STRATEGIES",
    "FALLBACK_STRATEGY",
    "Resolution",
    "ResolutionContext",
    "SPECIES_SYNONYMS",
    "SpeciesMatch",
    "SpeciesResolver",
    "SpeciesStrategy",
    "TaxonomySnapshot",
    "inert_synonyms",
    "load_synonyms",
]
