"""
Domain package for the catalog remediation jobs.

Exports the core domain models used across selectors, executors, the species
resolver and the orchestrator. Keep this package focused on data definitions.
"""

from remediation.domain.models import (
    AVATAR_IMAGE_TYPE,
    SAMPLE_IMAGE_TYPE,
    BatchSummary,
    CharacterImage,
    CharacterRecord,
    GeneratedAttributes,
    GeneratedImage,
    GenerationRequest,
    ImageGenerationRequest,
    JobLogEntry,
    LoraReference,
    RecordError,
    SpeciesEntry,
    UploadRequest,
    UploadResult,
)

__all__ = [
    "AVATAR_IMAGE_TYPE",
    "SAMPLE_IMAGE_TYPE",
    "BatchSummary",
    "CharacterImage",
    "CharacterRecord",
    "GeneratedAttributes",
    "GeneratedImage",
    "GenerationRequest",
    "ImageGenerationRequest",
    "JobLogEntry",
    "LoraReference",
    "RecordError",
    "SpeciesEntry",
    "UploadRequest",
    "UploadResult",
]
