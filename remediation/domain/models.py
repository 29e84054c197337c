"""
Domain models for the catalog remediation jobs.

Defines the record shapes read from and written to the catalog database
(`db/init.sql`), the payloads exchanged with the generation, image and storage
collaborators, and the batch/job-log contracts produced by the orchestrator.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing_extensions import TypedDict

AVATAR_IMAGE_TYPE = "AVATAR"
SAMPLE_IMAGE_TYPE = "SAMPLE"


class SpeciesEntry(BaseModel):
    """
    One canonical row of the `species` taxonomy table.
    """

    id: str = Field(..., description="Primary key.")
    name: str = Field(..., description="Canonical display name, unique case-insensitively.")

    model_config = ConfigDict(frozen=True)


class LoraReference(BaseModel):
    """LoRA weights attached to a character, forwarded to the image backend."""

    name: str
    filepath_relative: str = ""
    strength: float = 1.0

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class CharacterRecord(BaseModel):
    """
    Representation of a row in the `characters` table with its joined
    species, attire, LoRA and tag data.
    """

    id: str = Field(..., description="Primary key; never changed by remediation.")
    user_id: str = Field(..., description="Owning principal; never changed by remediation.")
    first_name: str
    last_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    species_id: Optional[str] = None
    species_name: Optional[str] = None
    style: Optional[str] = None
    physical_characteristics: Optional[str] = None
    personality: Optional[str] = None
    history: Optional[str] = None
    reference: Optional[str] = None
    visibility: str = "PUBLIC"
    age_rating: str = "L"
    content_tags: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    main_attire: Optional[str] = Field(None, description="Description of the main attire.")
    lora: Optional[LoraReference] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


class CharacterImage(BaseModel):
    """
    Representation of a row in the `character_images` table.
    """

    id: Optional[int] = None
    character_id: str
    type: str = AVATAR_IMAGE_TYPE
    url: str
    key: Optional[str] = None
    size_bytes: Optional[int] = None
    content_type: Optional[str] = None
    is_active: bool = True
    age_rating: str = "L"
    content_tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class GenerationRequest(BaseModel):
    """Payload sent to the character generation collaborator."""

    seed_description: Optional[str]
    image_analysis: Optional[Dict[str, Any]] = None
    existing_attributes: Dict[str, Any] = Field(default_factory=dict)
    language_hint: str = "en"
    caller_context: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class GeneratedAttributes(BaseModel):
    """
    Fully populated attribute set returned by the generation collaborator.

    `species` is free text and still has to be resolved against the taxonomy.
    """

    first_name: str
    last_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    species: Optional[str] = None
    style: Optional[str] = None
    physical_characteristics: Optional[str] = None
    personality: Optional[str] = None
    history: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ImageGenerationRequest(BaseModel):
    """Payload sent to the image generation collaborator."""

    positive_prompt: str
    negative_prompt: str
    style_tag: Optional[str] = None
    content_type_hint: Optional[str] = None
    lora_references: List[LoraReference] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class GeneratedImage(BaseModel):
    """Raw bytes returned by the image generation collaborator."""

    data: bytes
    content_type: str = "image/webp"

    model_config = ConfigDict(frozen=True)


class UploadRequest(BaseModel):
    """Object to be written to the storage collaborator."""

    key: str
    body: bytes
    content_type: str
    cache_control: str = "public, max-age=3600"

    model_config = ConfigDict(frozen=True)


class UploadResult(BaseModel):
    public_url: str

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RecordError(TypedDict):
    """One failed record inside a batch summary or job log."""

    record_id: str
    error: str


class BatchSummary(TypedDict):
    """
    Result contract of one orchestrator invocation.

    For a run that reached its item loop, `len(errors) + success_count`
    always equals `target_count`.
    """

    job_type: str
    target_count: int
    success_count: int
    failure_count: int
    errors: List[RecordError]
    duration_ms: int


class JobLogEntry(BaseModel):
    """
    Immutable audit row written once per batch run to `correction_job_logs`.
    """

    job_type: str
    target_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    duration_seconds: int = 0
    completed_at: datetime
    errors: Optional[List[RecordError]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[int] = None

    model_config = ConfigDict(frozen=True)


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
