"""
Avatar executor.

Generates, uploads and activates an avatar for a bot-owned character that has
none. The image swap (deactivate old avatars, insert the new one) runs in one
transaction, so there is never more than one active avatar per character. If
that transaction fails, the freshly uploaded object is removed from storage.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, List, Optional, Tuple

from remediation.config import Settings
from remediation.domain.models import (
    AVATAR_IMAGE_TYPE,
    CharacterImage,
    CharacterRecord,
    ImageGenerationRequest,
    UploadRequest,
)
from remediation.executors.abstract import AbstractRemediationExecutor, RemediationOutcome
from remediation.infrastructure.clients import ImageGenerator, ObjectStorage
from remediation.infrastructure.repositories import CharacterStore, ImageStore
from remediation.utils.logging import get_logger

log = get_logger(__name__)

AVATAR_CACHE_CONTROL = "public, max-age=3600"

FURRY_CONTENT = "FURRY"
HENTAI_CONTENT = "HENTAI"
_CONTENT_MARKERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (FURRY_CONTENT, ("furry", "anthro", "anthropomorphic", "kemono")),
    (HENTAI_CONTENT, ("nsfw", "explicit", "ecchi")),
)

_QUALITY_TAGS = "masterpiece, best quality, ultra-detailed, highres, very aesthetic, highly detailed"
_AVATAR_TAGS = "close-up portrait, detailed face, looking at viewer, headshot, face focus"
NEGATIVE_PROMPT = (
    "low quality, worst quality, lowres, bad anatomy, bad hands, text, error, missing fingers, "
    "extra digit, fewer digits, cropped, jpeg artifacts, signature, watermark, username, blurry, "
    "full body, wide shot, body, arms, hands, legs, feet, shoulders, upper body"
)

_EXTENSIONS = {
    "image/webp": "webp",
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
}


def detect_content_type(
    species_name: Optional[str],
    physical_characteristics: Optional[str],
    tags: Iterable[str] = (),
) -> Optional[str]:
    """Content-type hint for the image backend, from species, traits and tags."""
    text = " ".join([species_name or "", physical_characteristics or "", " ".join(tags)]).lower()
    for content_type, markers in _CONTENT_MARKERS:
        if any(marker in text for marker in markers):
            return content_type
    return None


def build_avatar_prompts(record: CharacterRecord) -> Tuple[str, str]:
    """Positive and negative prompts for a face-focused avatar."""
    gender_tag = "1girl" if (record.gender or "").lower().startswith("fem") else "1boy"
    parts: List[str] = [gender_tag, record.display_name or "character"]
    if record.species_name:
        parts.append(record.species_name.lower())
    if record.age:
        parts.append(f"{record.age} years old")
    for text in (record.physical_characteristics, record.personality, record.main_attire):
        if text:
            parts.append(text.strip().rstrip("."))
    parts.append(_QUALITY_TAGS)
    parts.append(_AVATAR_TAGS)
    if record.style:
        parts.append(f"({record.style})")
    return ", ".join(parts), NEGATIVE_PROMPT


def avatar_object_key(record_id: str, content_type: str, timestamp_ms: int) -> str:
    ext = _EXTENSIONS.get(content_type.lower(), "webp")
    return f"characters/{record_id}/avatar/corrected_{timestamp_ms}.{ext}"


class AvatarExecutor(AbstractRemediationExecutor):
    name = "avatar"
    description = "Generate and activate a missing avatar image"

    def __init__(
        self,
        characters: CharacterStore,
        images: ImageStore,
        image_generator: ImageGenerator,
        storage: ObjectStorage,
        settings: Optional[Settings] = None,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ) -> None:
        super().__init__(characters, settings)
        self.images = images
        self.image_generator = image_generator
        self.storage = storage
        self.clock_ms = clock_ms

    def _repair(self, record: CharacterRecord) -> RemediationOutcome:
        existing = self.images.find_active(record.id, AVATAR_IMAGE_TYPE)
        if existing is not None:
            log.info(
                f"Avatar already exists for {record.id}, skipping",
                extra={"record_id": record.id, "existing_image_id": existing.id},
            )
            return RemediationOutcome.ok(record.id, skipped=True)

        positive, negative = build_avatar_prompts(record)
        request = ImageGenerationRequest(
            positive_prompt=positive,
            negative_prompt=negative,
            style_tag=record.style,
            content_type_hint=detect_content_type(
                record.species_name, record.physical_characteristics, record.tags
            ),
            lora_references=[record.lora] if record.lora else [],
        )
        log.info(
            f"Generating avatar for {record.id}",
            extra={"record_id": record.id, "content_type_hint": request.content_type_hint},
        )
        image = self.image_generator.generate_avatar(request)

        key = avatar_object_key(record.id, image.content_type, self.clock_ms())
        uploaded = self.storage.upload_object(
            UploadRequest(
                key=key,
                body=image.data,
                content_type=image.content_type,
                cache_control=AVATAR_CACHE_CONTROL,
            )
        )
        log.info(
            f"Avatar uploaded for {record.id}",
            extra={"record_id": record.id, "key": key, "public_url": uploaded.public_url},
        )

        try:
            saved = self.images.replace_active(
                CharacterImage(
                    character_id=record.id,
                    type=AVATAR_IMAGE_TYPE,
                    url=uploaded.public_url,
                    key=key,
                    size_bytes=len(image.data),
                    content_type=image.content_type,
                    is_active=True,
                    age_rating=record.age_rating,
                    content_tags=list(record.content_tags),
                )
            )
        except Exception:
            self._discard_upload(record.id, key)
            raise

        log.info(
            f"Avatar activated for {record.id}",
            extra={"record_id": record.id, "image_id": saved.id, "url": saved.url},
        )
        return RemediationOutcome.ok(record.id)

    def _discard_upload(self, record_id: str, key: str) -> None:
        try:
            self.storage.delete_object(key)
        except Exception as exc:  # noqa: BLE001 - cleanup only; the original failure is reported
            log.warning(
                f"Could not remove orphaned avatar object {key}: {exc}",
                extra={"record_id": record_id, "key": key},
            )


__all__ = [
    "AVATAR_CACHE_CONTROL",
    "AvatarExecutor",
    "avatar_object_key",
    "build_avatar_prompts",
    "detect_content_type",
]
