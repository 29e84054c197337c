"""
HTTP clients for the external collaborators used during remediation.

- CharacterGenerationClient: synthesizes missing character attributes.
- ImageGenerationClient: renders avatar images from prompts.
- StorageClient: uploads (and removes) objects in the public bucket.

Every request carries its own timeout. Failures of any kind (timeout,
connection error, non-2xx status, malformed body) are raised as
`CollaboratorError`, which the executors turn into per-item failures. Nothing
here retries.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable
from urllib.parse import quote

import requests
from pydantic import ValidationError

from remediation.config import Settings, get_settings
from remediation.domain.models import (
    GeneratedAttributes,
    GeneratedImage,
    GenerationRequest,
    ImageGenerationRequest,
    UploadRequest,
    UploadResult,
)
from remediation.utils.logging import get_logger

log = get_logger(__name__)


class CollaboratorError(RuntimeError):
    """Raised when an external collaborator call fails."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


@runtime_checkable
class CharacterGenerator(Protocol):
    def compile_character(self, request: GenerationRequest) -> GeneratedAttributes:
        ...


@runtime_checkable
class ImageGenerator(Protocol):
    def generate_avatar(self, request: ImageGenerationRequest) -> GeneratedImage:
        ...


@runtime_checkable
class ObjectStorage(Protocol):
    def upload_object(self, request: UploadRequest) -> UploadResult:
        ...

    def delete_object(self, key: str) -> None:
        ...


class _HttpCollaborator:
    """Shared session handling and error translation."""

    service: str = "collaborator"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self.timeout_seconds, **kwargs)
            resp.raise_for_status()
            return resp
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            log.error(
                f"{self.service} request failed",
                extra={"service": self.service, "url": url, "status": status},
            )
            raise CollaboratorError(self.service, f"request failed ({status}): {url}", status) from e
        except requests.exceptions.Timeout as e:
            log.warning(
                f"{self.service} request timed out",
                extra={"service": self.service, "url": url, "timeout": self.timeout_seconds},
            )
            raise CollaboratorError(
                self.service, f"request timed out after {self.timeout_seconds}s: {url}"
            ) from e
        except requests.exceptions.RequestException as e:
            log.error(
                f"{self.service} request error",
                extra={"service": self.service, "url": url, "error": str(e)},
            )
            raise CollaboratorError(self.service, f"request error: {e}") from e


class CharacterGenerationClient(_HttpCollaborator, CharacterGenerator):
    service = "character-generation"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CharacterGenerationClient":
        settings = settings or get_settings()
        return cls(
            settings.generation_api_url,
            settings.generation_timeout_seconds,
            api_key=settings.collaborator_api_key,
        )

    def compile_character(self, request: GenerationRequest) -> GeneratedAttributes:
        resp = self._request(
            "POST",
            "/characters/compile",
            json=request.model_dump(by_alias=True, mode="json"),
        )
        try:
            return GeneratedAttributes.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise CollaboratorError(self.service, f"malformed response: {e}") from e


class ImageGenerationClient(_HttpCollaborator, ImageGenerator):
    service = "image-generation"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ImageGenerationClient":
        settings = settings or get_settings()
        return cls(
            settings.image_api_url,
            settings.image_timeout_seconds,
            api_key=settings.collaborator_api_key,
        )

    def generate_avatar(self, request: ImageGenerationRequest) -> GeneratedImage:
        resp = self._request(
            "POST",
            "/avatars",
            json=request.model_dump(by_alias=True, mode="json"),
        )
        if not resp.content:
            raise CollaboratorError(self.service, "empty image body")
        content_type = resp.headers.get("Content-Type", "image/webp").split(";")[0].strip()
        return GeneratedImage(data=resp.content, content_type=content_type)


class StorageClient(_HttpCollaborator, ObjectStorage):
    service = "object-storage"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StorageClient":
        settings = settings or get_settings()
        return cls(
            settings.storage_api_url,
            settings.storage_timeout_seconds,
            api_key=settings.collaborator_api_key,
        )

    def upload_object(self, request: UploadRequest) -> UploadResult:
        resp = self._request(
            "PUT",
            f"/objects/{quote(request.key)}",
            data=request.body,
            headers={
                "Content-Type": request.content_type,
                "Cache-Control": request.cache_control,
            },
        )
        try:
            return UploadResult.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise CollaboratorError(self.service, f"malformed response: {e}") from e

    def delete_object(self, key: str) -> None:
        self._request("DELETE", f"/objects/{quote(key)}")


__all__ = [
    "CharacterGenerationClient",
    "CharacterGenerator",
    "CollaboratorError",
    "ImageGenerationClient",
    "ImageGenerator",
    "ObjectStorage",
    "StorageClient",
]
