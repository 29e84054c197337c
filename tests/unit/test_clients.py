from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from remediation.domain.models import GenerationRequest, ImageGenerationRequest, UploadRequest
from remediation.infrastructure.clients import (
    CharacterGenerationClient,
    CollaboratorError,
    ImageGenerationClient,
    StorageClient,
)

BASE_URL = "http://collab.test/"
TIMEOUT_SECONDS = 7.5


def _response(status: int = 200, body: bytes = b"", content_type: Optional[str] = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.url = BASE_URL
    if content_type:
        resp.headers["Content-Type"] = content_type
    return resp


class _FakeSession:
    """Records every request and replays a canned response or exception."""

    def __init__(self, response: Optional[requests.Response] = None, error: Optional[Exception] = None) -> None:
        self.headers: Dict[str, str] = {}
        self.response = response if response is not None else _response()
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.error:
            raise self.error
        return self.response


def test_compile_character_posts_camel_case_payload_and_parses_body() -> None:
    body = json.dumps({"firstName": "Lyra", "species": "Dark Elf", "age": 120, "unused": 1}).encode()
    session = _FakeSession(_response(body=body, content_type="application/json"))
    client = CharacterGenerationClient(BASE_URL, TIMEOUT_SECONDS, api_key="secret", session=session)

    generated = client.compile_character(
        GenerationRequest(seed_description="", existing_attributes={"firstName": "Character"})
    )

    assert generated.first_name == "Lyra"
    assert generated.species == "Dark Elf"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://collab.test/characters/compile"
    assert call["timeout"] == TIMEOUT_SECONDS
    assert call["json"]["seedDescription"] == ""
    assert call["json"]["existingAttributes"] == {"firstName": "Character"}
    assert session.headers["Authorization"] == "Bearer secret"


def test_malformed_generation_body_is_a_collaborator_error() -> None:
    session = _FakeSession(_response(body=b"not json"))
    client = CharacterGenerationClient(BASE_URL, TIMEOUT_SECONDS, session=session)

    with pytest.raises(CollaboratorError, match="malformed response"):
        client.compile_character(GenerationRequest(seed_description=None))


def test_http_error_status_is_translated() -> None:
    session = _FakeSession(_response(status=502))
    client = CharacterGenerationClient(BASE_URL, TIMEOUT_SECONDS, session=session)

    with pytest.raises(CollaboratorError) as excinfo:
        client.compile_character(GenerationRequest(seed_description=None))

    assert excinfo.value.status_code == 502
    assert excinfo.value.service == "character-generation"


@pytest.mark.parametrize(
    ("error", "fragment"),
    [
        (requests.exceptions.Timeout("slow"), "timed out"),
        (requests.exceptions.ConnectionError("refused"), "request error"),
    ],
)
def test_transport_errors_are_translated(error, fragment) -> None:
    client = ImageGenerationClient(BASE_URL, TIMEOUT_SECONDS, session=_FakeSession(error=error))

    with pytest.raises(CollaboratorError, match=fragment):
        client.generate_avatar(ImageGenerationRequest(positive_prompt="1girl", negative_prompt="blurry"))


def test_generate_avatar_returns_bytes_and_content_type() -> None:
    session = _FakeSession(_response(body=b"\x89PNG", content_type="image/png; charset=binary"))
    client = ImageGenerationClient(BASE_URL, TIMEOUT_SECONDS, session=session)

    image = client.generate_avatar(
        ImageGenerationRequest(positive_prompt="1girl", negative_prompt="blurry", style_tag="ANIME")
    )

    assert image.data == b"\x89PNG"
    assert image.content_type == "image/png"
    assert session.calls[0]["json"]["positivePrompt"] == "1girl"
    assert session.calls[0]["json"]["styleTag"] == "ANIME"


def test_empty_image_body_is_a_collaborator_error() -> None:
    client = ImageGenerationClient(BASE_URL, TIMEOUT_SECONDS, session=_FakeSession(_response(body=b"")))

    with pytest.raises(CollaboratorError, match="empty image body"):
        client.generate_avatar(ImageGenerationRequest(positive_prompt="1boy", negative_prompt=""))


def test_upload_object_puts_body_with_cache_headers() -> None:
    body = json.dumps({"publicUrl": "https://cdn.test/characters/c-1/avatar/a.webp"}).encode()
    session = _FakeSession(_response(body=body))
    client = StorageClient(BASE_URL, TIMEOUT_SECONDS, session=session)

    result = client.upload_object(
        UploadRequest(
            key="characters/c-1/avatar/a.webp",
            body=b"img",
            content_type="image/webp",
            cache_control="public, max-age=31536000",
        )
    )

    assert result.public_url == "https://cdn.test/characters/c-1/avatar/a.webp"
    call = session.calls[0]
    assert call["method"] == "PUT"
    assert call["url"] == "http://collab.test/objects/characters/c-1/avatar/a.webp"
    assert call["data"] == b"img"
    assert call["headers"] == {
        "Content-Type": "image/webp",
        "Cache-Control": "public, max-age=31536000",
    }


def test_delete_object_issues_delete() -> None:
    session = _FakeSession()
    client = StorageClient(BASE_URL, TIMEOUT_SECONDS, session=session)

    client.delete_object("characters/c-1/avatar/a.webp")

    assert session.calls[0]["method"] == "DELETE"
    assert session.calls[0]["url"].endswith("/objects/characters/c-1/avatar/a.webp")
