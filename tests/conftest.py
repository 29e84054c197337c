"""
Pytest configuration for the catalog remediation jobs.

Provides fixtures for:
- Settings with deterministic test values
- In-memory fakes for the catalog stores and external collaborators
- Database connection management and schema setup for integration tests
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional

import psycopg
import pytest

from remediation.config import Settings
from remediation.domain.models import (
    CharacterImage,
    CharacterRecord,
    GeneratedAttributes,
    GeneratedImage,
    GenerationRequest,
    ImageGenerationRequest,
    JobLogEntry,
    SpeciesEntry,
    UploadRequest,
    UploadResult,
)

BOT_USER_ID = "00000000-0000-0000-0000-000000000001"
OTHER_USER_ID = "11111111-2222-3333-4444-555555555555"
UNKNOWN_SPECIES_ID = "b09b64de-bc83-4c70-9008-0e4a6b43fa48"
PLACEHOLDER_FIRST_NAME = "Character"
BASE_CREATED_AT = datetime(2025, 1, 1, tzinfo=timezone.utc)

SPECIES = [
    SpeciesEntry(id=UNKNOWN_SPECIES_ID, name="Unknown"),
    SpeciesEntry(id="sp-elf", name="Elf"),
    SpeciesEntry(id="sp-human", name="Human"),
    SpeciesEntry(id="sp-nekomimi", name="Nekomimi"),
    SpeciesEntry(id="sp-vampire", name="Vampire"),
    SpeciesEntry(id="sp-dragon", name="Dragon"),
]


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "bot_user_id": BOT_USER_ID,
        "placeholder_first_name": PLACEHOLDER_FIRST_NAME,
        "unknown_species_id": UNKNOWN_SPECIES_ID,
        "correction_item_delay_seconds": 0.0,
        "species_synonyms_file": None,
        "language_hint": "en",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_character(character_id: str, minutes: int = 0, **overrides: Any) -> CharacterRecord:
    created = BASE_CREATED_AT + timedelta(minutes=minutes)
    values: Dict[str, Any] = {
        "id": character_id,
        "user_id": BOT_USER_ID,
        "first_name": PLACEHOLDER_FIRST_NAME,
        "species_id": None,
        "created_at": created,
        "updated_at": created,
    }
    values.update(overrides)
    return CharacterRecord(**values)


class FakeCharacterStore:
    def __init__(self, records: Optional[List[CharacterRecord]] = None, images: Any = None) -> None:
        self.records: Dict[str, CharacterRecord] = {r.id: r for r in records or []}
        self.images = images
        self.updates: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.update_error: Optional[Exception] = None

    def _ordered(self) -> List[CharacterRecord]:
        return sorted(self.records.values(), key=lambda r: (r.created_at, r.id))

    def find_incomplete(
        self, owner_id: str, placeholder_first_name: str, limit: int
    ) -> List[CharacterRecord]:
        if self.fail_with:
            raise self.fail_with
        found = [
            r
            for r in self._ordered()
            if r.user_id == owner_id
            and (r.species_id is None or r.first_name == placeholder_first_name)
        ]
        return found[:limit]

    def find_without_active_image(
        self, owner_id: str, image_type: str, limit: int
    ) -> List[CharacterRecord]:
        if self.fail_with:
            raise self.fail_with
        found = [
            r
            for r in self._ordered()
            if r.user_id == owner_id
            and (self.images is None or self.images.find_active(r.id, image_type) is None)
        ]
        return found[:limit]

    def get(self, character_id: str) -> Optional[CharacterRecord]:
        if self.fail_with:
            raise self.fail_with
        return self.records.get(character_id)

    def update_attributes(self, character_id: str, fields: Mapping[str, Any]) -> None:
        if self.update_error:
            raise self.update_error
        if character_id not in self.records:
            raise LookupError(f"Character {character_id} not found")
        self.updates.append((character_id, dict(fields)))
        self.records[character_id] = self.records[character_id].model_copy(update=dict(fields))


class FakeSpeciesCatalog:
    def __init__(self, entries: Optional[List[SpeciesEntry]] = None) -> None:
        self.entries = list(SPECIES if entries is None else entries)
        self.calls = 0
        self.fail_with: Optional[Exception] = None

    def list_species(self) -> List[SpeciesEntry]:
        self.calls += 1
        if self.fail_with:
            raise self.fail_with
        return list(self.entries)


class FakeImageStore:
    def __init__(self) -> None:
        self.images: List[CharacterImage] = []
        self.replace_error: Optional[Exception] = None

    def find_active(self, character_id: str, image_type: str) -> Optional[CharacterImage]:
        for image in self.images:
            if image.character_id == character_id and image.type == image_type and image.is_active:
                return image
        return None

    def active_count(self, character_id: str, image_type: str) -> int:
        return sum(
            1
            for i in self.images
            if i.character_id == character_id and i.type == image_type and i.is_active
        )

    def replace_active(self, image: CharacterImage) -> CharacterImage:
        if self.replace_error:
            raise self.replace_error
        self.images = [
            i.model_copy(update={"is_active": False})
            if i.character_id == image.character_id and i.type == image.type
            else i
            for i in self.images
        ]
        saved = image.model_copy(update={"id": len(self.images) + 1, "is_active": True})
        self.images.append(saved)
        return saved


class FakeJobLogStore:
    def __init__(self) -> None:
        self.entries: List[JobLogEntry] = []
        self.fail_with: Optional[Exception] = None

    def append(self, entry: JobLogEntry) -> JobLogEntry:
        if self.fail_with:
            raise self.fail_with
        saved = entry.model_copy(update={"id": len(self.entries) + 1})
        self.entries.append(saved)
        return saved

    def recent(self, limit: int = 20, job_type: Optional[str] = None) -> List[JobLogEntry]:
        rows = [e for e in self.entries if job_type is None or e.job_type == job_type]
        return list(reversed(rows))[:limit]


class FakeCharacterGenerator:
    def __init__(self, species: Optional[str] = "Dark Elf", first_name: str = "Lyra") -> None:
        self.requests: List[GenerationRequest] = []
        self.species = species
        self.first_name = first_name
        self.fail_with: Optional[Exception] = None

    def compile_character(self, request: GenerationRequest) -> GeneratedAttributes:
        self.requests.append(request)
        if self.fail_with:
            raise self.fail_with
        return GeneratedAttributes(
            first_name=self.first_name,
            last_name="Moonwhisper",
            age=120,
            gender="FEMALE",
            species=self.species,
            style="ANIME",
            physical_characteristics="silver hair",
            personality="curious",
            history="raised in the deep woods",
        )


class FakeImageGenerator:
    def __init__(self, data: bytes = b"RIFF-webp-bytes", content_type: str = "image/webp") -> None:
        self.requests: List[ImageGenerationRequest] = []
        self.data = data
        self.content_type = content_type
        self.fail_with: Optional[Exception] = None

    def generate_avatar(self, request: ImageGenerationRequest) -> GeneratedImage:
        self.requests.append(request)
        if self.fail_with:
            raise self.fail_with
        return GeneratedImage(data=self.data, content_type=self.content_type)


class FakeObjectStorage:
    def __init__(self) -> None:
        self.uploads: List[UploadRequest] = []
        self.deleted: List[str] = []
        self.fail_with: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None

    def upload_object(self, request: UploadRequest) -> UploadResult:
        if self.fail_with:
            raise self.fail_with
        self.uploads.append(request)
        return UploadResult(public_url=f"https://cdn.test/{request.key}")

    def delete_object(self, key: str) -> None:
        if self.delete_error:
            raise self.delete_error
        self.deleted.append(key)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def character_factory() -> Callable[..., CharacterRecord]:
    return make_character


@pytest.fixture
def species_catalog() -> FakeSpeciesCatalog:
    return FakeSpeciesCatalog()


@pytest.fixture
def image_store() -> FakeImageStore:
    return FakeImageStore()


@pytest.fixture
def character_store(image_store: FakeImageStore) -> FakeCharacterStore:
    return FakeCharacterStore(images=image_store)


@pytest.fixture
def job_log_store() -> FakeJobLogStore:
    return FakeJobLogStore()


@pytest.fixture
def character_generator() -> FakeCharacterGenerator:
    return FakeCharacterGenerator()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def object_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


# Integration fixtures


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return make_settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "character_catalog"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the catalog schema exists by running db/init.sql (idempotent).
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_catalog(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the catalog tables before and after each test function.
    """
    truncate = (
        "TRUNCATE TABLE public.correction_job_logs, public.character_images,"
        " public.character_tags, public.characters, public.species,"
        " public.attires, public.loras RESTART IDENTITY CASCADE;"
    )
    with db_connection.cursor() as cur:
        cur.execute(truncate)
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute(truncate)
    db_connection.commit()


@pytest.fixture(scope="function")
def connection_factory(test_dsn: str, clean_catalog) -> Callable[[], Any]:
    """
    Connection factory for the Postgres repositories that bypasses the shared pool.

    Commits on clean exit, rolls back if the block raises.
    """
    del clean_catalog
    return lambda: psycopg.connect(test_dsn)
