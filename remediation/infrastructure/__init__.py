"""
Infrastructure package for the remediation jobs.

Centralizes I/O concerns: the PostgreSQL pool and repositories backing the
character catalog, and the HTTP clients for the generation, image and storage
collaborators. Keep this layer decoupled from selection, resolution and
orchestration logic.
"""

from remediation.infrastructure.clients import (
    CharacterGenerationClient,
    CharacterGenerator,
    CollaboratorError,
    ImageGenerationClient,
    ImageGenerator,
    ObjectStorage,
    StorageClient,
)
from remediation.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    pooled_connection,
)
from remediation.infrastructure.repositories import (
    CharacterStore,
    ImageStore,
    JobLogStore,
    PostgresCharacterStore,
    PostgresImageStore,
    PostgresJobLogStore,
    PostgresSpeciesCatalog,
    SpeciesCatalog,
)

__all__ = [
    "CharacterGenerationClient",
    "CharacterGenerator",
    "CharacterStore",
    "CollaboratorError",
    "ImageGenerationClient",
    "ImageGenerator",
    "ImageStore",
    "JobLogStore",
    "ObjectStorage",
    "PoolManager",
    "PostgresCharacterStore",
    "PostgresImageStore",
    "PostgresJobLogStore",
    "PostgresSpeciesCatalog",
    "SpeciesCatalog",
    "StorageClient",
    "build_dsn",
    "get_sync_connection",
    "pooled_connection",
]
