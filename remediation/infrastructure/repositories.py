"""
PostgreSQL repositories for the character catalog.

Each repository is a thin, stateless wrapper around parameterized SQL. The
Protocols at the top of the module are the seams the selectors, executors,
resolver and orchestrator depend on; the Postgres classes below implement them
on psycopg 3 with `dict_row` cursors.

Repositories do not encode remediation decisions. The only multi-statement
write (`PostgresImageStore.replace_active`) runs inside one transaction.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from psycopg import Connection, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from remediation.domain.models import (
    CharacterImage,
    CharacterRecord,
    JobLogEntry,
    LoraReference,
    SpeciesEntry,
)
from remediation.infrastructure.db_factory import pooled_connection

ConnectionFactory = Callable[[], AbstractContextManager[Connection]]

# Attribute columns remediation is allowed to overwrite. Identity, ownership,
# visibility and rating columns are deliberately absent.
UPDATABLE_CHARACTER_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "age",
        "gender",
        "species_id",
        "style",
        "physical_characteristics",
        "personality",
        "history",
    }
)

_CHARACTER_SELECT = """
SELECT c.id, c.user_id, c.first_name, c.last_name, c.age, c.gender,
       c.species_id, s.name AS species_name, c.style,
       c.physical_characteristics, c.personality, c.history, c.reference,
       c.visibility, c.age_rating, c.content_tags,
       a.description AS main_attire,
       l.name AS lora_name, l.filepath_relative AS lora_filepath_relative,
       ARRAY(
           SELECT t.name FROM public.character_tags t
           WHERE t.character_id = c.id ORDER BY t.name
       ) AS tags,
       c.created_at, c.updated_at
FROM public.characters c
LEFT JOIN public.species s ON s.id = c.species_id
LEFT JOIN public.attires a ON a.id = c.main_attire_id
LEFT JOIN public.loras l ON l.id = c.lora_id
"""


@runtime_checkable
class CharacterStore(Protocol):
    """Read and attribute-level write access to characters."""

    def find_incomplete(
        self, owner_id: str, placeholder_first_name: str, limit: int
    ) -> List[CharacterRecord]:
        """Owner's characters with no species or a placeholder first name, oldest first."""
        ...

    def find_without_active_image(
        self, owner_id: str, image_type: str, limit: int
    ) -> List[CharacterRecord]:
        """Owner's characters lacking an active image of `image_type`, oldest first."""
        ...

    def get(self, character_id: str) -> Optional[CharacterRecord]:
        ...

    def update_attributes(self, character_id: str, fields: Mapping[str, Any]) -> None:
        ...


@runtime_checkable
class SpeciesCatalog(Protocol):
    """Read-only access to the species taxonomy."""

    def list_species(self) -> List[SpeciesEntry]:
        ...


@runtime_checkable
class ImageStore(Protocol):
    def find_active(self, character_id: str, image_type: str) -> Optional[CharacterImage]:
        ...

    def replace_active(self, image: CharacterImage) -> CharacterImage:
        """Deactivate every image of the same type and insert `image`, atomically."""
        ...


@runtime_checkable
class JobLogStore(Protocol):
    def append(self, entry: JobLogEntry) -> JobLogEntry:
        ...

    def recent(self, limit: int = 20, job_type: Optional[str] = None) -> List[JobLogEntry]:
        ...


def _character_from_row(row: Dict[str, Any]) -> CharacterRecord:
    lora = None
    if row.get("lora_name"):
        lora = LoraReference(
            name=row["lora_name"],
            filepath_relative=row.get("lora_filepath_relative") or "",
        )
    return CharacterRecord(
        id=row["id"],
        user_id=row["user_id"],
        first_name=row["first_name"],
        last_name=row.get("last_name"),
        age=row.get("age"),
        gender=row.get("gender"),
        species_id=row.get("species_id"),
        species_name=row.get("species_name"),
        style=row.get("style"),
        physical_characteristics=row.get("physical_characteristics"),
        personality=row.get("personality"),
        history=row.get("history"),
        reference=row.get("reference"),
        visibility=row.get("visibility") or "PUBLIC",
        age_rating=row.get("age_rating") or "L",
        content_tags=list(row.get("content_tags") or []),
        tags=list(row.get("tags") or []),
        main_attire=row.get("main_attire"),
        lora=lora,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresCharacterStore(CharacterStore):
    def __init__(self, connection_factory: ConnectionFactory = pooled_connection) -> None:
        self._connect = connection_factory

    def _select_many(self, where: str, params: tuple) -> List[CharacterRecord]:
        query = f"{_CHARACTER_SELECT} WHERE {where} ORDER BY c.created_at ASC, c.id ASC LIMIT %s"
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                return [_character_from_row(row) for row in cur.fetchall()]

    def find_incomplete(
        self, owner_id: str, placeholder_first_name: str, limit: int
    ) -> List[CharacterRecord]:
        return self._select_many(
            "c.user_id = %s AND (c.species_id IS NULL OR c.first_name = %s)",
            (owner_id, placeholder_first_name, limit),
        )

    def find_without_active_image(
        self, owner_id: str, image_type: str, limit: int
    ) -> List[CharacterRecord]:
        return self._select_many(
            "c.user_id = %s AND NOT EXISTS ("
            " SELECT 1 FROM public.character_images i"
            " WHERE i.character_id = c.id AND i.type = %s AND i.is_active)",
            (owner_id, image_type, limit),
        )

    def get(self, character_id: str) -> Optional[CharacterRecord]:
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(f"{_CHARACTER_SELECT} WHERE c.id = %s", (character_id,))
                row = cur.fetchone()
        return _character_from_row(row) if row else None

    def update_attributes(self, character_id: str, fields: Mapping[str, Any]) -> None:
        """
        Overwrite attribute columns of one character.

        Raises
        ------
        ValueError
            If `fields` is empty or names a column outside UPDATABLE_CHARACTER_FIELDS.
        LookupError
            If no character has the given id.
        """
        if not fields:
            raise ValueError("No fields to update")
        forbidden = set(fields) - UPDATABLE_CHARACTER_FIELDS
        if forbidden:
            raise ValueError(f"Refusing to update non-attribute fields: {sorted(forbidden)}")

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name))
            for name in sorted(fields)
        )
        query = sql.SQL(
            "UPDATE public.characters SET {assignments}, updated_at = now() WHERE id = {id}"
        ).format(assignments=assignments, id=sql.Placeholder("character_id"))

        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(query, {**fields, "character_id": character_id})
                if cur.rowcount == 0:
                    raise LookupError(f"Character {character_id} not found")


class PostgresSpeciesCatalog(SpeciesCatalog):
    def __init__(self, connection_factory: ConnectionFactory = pooled_connection) -> None:
        self._connect = connection_factory

    def list_species(self) -> List[SpeciesEntry]:
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, name FROM public.species ORDER BY lower(name), id")
                return [SpeciesEntry(id=row["id"], name=row["name"]) for row in cur.fetchall()]


class PostgresImageStore(ImageStore):
    def __init__(self, connection_factory: ConnectionFactory = pooled_connection) -> None:
        self._connect = connection_factory

    def find_active(self, character_id: str, image_type: str) -> Optional[CharacterImage]:
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT * FROM public.character_images"
                    " WHERE character_id = %s AND type = %s AND is_active"
                    " ORDER BY created_at DESC LIMIT 1",
                    (character_id, image_type),
                )
                row = cur.fetchone()
        return CharacterImage(**row) if row else None

    def replace_active(self, image: CharacterImage) -> CharacterImage:
        with self._connect() as conn:
            with conn.transaction():
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        "UPDATE public.character_images SET is_active = FALSE"
                        " WHERE character_id = %s AND type = %s",
                        (image.character_id, image.type),
                    )
                    cur.execute(
                        "INSERT INTO public.character_images"
                        " (character_id, type, url, key, size_bytes, content_type,"
                        "  is_active, age_rating, content_tags)"
                        " VALUES (%s, %s, %s, %s, %s, %s, TRUE, %s, %s)"
                        " RETURNING *",
                        (
                            image.character_id,
                            image.type,
                            image.url,
                            image.key,
                            image.size_bytes,
                            image.content_type,
                            image.age_rating,
                            list(image.content_tags),
                        ),
                    )
                    row = cur.fetchone()
        return CharacterImage(**row)


class PostgresJobLogStore(JobLogStore):
    def __init__(self, connection_factory: ConnectionFactory = pooled_connection) -> None:
        self._connect = connection_factory

    def append(self, entry: JobLogEntry) -> JobLogEntry:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO public.correction_job_logs"
                    " (job_type, target_count, success_count, failure_count, duration,"
                    "  completed_at, errors, metadata)"
                    " VALUES (%s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
                    (
                        entry.job_type,
                        entry.target_count,
                        entry.success_count,
                        entry.failure_count,
                        entry.duration_seconds,
                        entry.completed_at,
                        Jsonb(list(entry.errors)) if entry.errors else None,
                        Jsonb(entry.metadata),
                    ),
                )
                (new_id,) = cur.fetchone()
        return entry.model_copy(update={"id": new_id})

    def recent(self, limit: int = 20, job_type: Optional[str] = None) -> List[JobLogEntry]:
        query = "SELECT * FROM public.correction_job_logs"
        params: tuple = ()
        if job_type:
            query += " WHERE job_type = %s"
            params = (job_type,)
        query += " ORDER BY completed_at DESC, id DESC LIMIT %s"
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, (*params, limit))
                rows = cur.fetchall()
        return [
            JobLogEntry(
                id=row["id"],
                job_type=row["job_type"],
                target_count=row["target_count"],
                success_count=row["success_count"],
                failure_count=row["failure_count"],
                duration_seconds=row["duration"],
                completed_at=row["completed_at"],
                errors=row["errors"],
                metadata=row["metadata"] or {},
            )
            for row in rows
        ]


__all__ = [
    "UPDATABLE_CHARACTER_FIELDS",
    "CharacterStore",
    "ImageStore",
    "JobLogStore",
    "PostgresCharacterStore",
    "PostgresImageStore",
    "PostgresJobLogStore",
    "PostgresSpeciesCatalog",
    "SpeciesCatalog",
]
