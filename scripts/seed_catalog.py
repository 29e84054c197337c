"""
Seed script for local remediation runs.

Creates the catalog schema, loads a species taxonomy (always including the
"Unknown" sentinel and "Human") and inserts deterministic pseudo-random
bot-owned characters, some with a placeholder name, some without species, so
both remediation jobs have candidates.
"""

from __future__ import annotations

import random
import sys
import time
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

import psycopg
import typer

from remediation.config import get_settings
from remediation.infrastructure.db_factory import get_sync_connection

app = typer.Typer(help="Seed the character catalog with a taxonomy and defective bot characters.")

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "db" / "init.sql"
SPECIES_NAMESPACE = uuid.UUID("6f1c2d4e-5a7b-4c8d-9e0f-1a2b3c4d5e6f")

SPECIES_NAMES = [
    "Alien",
    "Angel",
    "Arachne",
    "Centaur",
    "Demon",
    "Dragon",
    "Dwarf",
    "Elf",
    "Fairy",
    "Goblin",
    "Human",
    "Inumimi",
    "Kitsune",
    "Lamia",
    "Merfolk",
    "Nekomimi",
    "Orc",
    "Robot",
    "Spirit",
    "Vampire",
    "Werewolf",
]
FIRST_NAMES = ["Aiko", "Bram", "Celes", "Darian", "Elowen", "Fenn", "Gwyn", "Hiro", "Isolde", "Juno"]
LAST_NAMES = ["Ashdown", "Blackwood", "Corvin", "Duskmere", None]
GENDERS = ["FEMALE", "MALE", "NON_BINARY"]
TRAITS = [
    "silver hair and amber eyes",
    "tall, with freckles and a braided ponytail",
    "cat ears and a long striped tail",
    "pale skin and crimson eyes",
    None,
]


def species_rows(unknown_species_id: str) -> list[tuple[str, str]]:
    """(id, name) pairs; ids are stable across runs."""
    rows = [(unknown_species_id, "Unknown")]
    rows.extend((str(uuid.uuid5(SPECIES_NAMESPACE, name.lower())), name) for name in SPECIES_NAMES)
    return rows


def character_rows(
    count: int,
    seed: int,
    owner_id: str,
    placeholder_first_name: str,
    species_ids: list[str],
) -> list[tuple]:
    """
    Deterministic character rows; roughly a third have a placeholder name and a
    third have no species.
    """
    rng = random.Random(seed)
    base = datetime(2025, 1, 1, tzinfo=UTC)
    rows: list[tuple] = []
    for i in range(count):
        defect = i % 3
        first_name = placeholder_first_name if defect == 0 else rng.choice(FIRST_NAMES)
        species_id = None if defect == 1 else rng.choice(species_ids)
        created = base + timedelta(minutes=i)
        rows.append(
            (
                str(uuid.UUID(int=rng.getrandbits(128), version=4)),
                owner_id,
                first_name,
                rng.choice(LAST_NAMES),
                rng.randint(18, 300),
                rng.choice(GENDERS),
                species_id,
                rng.choice(TRAITS),
                created,
                created,
            )
        )
    return rows


def _load(conn: psycopg.Connection, species: list[tuple[str, str]], characters: list[tuple]) -> None:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
        cur.executemany(
            "INSERT INTO public.species (id, name) VALUES (%s, %s) ON CONFLICT DO NOTHING",
            species,
        )
        cur.executemany(
            "INSERT INTO public.characters"
            " (id, user_id, first_name, last_name, age, gender, species_id,"
            "  physical_characteristics, created_at, updated_at)"
            " VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s) ON CONFLICT DO NOTHING",
            characters,
        )
    conn.commit()


@app.command()
def main(
    characters: int = typer.Option(
        30,
        "--characters",
        "-c",
        min=0,
        help="Number of bot characters to insert.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
) -> None:
    """
    Create the schema and seed the taxonomy and defective characters.
    """
    settings = get_settings()
    start = time.perf_counter()

    species = species_rows(settings.unknown_species_id)
    matchable_ids = [sid for sid, _ in species if sid != settings.unknown_species_id]
    rows = character_rows(
        characters,
        seed=seed,
        owner_id=settings.bot_user_id,
        placeholder_first_name=settings.placeholder_first_name,
        species_ids=matchable_ids,
    )

    target = "custom DSN" if dsn else f"{settings.db_host}:{settings.db_port}/{settings.db_name}"
    typer.echo(f"Seeding {len(species)} species and {len(rows)} characters into {target}")
    with get_sync_connection(dsn) as conn:
        _load(conn, species, rows)

    typer.echo(f"Seed completed in {time.perf_counter() - start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
