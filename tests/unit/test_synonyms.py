from __future__ import annotations

import json
from pathlib import Path

import pytest

from remediation.resolution.synonyms import (
    SPECIES_SYNONYMS,
    inert_synonyms,
    load_synonyms,
    normalize_label,
)


def test_builtin_table_keys_are_normalized() -> None:
    assert all(key == normalize_label(key) for key in SPECIES_SYNONYMS)
    assert SPECIES_SYNONYMS["dark elf"] == "Elf"
    assert SPECIES_SYNONYMS["catgirl"] == "Nekomimi"


def test_normalize_label_trims_and_lowercases() -> None:
    assert normalize_label("  Dark ELF \n") == "dark elf"
    assert normalize_label(None) == ""


def test_load_synonyms_without_file_returns_copy_of_builtins() -> None:
    synonyms = load_synonyms()
    synonyms["dark elf"] = "Drow"

    assert SPECIES_SYNONYMS["dark elf"] == "Elf"


def test_load_synonyms_merges_file_over_builtins(tmp_path: Path) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text(json.dumps({"  Sea Elf ": "Elf", "drow": "Drow"}), encoding="utf-8")

    synonyms = load_synonyms(path)

    assert synonyms["sea elf"] == "Elf"
    assert synonyms["drow"] == "Drow"
    assert synonyms["catgirl"] == "Nekomimi"


def test_load_synonyms_rejects_non_object_file(tmp_path: Path) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text(json.dumps(["elf"]), encoding="utf-8")

    with pytest.raises(ValueError, match="JSON object"):
        load_synonyms(path)


def test_inert_synonyms_lists_variants_with_missing_canonical() -> None:
    synonyms = {"dark elf": "Elf", "catgirl": "Nekomimi", "furry": "Unknown"}

    assert inert_synonyms(synonyms, ["elf", "Human"]) == ["catgirl", "furry"]
