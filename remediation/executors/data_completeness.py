"""
Data completeness executor.

Repairs a bot-owned character whose species is unset or whose first name is
still the placeholder: the generation collaborator synthesizes a full attribute
set, the species label is resolved against the taxonomy, and only the
placeholder or missing columns are filled (descriptive text is regenerated).
Identity and ownership columns are never written.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from remediation.config import Settings
from remediation.domain.models import CharacterRecord, GeneratedAttributes, GenerationRequest
from remediation.executors.abstract import AbstractRemediationExecutor, RemediationOutcome
from remediation.infrastructure.clients import CharacterGenerator
from remediation.infrastructure.repositories import CharacterStore
from remediation.resolution.resolver import SpeciesResolver
from remediation.utils.logging import get_logger

log = get_logger(__name__)

# Filled only when the record has no value yet.
_FILL_ONLY_FIELDS = ("last_name", "age", "gender")
# Regenerated descriptive text replaces the old text.
_DESCRIPTIVE_FIELDS = ("physical_characteristics", "personality", "history")


def build_seed_description(record: CharacterRecord, placeholder_first_name: str) -> str:
    """
    Seed text for the generation collaborator.

    Empty when the first name is still the placeholder, so a new name gets
    invented; otherwise the known name parts and physical traits, so they are
    preserved.
    """
    if record.first_name == placeholder_first_name:
        return ""
    parts = [record.first_name]
    if record.last_name:
        parts.append(record.last_name)
    if record.physical_characteristics:
        parts.append(record.physical_characteristics)
    return ". ".join(parts) + "."


def existing_attributes(record: CharacterRecord) -> Dict[str, Any]:
    attrs: Dict[str, Any] = {
        "firstName": record.first_name,
        "lastName": record.last_name,
        "age": record.age,
        "gender": record.gender,
        "species": record.species_name if record.species_id else None,
        "style": record.style,
        "physicalCharacteristics": record.physical_characteristics,
        "personality": record.personality,
        "history": record.history,
    }
    return {k: v for k, v in attrs.items() if v is not None}


def attribute_update(
    record: CharacterRecord,
    generated: GeneratedAttributes,
    species_id: str,
    placeholder_first_name: str,
    sentinel_id: str,
) -> Dict[str, Any]:
    """
    Columns written back to the character row.

    Only placeholder or missing values are replaced. An existing species is
    kept unless the new label resolved to a real taxonomy entry, and a missing
    generated value never clears a populated column.
    """
    fields: Dict[str, Any] = {}
    if record.first_name == placeholder_first_name and generated.first_name:
        fields["first_name"] = generated.first_name
    for name in _FILL_ONLY_FIELDS:
        value = getattr(generated, name)
        if getattr(record, name) is None and value is not None:
            fields[name] = value
    if record.species_id is None or species_id != sentinel_id:
        fields["species_id"] = species_id
    for name in _DESCRIPTIVE_FIELDS:
        value = getattr(generated, name)
        if value is not None:
            fields[name] = value
    return fields


class DataCompletenessExecutor(AbstractRemediationExecutor):
    name = "data-completeness"
    description = "Regenerate missing names and species for bot characters"

    def __init__(
        self,
        characters: CharacterStore,
        generator: CharacterGenerator,
        resolver: SpeciesResolver,
        settings: Optional[Settings] = None,
    ) -> None:
        super().__init__(characters, settings)
        self.generator = generator
        self.resolver = resolver

    def _repair(self, record: CharacterRecord) -> RemediationOutcome:
        request = GenerationRequest(
            seed_description=build_seed_description(record, self.settings.placeholder_first_name),
            image_analysis=None,
            existing_attributes=existing_attributes(record),
            language_hint=self.settings.language_hint,
            caller_context=None,
        )
        generated = self.generator.compile_character(request)

        species_id = self.resolver.resolve(generated.species, record.id)
        fields = attribute_update(
            record,
            generated,
            species_id,
            self.settings.placeholder_first_name,
            self.resolver.sentinel_id,
        )
        self.characters.update_attributes(record.id, fields)

        log.info(
            f"Character data corrected: {record.id}",
            extra={
                "record_id": record.id,
                "species_label": generated.species,
                "species_id": fields.get("species_id", record.species_id),
                "updated_fields": sorted(fields),
            },
        )
        return RemediationOutcome.ok(record.id)


__all__ = [
    "DataCompletenessExecutor",
    "attribute_update",
    "build_seed_description",
    "existing_attributes",
]
