from __future__ import annotations

import pytest

from remediation.domain.models import CharacterImage
from remediation.selectors import IncompleteDataSelector, MissingAvatarSelector

OTHER_USER_ID = "11111111-2222-3333-4444-555555555555"


def _seed(character_store, character_factory) -> None:
    for record in [
        character_factory("c-3", minutes=3),
        character_factory("c-1", minutes=1, first_name="Aiko"),
        character_factory("c-2", minutes=2, first_name="Bram", species_id="sp-elf"),
        character_factory("c-4", minutes=4, first_name="Celes", species_id="sp-elf"),
        character_factory("c-0", minutes=0, user_id=OTHER_USER_ID),
    ]:
        character_store.records[record.id] = record


def test_incomplete_selector_returns_bot_defects_oldest_first(
    character_store, character_factory, settings
) -> None:
    _seed(character_store, character_factory)
    selector = IncompleteDataSelector(character_store, settings=settings)

    found = selector.find_defective(limit=50)

    # c-2 and c-4 are complete; c-0 is owned by someone else
    assert [r.id for r in found] == ["c-1", "c-3"]


def test_incomplete_selector_honours_limit(character_store, character_factory, settings) -> None:
    _seed(character_store, character_factory)
    selector = IncompleteDataSelector(character_store, settings=settings)

    assert [r.id for r in selector.find_defective(limit=1)] == ["c-1"]


def test_selectors_never_return_foreign_records(character_store, character_factory, settings) -> None:
    class _LeakyStore:
        def find_incomplete(self, owner_id, placeholder_first_name, limit):
            return [character_factory("x-1", user_id=OTHER_USER_ID), character_factory("c-1")]

        def find_without_active_image(self, owner_id, image_type, limit):
            return [character_factory("x-2", user_id=OTHER_USER_ID)]

    assert [r.id for r in IncompleteDataSelector(_LeakyStore(), settings=settings).find_defective()] == [
        "c-1"
    ]
    assert MissingAvatarSelector(_LeakyStore(), settings=settings).find_defective() == []


def test_selector_returns_empty_list_on_store_error(character_store, settings) -> None:
    character_store.fail_with = RuntimeError("connection reset")

    assert IncompleteDataSelector(character_store, settings=settings).find_defective() == []
    assert MissingAvatarSelector(character_store, settings=settings).find_defective() == []


@pytest.mark.parametrize("limit", [0, -5])
def test_selector_rejects_non_positive_limit(character_store, settings, limit) -> None:
    with pytest.raises(ValueError, match="positive"):
        IncompleteDataSelector(character_store, settings=settings).find_defective(limit)
    with pytest.raises(ValueError, match="positive"):
        MissingAvatarSelector(character_store, settings=settings).find_defective(limit)


def test_missing_avatar_selector_skips_characters_with_active_avatar(
    character_store, image_store, character_factory, settings
) -> None:
    _seed(character_store, character_factory)
    image_store.images.append(CharacterImage(character_id="c-1", url="https://cdn.test/a.webp"))
    image_store.images.append(
        CharacterImage(character_id="c-2", url="https://cdn.test/b.webp", is_active=False)
    )
    selector = MissingAvatarSelector(character_store, settings=settings)

    found = selector.find_defective()

    assert [r.id for r in found] == ["c-2", "c-3", "c-4"]
