"""
Species synonym table.

Maps lower-cased free-text variants (colloquial names, compound descriptors,
sub-races) to a canonical species name. A synonym is only useful if its
canonical name exists in the taxonomy; `inert_synonyms` reports the ones that
do not so they can be fixed in the table or the taxonomy.

Deployments can extend or override the built-in table with a JSON object file
(`SPECIES_SYNONYMS_FILE`).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

SPECIES_SYNONYMS: Dict[str, str] = {
    # Japanese/Asian mythological creatures
    "wolf yokai": "Yokai",
    "fox spirit": "Kitsune",
    "fox yokai": "Kitsune",
    "foxgirl": "Kitsune",
    "cat girl": "Nekomimi",
    "catgirl": "Nekomimi",
    "cat person": "Nekomimi",
    "nekomimi": "Nekomimi",
    "dog girl": "Inumimi",
    "doggirl": "Inumimi",
    "dog person": "Inumimi",
    "inumimi": "Inumimi",
    "rabbit girl": "Usagimimi",
    "rabbitgirl": "Usagimimi",
    "rabbit person": "Usagimimi",
    "bunnygirl": "Usagimimi",
    "usagimimi": "Usagimimi",
    "tanuki": "Tanuki",
    "kappa": "Kappa",
    "tengu": "Tengu",
    "oni": "Oni",
    "slime": "Slime",
    "slime girl": "Slime",
    "slime person": "Slime",
    # Robots and androids
    "android": "Robot",
    "cyborg": "Robot",
    "gynoid": "Robot",
    "mec": "Robot",
    "mecha": "Robot",
    "machine": "Robot",
    "automaton": "Robot",
    "ai": "Robot",
    # Elves
    "half-elf": "Elf",
    "half elf": "Elf",
    "dark elf": "Elf",
    "darkelf": "Elf",
    "drow": "Elf",
    "high elf": "Elf",
    "highelf": "Elf",
    "wood elf": "Elf",
    "woodelf": "Elf",
    "night elf": "Elf",
    "nightelf": "Elf",
    "santa elf": "Elf",
    # Demons
    "succubus": "Demon",
    "incubus": "Demon",
    "devil": "Demon",
    "archdemon": "Demon",
    "arch demon": "Demon",
    "imp": "Demon",
    "hellspawn": "Demon",
    "demon girl": "Demon",
    "demongirl": "Demon",
    "demon person": "Demon",
    "fallen angel": "Demon",
    "fallenangel": "Demon",
    # Vampires
    "vampire": "Vampire",
    "vampiress": "Vampire",
    "dhampir": "Vampire",
    "nosferatu": "Vampire",
    # Dragons
    "dragon girl": "Dragon",
    "dragonborn": "Dragon",
    "dragon person": "Dragon",
    "dracokin": "Dragon",
    "half-dragon": "Dragon",
    "wyrm": "Dragon",
    "drake": "Dragon",
    # Spirits
    "ghost": "Spirit",
    "phantom": "Spirit",
    "wraith": "Spirit",
    "specter": "Spirit",
    "poltergeist": "Spirit",
    "soul": "Spirit",
    "will-o-wisp": "Spirit",
    "spirit girl": "Spirit",
    "spirit person": "Spirit",
    # Angels
    "angel": "Angel",
    "seraph": "Angel",
    "cherub": "Angel",
    "archangel": "Angel",
    # Humans
    "humanoid": "Human",
    "demihuman": "Human",
    "semi-human": "Human",
    "person": "Human",
    "mortal": "Human",
    # Beasts
    "werewolf": "Werewolf",
    "wolf man": "Werewolf",
    "wolfman": "Werewolf",
    "wolfgirl": "Werewolf",
    "lycan": "Werewolf",
    "lycanthrope": "Werewolf",
    "mermaid": "Merfolk",
    "merman": "Merfolk",
    "merperson": "Merfolk",
    "merfolk": "Merfolk",
    "fish person": "Merfolk",
    "centaur": "Centaur",
    "minotaur": "Minotaur",
    "satyr": "Satyr",
    "faun": "Satyr",
    "fairy": "Fairy",
    "faerie": "Fairy",
    "pixie": "Fairy",
    "sprite": "Fairy",
    "nymph": "Fairy",
    "gnome": "Gnome",
    "halfling": "Halfling",
    "hobbit": "Halfling",
    "dwarf": "Dwarf",
    "dwarven": "Dwarf",
    # Monsters
    "orc": "Orc",
    "goblin": "Goblin",
    "hobgoblin": "Goblin",
    "ogre": "Ogre",
    "troll": "Troll",
    "giant": "Giant",
    "cyclops": "Giant",
    # Aliens
    "alien": "Alien",
    "extraterrestrial": "Alien",
    "martian": "Alien",
    "space alien": "Alien",
    # Others
    "harpy": "Harpy",
    "siren": "Harpy",
    "lamia": "Lamia",
    "naga": "Lamia",
    "arachne": "Arachne",
    "spider girl": "Arachne",
    "spidergirl": "Arachne",
    "kobold": "Kobold",
    "lizard person": "Reptilian",
    "lizardfolk": "Reptilian",
    "reptilian": "Reptilian",
    # Furry/anthro descriptors point at the sentinel, which is never matched by
    # name, so these stay inert and fall through the cascade.
    "anthro": "Unknown",
    "anthropomorphic": "Unknown",
    "furry": "Unknown",
    "feral": "Unknown",
    "kemono": "Unknown",
}


def normalize_label(label: Optional[str]) -> str:
    """Trimmed, lower-cased form used for every lookup."""
    return (label or "").strip().lower()


def load_synonyms(path: Optional[Path] = None) -> Dict[str, str]:
    """
    Return the built-in table, extended by the JSON object at `path` if given.

    Raises
    ------
    ValueError
        If the file does not contain a JSON object of string to string.
    """
    synonyms = dict(SPECIES_SYNONYMS)
    if path is None:
        return synonyms

    with Path(path).open("r", encoding="utf-8") as f:
        extra = json.load(f)
    if not isinstance(extra, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in extra.items()
    ):
        raise ValueError(f"Synonym file {path} must contain a JSON object of strings")

    for variant, canonical in extra.items():
        key = normalize_label(variant)
        if key and canonical.strip():
            synonyms[key] = canonical.strip()
    return synonyms


def inert_synonyms(synonyms: Mapping[str, str], taxonomy_names: Iterable[str]) -> List[str]:
    """Variants whose canonical name has no exact (case-insensitive) taxonomy entry."""
    known = {name.lower() for name in taxonomy_names}
    return sorted(variant for variant, canonical in synonyms.items() if canonical.lower() not in known)


__all__ = ["SPECIES_SYNONYMS", "inert_synonyms", "load_synonyms", "normalize_label"]
