"""Migration of old flat effects.ini files to the sectioned version 2 layout."""

from __future__ import annotations

import configparser
import re
from collections.abc import Mapping
from pathlib import Path

PROPERTIES = ("sound", "scaling", "stretch", "ignore_offset", "under_chatbox")

_PROPERTY_REPLACEMENTS = {"under_chatbox": ("layer", "character")}

_PROPERTY_KEY = re.compile(r"(\w+)_({})$".format("|".join(PROPERTIES)))

_TOP_LEVEL = "General"


def migrate_effects(entries: Mapping[str, str]) -> dict[str, dict[str, str]]:
    """Convert flat ``effect=sound`` entries into numbered effect sections."""
    flat = dict(sorted(entries.items()))
    effect_names = [key for key in flat if not _PROPERTY_KEY.search(key)]

    sections: dict[str, dict[str, str]] = {"version": {"major": "2"}}
    for number, name in enumerate(effect_names):
        section = {
            "name": name,
            "sound": flat[name],
            "cull": "true",
            "layer": "character",
        }
        if name == "realization":
            section["stretch"] = "true"
            section["layer"] = "chat"

        for prop in PROPERTIES:
            property_key = f"{name}_{prop}"
            if property_key in flat:
                key, value = _PROPERTY_REPLACEMENTS.get(prop, (prop, flat[property_key]))
                section[key] = value

        sections[str(number)] = section
    return sections


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None, delimiters=("=",))
    parser.optionxform = str  # keep key case
    return parser


def migrate_effects_file(path: str | Path) -> dict[str, dict[str, str]]:
    """Rewrite an old effects.ini in place and return the new sections."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")

    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    if not first_line.startswith("["):
        text = f"[{_TOP_LEVEL}]\n{text}"

    parser = _new_parser()
    parser.read_string(text)
    entries = dict(parser[_TOP_LEVEL]) if parser.has_section(_TOP_LEVEL) else {}

    sections = migrate_effects(entries)

    writer = _new_parser()
    writer.read_dict(sections)
    with path.open("w", encoding="utf-8") as handle:
        writer.write(handle, space_around_delimiters=False)
    return sections