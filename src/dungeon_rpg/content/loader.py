from __future__ import annotations
import tomllib
from pathlib import Path
from typing import Any

CONTENT_DIR = Path(__file__).parent

def load_toml(filepath: Path) -> dict[str, Any]:
    with open(filepath, "rb") as f:
        return tomllib.load(f)


def _load_tables(kind: str, key: str, content_dir: Path | None = None) -> dict[str, dict]:
    """Collect every ``[[key]]`` entry from ``<content_dir>/<kind>/*.toml`` by id."""
    entries: dict[str, dict] = {}
    directory = (content_dir or CONTENT_DIR) / kind
    if not directory.exists():
        return entries
    for f in sorted(directory.glob("*.toml")):
        data = load_toml(f)
        for entry in data.get(key, []):
            entries[entry["id"]] = entry
    return entries


def load_all_monsters(content_dir: Path | None = None) -> dict[str, dict]:
    return _load_tables("monsters", "monsters", content_dir)


def load_all_items(content_dir: Path | None = None) -> dict[str, dict]:
    return _load_tables("items", "items", content_dir)


def load_all_skills(content_dir: Path | None = None) -> dict[str, dict]:
    return _load_tables("skills", "skills", content_dir)


def load_all_rooms(content_dir: Path | None = None) -> dict[str, dict]:
    """Load room descriptors (the world generator's output format)."""
    return _load_tables("rooms", "rooms", content_dir)
