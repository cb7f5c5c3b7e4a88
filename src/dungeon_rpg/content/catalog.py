"""Read-only content catalogs, built once per process."""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from dungeon_rpg.content.loader import (
    load_all_items,
    load_all_monsters,
    load_all_rooms,
    load_all_skills,
)
from dungeon_rpg.models.item import Item, Skill
from dungeon_rpg.models.monster import MonsterTemplate
from dungeon_rpg.models.room import Room

logger = logging.getLogger(__name__)

BASIC_ATTACK = Skill(
    id="basic_attack",
    name="Basic Attack",
    description="A plain strike with whatever is in hand.",
    base_damage=(4, 8),
    stamina_cost=6,
)


@dataclass(frozen=True)
class Catalog:
    monsters: Mapping[str, MonsterTemplate]
    items: Mapping[str, Item]
    skills: Mapping[str, Skill]
    rooms: Mapping[str, Room]

    def monster(self, template_id: str) -> MonsterTemplate | None:
        return self.monsters.get(template_id)

    def item(self, item_id: str) -> Item | None:
        return self.items.get(item_id)

    def skill(self, skill_id: str) -> Skill | None:
        return self.skills.get(skill_id)

    def room(self, room_id: str) -> Room | None:
        return self.rooms.get(room_id)

    @classmethod
    def from_models(
        cls,
        monsters: list[MonsterTemplate] | None = None,
        items: list[Item] | None = None,
        skills: list[Skill] | None = None,
        rooms: list[Room] | None = None,
    ) -> Catalog:
        skill_map = {BASIC_ATTACK.id: BASIC_ATTACK}
        skill_map.update({s.id: s for s in skills or []})
        return cls(
            monsters=MappingProxyType({m.id: m for m in monsters or []}),
            items=MappingProxyType({i.id: i for i in items or []}),
            skills=MappingProxyType(skill_map),
            rooms=MappingProxyType({r.id: r for r in rooms or []}),
        )


def build_catalog(content_dir: Path | None = None) -> Catalog:
    """Validate TOML content into frozen models."""
    monsters = [MonsterTemplate.model_validate(d) for d in load_all_monsters(content_dir).values()]
    items = [Item.model_validate(d) for d in load_all_items(content_dir).values()]
    skills = [Skill.model_validate(d) for d in load_all_skills(content_dir).values()]
    rooms = [Room.model_validate(d) for d in load_all_rooms(content_dir).values()]
    logger.info(
        "Catalog loaded: %d monsters, %d items, %d skills, %d rooms.",
        len(monsters), len(items), len(skills), len(rooms),
    )
    return Catalog.from_models(monsters, items, skills, rooms)


@functools.lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    """Process-wide catalog from the bundled content directory."""
    return build_catalog()
