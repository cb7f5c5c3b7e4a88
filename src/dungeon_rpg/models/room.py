from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dungeon_rpg.models.monster import MonsterInstance


class RoomType(str, Enum):
    HOSTILE = "hostile"
    HORDE = "horde"
    CHALLENGE = "challenge"
    SECRET = "secret"
    SANCTUARY = "sanctuary"


class Room(BaseModel):
    """Room descriptor handed over by the world generator."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    biome: str = ""
    room_type: RoomType = RoomType.HOSTILE
    difficulty: int = 1
    monster_template_ids: tuple[str, ...] = ()


class LootStack(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    quantity: int = Field(default=1, ge=0)
    owner_id: Optional[str] = None


class RoomEncounterState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    room_id: str
    monsters: list[MonsterInstance] = Field(default_factory=list)
    last_updated: float = 0.0
    loot: list[LootStack] = Field(default_factory=list)
    death_count: int = Field(default=0, ge=0)

    def living(self) -> list[MonsterInstance]:
        return [m for m in self.monsters if m.is_standing]

    def find(self, instance_id: str) -> MonsterInstance | None:
        for m in self.monsters:
            if m.id == instance_id:
                return m
        return None

    @property
    def cleared(self) -> bool:
        return all(not m.alive or m.hp <= 0 for m in self.monsters)

    @property
    def loot_units(self) -> int:
        return sum(s.quantity for s in self.loot)
