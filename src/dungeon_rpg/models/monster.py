from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MonsterRole(str, Enum):
    BRUTE = "brute"
    CASTER = "caster"
    SKIRMISHER = "skirmisher"
    SUPPORT = "support"
    ELITE = "elite"


class DropEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    chance: float = 1.0
    quantity: int = 1


class MonsterTemplate(BaseModel):
    """Static monster definition shared by every spawned instance."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    biome: str = ""
    role: MonsterRole = MonsterRole.BRUTE
    level: int = 1
    hp: int = 20
    damage_range: tuple[int, int] = (2, 4)
    drop_table: tuple[DropEntry, ...] = ()


class MonsterInstance(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    template_id: str
    hp: int
    max_hp: int = 0
    alive: bool = True
    power: int = 0
    conditions: dict[str, int] = Field(default_factory=dict)

    @property
    def is_standing(self) -> bool:
        return self.alive and self.hp > 0
