from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from dungeon_rpg.mechanics.conditions import Condition


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    TRINKET = "trinket"
    CONSUMABLE = "consumable"
    MATERIAL = "material"


class Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    item_type: ItemType = ItemType.MATERIAL
    rarity: str = "common"
    weight: int = 0
    effects: tuple[str, ...] = ()


class StatusApplication(BaseModel):
    """One row of a skill's status table."""

    model_config = ConfigDict(frozen=True)

    effect: Condition
    duration: int
    chance: float = 1.0
    target: Literal["foe", "self"] = "foe"


class Skill(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    base_damage: tuple[int, int] = (4, 8)
    stamina_cost: int = 6
    cooldown_ms: int = 0
    applies: tuple[StatusApplication, ...] = ()
    side_effect: Optional[Literal["shield", "drone"]] = None
    required_lineage: Optional[str] = None
    required_class: Optional[str] = None
