from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EquipSlot(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    TRINKET = "trinket"


class Lineage(str, Enum):
    MAGICAL = "magical"
    COSMIC = "cosmic"
    TECHNOLOGICAL = "technological"
    SUPERNATURAL = "supernatural"


class Attributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    strength: int = 1
    agility: int = 1
    vigor: int = 1
    mind: int = 1
    luck: int = 1
    blood: int = 1
    focus: int = 1


class SubAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    carry_capacity: int = 10
    physical_resistance: int = 0
    ethereal_resistance: int = 0
    attack_speed: int = 0
    stamina_regen: int = 0
    essence_affinity: int = 0
    perception: int = 0


class Stats(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attributes: Attributes = Field(default_factory=Attributes)
    sub: SubAttributes = Field(default_factory=SubAttributes)
    max_hp: int = 30
    max_stamina: int = 20


class PlayerStatus(BaseModel):
    """Shield points and drone charges. Always present, zero when unused."""

    model_config = ConfigDict(from_attributes=True)

    shield: int = Field(default=0, ge=0)
    drone_charges: int = Field(default=0, ge=0)


class Player(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    lineage: Lineage = Lineage.MAGICAL
    race: str = "human"
    base_class: str = "wanderer"
    level: int = 1
    xp: int = 0
    gold: int = 0
    corruption: int = Field(default=0, ge=0, le=100)
    stats: Stats = Field(default_factory=Stats)
    hp: int = 30
    stamina: int = 20
    equipment: dict[EquipSlot, str] = Field(default_factory=dict)
    inventory: dict[str, int] = Field(default_factory=dict)
    passives: list[str] = Field(default_factory=list)
    essences: list[str] = Field(default_factory=list)
    essence_slots: int = 1
    status: PlayerStatus = Field(default_factory=PlayerStatus)
    selected_target: Optional[str] = None
    skill_cooldowns: dict[str, float] = Field(default_factory=dict)
    conditions: dict[str, int] = Field(default_factory=dict)
    defeated_templates: list[str] = Field(default_factory=list)

    def clamp_resources(self) -> None:
        """Keep HP and stamina inside [0, max]."""
        self.hp = max(0, min(self.stats.max_hp, self.hp))
        self.stamina = max(0, min(self.stats.max_stamina, self.stamina))

    def add_item(self, item_id: str, quantity: int = 1) -> None:
        self.inventory[item_id] = self.inventory.get(item_id, 0) + quantity
