"""Shared fixtures for the dungeon_rpg test suite."""
from __future__ import annotations

from typing import Callable, Sequence

import pytest

from dungeon_rpg.content.catalog import Catalog
from dungeon_rpg.mechanics.dice import Dice
from dungeon_rpg.models.item import Item, ItemType, Skill, StatusApplication
from dungeon_rpg.models.monster import DropEntry, MonsterInstance, MonsterRole, MonsterTemplate
from dungeon_rpg.models.player import Attributes, Player, Stats
from dungeon_rpg.models.room import Room, RoomEncounterState, RoomType


class ScriptedDice(Dice):
    """Dice that replay a fixed list of uniform values.

    Once the script runs out, ``fallback`` is returned forever; without a
    fallback an exhausted script fails the test.
    """

    def __init__(self, values: Sequence[float] = (), fallback: float | None = None) -> None:
        super().__init__(seed=0)
        self.values = list(values)
        self.fallback = fallback
        self.calls = 0

    def uniform(self) -> float:
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        if self.fallback is None:
            raise AssertionError("ScriptedDice ran out of values")
        return self.fallback

    @property
    def remaining(self) -> int:
        return len(self.values)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


MONSTERS = [
    MonsterTemplate(
        id="ghoul", name="Ghoul", biome="crypt", role=MonsterRole.BRUTE, hp=15,
        damage_range=(3, 6), drop_table=(DropEntry(item_id="bone_shard"),),
    ),
    MonsterTemplate(id="wraith", name="Wraith", biome="crypt", role=MonsterRole.CASTER, hp=14, damage_range=(2, 5)),
    MonsterTemplate(id="lurker", name="Lurker", biome="swamp", role=MonsterRole.SKIRMISHER, hp=15, damage_range=(2, 4)),
    MonsterTemplate(id="shaman", name="Shaman", biome="swamp", role=MonsterRole.SUPPORT, hp=16, damage_range=(1, 3)),
    MonsterTemplate(id="warden", name="Warden", biome="crypt", role=MonsterRole.ELITE, hp=30, damage_range=(4, 8)),
]

ITEMS = [
    Item(id="blade", name="Blade", item_type=ItemType.WEAPON, weight=4),
    Item(id="maul", name="Maul", item_type=ItemType.WEAPON, weight=9),
    Item(id="hauberk", name="Hauberk", item_type=ItemType.ARMOR, weight=7),
    Item(id="bone_shard", name="Bone Shard"),
    Item(id="ectoplasm", name="Ectoplasm"),
]

SKILLS = [
    Skill(
        id="venom_dart", name="Venom Dart", base_damage=(2, 4), stamina_cost=5,
        applies=(StatusApplication(effect="poison", duration=3, chance=0.8),),
    ),
    Skill(id="ward", name="Ward", side_effect="shield"),
    Skill(id="drone", name="Deploy Drone", side_effect="drone", required_lineage="technological"),
    Skill(id="heavy_swing", name="Heavy Swing", cooldown_ms=3000),
]

ROOMS = [
    Room(id="crypt", name="Crypt", biome="crypt", monster_template_ids=("ghoul",)),
    Room(id="hall", name="Hall", biome="crypt", monster_template_ids=("ghoul", "wraith")),
    Room(id="shrine", name="Shrine", room_type=RoomType.SANCTUARY),
]


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.from_models(MONSTERS, ITEMS, SKILLS, ROOMS)


@pytest.fixture
def scripted_dice() -> Callable[..., ScriptedDice]:
    return ScriptedDice


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def player() -> Player:
    """Strength 10 / agility 5, full 30 HP and 20 stamina, no modifiers."""
    return Player(
        id="p1",
        name="Vex",
        stats=Stats(attributes=Attributes(strength=10, agility=5)),
        hp=30,
        stamina=20,
    )


def _spawn(template_id: str, hp: int | None = None, **kwargs) -> MonsterInstance:
    template = next(m for m in MONSTERS if m.id == template_id)
    hp = template.hp if hp is None else hp
    return MonsterInstance(template_id=template_id, hp=hp, max_hp=template.hp, **kwargs)


@pytest.fixture
def spawn() -> Callable[..., MonsterInstance]:
    return _spawn


@pytest.fixture
def make_state() -> Callable[..., RoomEncounterState]:
    def _make(*monsters: MonsterInstance, room_id: str = "crypt", death_count: int = 0, **kwargs) -> RoomEncounterState:
        return RoomEncounterState(room_id=room_id, monsters=list(monsters), death_count=death_count, **kwargs)

    return _make


@pytest.fixture
def in_memory_db(tmp_path):
    from dungeon_rpg.storage.database import Database

    db = Database(str(tmp_path / "test.db"))
    db.initialize()
    yield db
    db.close()
