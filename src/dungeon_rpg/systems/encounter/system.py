"""Encounter lifecycle — spawning, persistence and respawn of room monsters."""
from __future__ import annotations

import logging
import math
import time
from typing import Callable, Iterable

from dungeon_rpg.content.catalog import Catalog
from dungeon_rpg.models.monster import MonsterInstance
from dungeon_rpg.models.room import LootStack, Room, RoomEncounterState
from dungeon_rpg.storage.repos.encounter_repo import EncounterRepo

logger = logging.getLogger(__name__)

DEFAULT_RESPAWN_WINDOW_MS = 90_000
FALLBACK_MONSTER_HP = 20
MAX_POWERED = 3


def respawn_count(template_count: int, death_count: int) -> int:
    return max(template_count, 1 + min(2, death_count))


def hp_multiplier(death_count: int) -> float:
    return 1 + min(0.4, 0.15 * death_count)


def _now_ms() -> float:
    return time.time() * 1000


class EncounterSystem:
    """Owns the monster roster bound to each room."""

    def __init__(
        self,
        store: EncounterRepo,
        catalog: Catalog,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.clock = clock

    def load_or_refresh(
        self,
        room: Room,
        respawn_window_ms: float = DEFAULT_RESPAWN_WINDOW_MS,
    ) -> RoomEncounterState:
        """Return the room's encounter, creating or regenerating it when due."""
        state = self.store.get(room.id)
        now = self.clock()

        if state is None:
            state = RoomEncounterState(
                room_id=room.id,
                monsters=self._spawn(room.monster_template_ids, len(room.monster_template_ids), 1.0),
                last_updated=now,
            )
            self.store.save(state)
            logger.info("Encounter created for room %s with %d monsters.", room.id, len(state.monsters))
            return state

        if state.cleared and now - state.last_updated > respawn_window_ms:
            state = self.regenerate(room, state)
            state.last_updated = now
            self.store.save(state)
        return state

    def regenerate(self, room: Room, previous: RoomEncounterState) -> RoomEncounterState:
        """Build a fresh, death-scaled roster, empowering some from leftover loot."""
        deaths = previous.death_count
        count = respawn_count(len(room.monster_template_ids), deaths) if room.monster_template_ids else 0
        monsters = self._spawn(room.monster_template_ids, count, hp_multiplier(deaths))

        loot = [stack.model_copy() for stack in previous.loot]
        powered = 0
        for inst in monsters:
            if powered >= MAX_POWERED or not self._take_loot_unit(loot):
                break
            inst.power = 1
            powered += 1

        logger.info(
            "Room %s respawned: %d monsters (%d powered), death count %d.",
            room.id, len(monsters), powered, deaths,
        )
        return RoomEncounterState(
            room_id=room.id,
            monsters=monsters,
            last_updated=previous.last_updated,
            loot=loot,
            death_count=deaths,
        )

    def record_clear(self, state: RoomEncounterState) -> int:
        """Count one more full clear of the room."""
        state.death_count += 1
        logger.info("Room %s cleared, death count now %d.", state.room_id, state.death_count)
        return state.death_count

    def deposit_loot(self, state: RoomEncounterState, stacks: Iterable[LootStack]) -> None:
        """Leave items in the room; same item from the same owner stacks."""
        for stack in stacks:
            if stack.quantity <= 0:
                continue
            for existing in state.loot:
                if existing.item_id == stack.item_id and existing.owner_id == stack.owner_id:
                    existing.quantity += stack.quantity
                    break
            else:
                state.loot.append(stack.model_copy())

    # -- Helpers --

    def _spawn(self, template_ids: Iterable[str], count: int, multiplier: float) -> list[MonsterInstance]:
        ids = list(template_ids)
        monsters: list[MonsterInstance] = []
        for i in range(count):
            template_id = ids[i % len(ids)]
            template = self.catalog.monster(template_id)
            if template is None:
                logger.warning("Unknown monster template %s, using fallback HP.", template_id)
            base = template.hp if template else FALLBACK_MONSTER_HP
            hp = math.floor(base * multiplier)
            monsters.append(MonsterInstance(template_id=template_id, hp=hp, max_hp=hp))
        return monsters

    @staticmethod
    def _take_loot_unit(loot: list[LootStack]) -> bool:
        """Consume one unit from the oldest stack, dropping exhausted stacks."""
        while loot and loot[0].quantity <= 0:
            loot.pop(0)
        if not loot:
            return False
        loot[0].quantity -= 1
        if loot[0].quantity <= 0:
            loot.pop(0)
        return True
