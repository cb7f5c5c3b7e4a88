"""Main application service — wires storage, content and combat systems together."""
from __future__ import annotations

import logging
import math
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from dungeon_rpg.mechanics.conditions import tick_player
from dungeon_rpg.mechanics.death import apply_death
from dungeon_rpg.mechanics.dice import Dice
from dungeon_rpg.models.action import CombatAction
from dungeon_rpg.models.monster import MonsterInstance
from dungeon_rpg.models.player import Attributes, Lineage, Player
from dungeon_rpg.models.room import Room, RoomEncounterState, RoomType

logger = logging.getLogger(__name__)

REST_HP_FRACTION = 0.25
REST_STAMINA_FRACTION = 0.40
REST_CORRUPTION_RELIEF = 1
SANCTUARY_CORRUPTION_RELIEF = 5


class EntityNotFoundError(LookupError):
    """A player, room or skill id that the caller referenced does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"No {kind} with id '{entity_id}'")
        self.kind = kind
        self.entity_id = entity_id


@dataclass
class TurnReport:
    player: Player
    room: Room
    room_state: RoomEncounterState
    log: list[str] = field(default_factory=list)
    killed: MonsterInstance | None = None
    fled: bool | None = None


def _load_config() -> dict[str, Any]:
    """Load config.toml from project root."""
    import tomllib

    config_path = Path(__file__).parent.parent.parent / "config.toml"
    if config_path.exists():
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    return {}


def _now_ms() -> float:
    return time.time() * 1000


class GameApp:
    """Caller-facing operations. Every room-mutating call runs under the room lock."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        db: Any = None,
        catalog: Any = None,
        dice: Dice | None = None,
        clock: Callable[[], float] = _now_ms,
        lease_store: Any = None,
    ) -> None:
        self.config = _load_config() if config is None else config
        self.clock = clock

        # Lazy-initialized components
        self._db = db
        self._catalog = catalog
        self._dice = dice
        self._lease_store = lease_store
        self._players = None
        self._encounters = None
        self._lock = None
        self._combat = None
        self._monster_ai = None
        self._encounter_system = None

    # -- Component initialization (lazy) --

    @property
    def db(self):
        if self._db is None:
            from dungeon_rpg.storage.database import Database

            db_path = self.config.get("storage", {}).get("db_path", "saves/dungeon.db")
            self._db = Database(db_path)
            self._db.initialize()
        return self._db

    @property
    def catalog(self):
        if self._catalog is None:
            from dungeon_rpg.content.catalog import get_catalog

            self._catalog = get_catalog()
        return self._catalog

    @property
    def dice(self) -> Dice:
        if self._dice is None:
            self._dice = Dice(seed=self.config.get("rng", {}).get("seed"))
        return self._dice

    @property
    def players(self):
        if self._players is None:
            from dungeon_rpg.storage.repos import PlayerRepo

            self._players = PlayerRepo(self.db)
        return self._players

    @property
    def encounters(self):
        if self._encounters is None:
            from dungeon_rpg.storage.repos import EncounterRepo

            self._encounters = EncounterRepo(self.db)
        return self._encounters

    @property
    def lock(self):
        if self._lock is None:
            from dungeon_rpg.storage.locks import RoomLock
            from dungeon_rpg.storage.repos import SqliteLeaseStore

            lock_cfg = self.config.get("locks", {})
            store = self._lease_store or SqliteLeaseStore(self.db)
            self._lock = RoomLock(
                store,
                attempts=lock_cfg.get("attempts", 5),
                backoff_ms=lock_cfg.get("backoff_ms", 50),
            )
        return self._lock

    @property
    def combat(self):
        if self._combat is None:
            from dungeon_rpg.systems.combat.system import CombatSystem

            self._combat = CombatSystem(self.catalog, self.dice, clock=self.clock)
        return self._combat

    @property
    def monster_ai(self):
        if self._monster_ai is None:
            from dungeon_rpg.systems.combat.monster_ai import MonsterTurnController

            self._monster_ai = MonsterTurnController(self.catalog, self.dice)
        return self._monster_ai

    @property
    def encounter_system(self):
        if self._encounter_system is None:
            from dungeon_rpg.systems.encounter.system import EncounterSystem

            self._encounter_system = EncounterSystem(self.encounters, self.catalog, clock=self.clock)
        return self._encounter_system

    @property
    def lock_ttl_ms(self) -> int:
        return self.config.get("locks", {}).get("ttl_ms", 5000)

    @property
    def respawn_window_ms(self) -> int:
        return self.config.get("encounter", {}).get("respawn_window_ms", 90_000)

    # -- Lookups --

    def get_player(self, player_id: str) -> Player:
        player = self.players.get(player_id)
        if player is None:
            raise EntityNotFoundError("player", player_id)
        return player

    def get_room(self, room_id: str) -> Room:
        room = self.catalog.room(room_id)
        if room is None:
            raise EntityNotFoundError("room", room_id)
        return room

    # -- Operations --

    def create_player(
        self,
        name: str,
        lineage: Lineage | str = Lineage.MAGICAL,
        race: str = "human",
        attributes: Attributes | dict | None = None,
    ) -> Player:
        from dungeon_rpg.mechanics.character_creation import create_player

        player = create_player(name, lineage=lineage, race=race, attributes=attributes)
        self.players.save(player)
        logger.info("Created player %s (%s).", player.name, player.id)
        return player

    def status(self, player_id: str) -> Player:
        return self.get_player(player_id)

    def list_players(self) -> list[Player]:
        return [p for p in (self.players.get(pid) for pid in self.players.list_ids()) if p is not None]

    def look(self, room_id: str) -> tuple[Room, RoomEncounterState]:
        """Current encounter in a room, respawning it if it is due."""
        room = self.get_room(room_id)

        def _load() -> tuple[Room, RoomEncounterState]:
            return room, self.encounter_system.load_or_refresh(room, self.respawn_window_ms)

        return self.lock.with_lock(room.id, self.lock_ttl_ms, _load)

    def attack(
        self,
        player_id: str,
        room_id: str,
        skill_id: str | None = None,
        target_id: str | None = None,
    ) -> TurnReport:
        """Basic attack or skill, followed by the monsters' reply."""
        player = self.get_player(player_id)
        room = self.get_room(room_id)
        skill = None
        if skill_id is not None:
            skill = self.catalog.skill(skill_id)
            if skill is None:
                raise EntityNotFoundError("skill", skill_id)
        action = CombatAction(skill=skill, target_id=target_id or player.selected_target)

        def _turn() -> TurnReport:
            state = self.encounter_system.load_or_refresh(room, self.respawn_window_ms)
            had_living = bool(state.living())
            outcome = self.combat.resolve_player_action(player, room, state, action)
            log = list(outcome.log)

            if state.living():
                log.extend(self.monster_ai.run(player, state).log)
            else:
                tick_player(player, log)

            selected = state.find(action.target_id) if action.target_id else None
            player.selected_target = selected.id if selected is not None and selected.is_standing else None
            self._settle(player, state, had_living, log)
            if had_living:
                state.last_updated = self.clock()
            self._persist(player, state)
            return TurnReport(player=player, room=room, room_state=state, log=log, killed=outcome.killed)

        return self.lock.with_lock(room.id, self.lock_ttl_ms, _turn)

    def flee(self, player_id: str, room_id: str) -> TurnReport:
        player = self.get_player(player_id)
        room = self.get_room(room_id)

        def _turn() -> TurnReport:
            state = self.encounter_system.load_or_refresh(room, self.respawn_window_ms)
            outcome = self.combat.resolve_flee(player, state)
            log = list(outcome.log)
            if outcome.success:
                player.selected_target = None
            self._settle(player, state, False, log)
            tick_player(player, log)
            self._persist(player, state)
            return TurnReport(player=player, room=room, room_state=state, log=log, fled=outcome.success)

        return self.lock.with_lock(room.id, self.lock_ttl_ms, _turn)

    def rest(self, player_id: str, room_id: str) -> TurnReport:
        """Catch your breath. Outside a sanctuary the monsters get a turn."""
        player = self.get_player(player_id)
        room = self.get_room(room_id)

        def _turn() -> TurnReport:
            state = self.encounter_system.load_or_refresh(room, self.respawn_window_ms)
            had_living = bool(state.living())
            sanctuary = room.room_type == RoomType.SANCTUARY
            hp_gain = math.floor(player.stats.max_hp * REST_HP_FRACTION)
            stamina_gain = math.floor(player.stats.max_stamina * REST_STAMINA_FRACTION)
            relief = SANCTUARY_CORRUPTION_RELIEF if sanctuary else REST_CORRUPTION_RELIEF

            before_hp, before_stamina = player.hp, player.stamina
            player.hp += hp_gain
            player.stamina += stamina_gain
            player.corruption = max(0, player.corruption - relief)
            player.clamp_resources()
            log = [
                f"You rest and recover {player.hp - before_hp} HP and "
                f"{player.stamina - before_stamina} stamina."
            ]
            if sanctuary:
                log.append("The sanctuary's calm eases your corruption.")
            if not sanctuary and had_living:
                log.append("The monsters do not wait for you to recover.")
                log.extend(self.monster_ai.run(player, state).log)
                state.last_updated = self.clock()
            else:
                tick_player(player, log)

            self._settle(player, state, had_living, log)
            self._persist(player, state)
            return TurnReport(player=player, room=room, room_state=state, log=log)

        return self.lock.with_lock(room.id, self.lock_ttl_ms, _turn)

    # -- Helpers --

    def _settle(self, player: Player, state: RoomEncounterState, had_living: bool, log: list[str]) -> None:
        """Room and player consequences once everyone in the room has acted."""
        if had_living and not state.living():
            self.encounter_system.record_clear(state)
            log.append("The room falls silent.")
        if player.hp <= 0:
            self._handle_death(player, state, log)

    def _handle_death(self, player: Player, state: RoomEncounterState, log: list[str]) -> None:
        dropped = apply_death(player)
        self.encounter_system.deposit_loot(state, dropped)
        logger.info(
            "Player %s fell in room %s and left %d item stacks behind.",
            player.id, state.room_id, len(dropped),
        )
        log.append("You fall, and wake weakened where you dropped. Part of your pack stays behind for others to find.")

    def _persist(self, player: Player, state: RoomEncounterState) -> None:
        try:
            self.players.save(player)
            self.encounters.save(state)
        except sqlite3.Error:
            logger.exception("Failed to persist turn for player %s in room %s", player.id, state.room_id)
            raise
