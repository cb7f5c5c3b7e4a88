from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from dungeon_rpg.models.item import Skill
    from dungeon_rpg.models.monster import MonsterInstance
    from dungeon_rpg.models.player import Player
    from dungeon_rpg.models.room import RoomEncounterState


@dataclass
class CombatAction:
    """A player-issued combat action. ``skill=None`` is the basic attack."""

    skill: Optional[Skill] = None
    target_id: str | None = None


@dataclass
class ActionOutcome:
    log: list[str]
    player: Player
    room_state: RoomEncounterState
    killed: MonsterInstance | None = None


@dataclass
class FleeOutcome:
    success: bool
    log: list[str] = field(default_factory=list)


@dataclass
class MonsterTurnOutcome:
    log: list[str]
    player: Player
