from __future__ import annotations

from dungeon_rpg.storage.repos.encounter_repo import EncounterRepo
from dungeon_rpg.storage.repos.lease_repo import SqliteLeaseStore
from dungeon_rpg.storage.repos.player_repo import PlayerRepo

__all__ = [
    "EncounterRepo",
    "PlayerRepo",
    "SqliteLeaseStore",
]
