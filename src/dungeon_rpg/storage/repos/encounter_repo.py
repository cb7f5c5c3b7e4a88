from __future__ import annotations

import logging

from dungeon_rpg.models.room import RoomEncounterState
from dungeon_rpg.storage.database import Database
from dungeon_rpg.storage.repos._rows import deserialize_row, serialize_fields, upsert

logger = logging.getLogger(__name__)

_JSON_FIELDS = frozenset({"monsters", "loot"})


class EncounterRepo:
    """Repository for per-room encounter state, keyed by room id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def save(self, state: RoomEncounterState) -> None:
        data = state.model_dump(mode="json")
        data["id"] = data.pop("room_id")
        with self.db.get_connection() as conn:
            upsert(conn, "room_encounters", serialize_fields(data, _JSON_FIELDS))

    def get(self, room_id: str) -> RoomEncounterState | None:
        """Load a room's encounter. Rows written before loot tracking read as empty."""
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM room_encounters WHERE id = ?", (room_id,)
            ).fetchone()
        data = deserialize_row(row, _JSON_FIELDS)
        if data is None:
            return None
        if data.get("loot") is None:
            data["loot"] = []
        if data.get("death_count") is None:
            logger.debug("Room %s has no death count recorded, defaulting to 0.", room_id)
            data["death_count"] = 0
        data["room_id"] = data.pop("id")
        return RoomEncounterState.model_validate(data)
