from __future__ import annotations

from dungeon_rpg.models.player import Player
from dungeon_rpg.storage.database import Database
from dungeon_rpg.storage.repos._rows import deserialize_row, serialize_fields, upsert

_JSON_FIELDS = frozenset({
    "stats",
    "equipment",
    "inventory",
    "passives",
    "essences",
    "status",
    "skill_cooldowns",
    "conditions",
    "defeated_templates",
})


class PlayerRepo:
    """Repository for player records."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def save(self, player: Player) -> None:
        """Insert or update a player record (UPSERT)."""
        data = serialize_fields(player.model_dump(mode="json"), _JSON_FIELDS)
        with self.db.get_connection() as conn:
            upsert(conn, "players", data)

    def get(self, player_id: str) -> Player | None:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM players WHERE id = ?", (player_id,)
            ).fetchone()
        data = deserialize_row(row, _JSON_FIELDS)
        if data is None:
            return None
        # Columns left NULL fall back to model defaults.
        return Player.model_validate({k: v for k, v in data.items() if v is not None})

    def list_ids(self) -> list[str]:
        with self.db.get_connection() as conn:
            rows = conn.execute("SELECT id FROM players ORDER BY name").fetchall()
        return [r["id"] for r in rows]
