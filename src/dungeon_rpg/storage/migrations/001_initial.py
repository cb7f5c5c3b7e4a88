from __future__ import annotations

import sqlite3

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS players (
    id                  TEXT PRIMARY KEY,
    name                TEXT NOT NULL,
    lineage             TEXT NOT NULL,
    race                TEXT,
    base_class          TEXT NOT NULL DEFAULT 'wanderer',
    level               INTEGER NOT NULL DEFAULT 1,
    xp                  INTEGER NOT NULL DEFAULT 0,
    gold                INTEGER NOT NULL DEFAULT 0,
    corruption          INTEGER NOT NULL DEFAULT 0,
    hp                  INTEGER NOT NULL,
    stamina             INTEGER NOT NULL,
    stats               TEXT,
    equipment           TEXT,
    inventory           TEXT,
    passives            TEXT,
    essences            TEXT,
    essence_slots       INTEGER NOT NULL DEFAULT 0,
    status              TEXT,
    selected_target     TEXT,
    skill_cooldowns     TEXT,
    conditions          TEXT,
    defeated_templates  TEXT
);

CREATE TABLE IF NOT EXISTS room_encounters (
    id            TEXT PRIMARY KEY,
    monsters      TEXT NOT NULL,
    loot          TEXT,
    death_count   INTEGER,
    last_updated  REAL NOT NULL
);
"""


def upgrade(conn: sqlite3.Connection) -> None:
    conn.executescript(_SCHEMA_SQL)
