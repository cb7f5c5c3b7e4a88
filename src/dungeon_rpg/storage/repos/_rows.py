from __future__ import annotations

import json
from typing import Any


def serialize_fields(data: dict, json_fields: frozenset[str]) -> dict:
    """Return a copy with JSON fields serialized to strings."""
    out = dict(data)
    for field in json_fields:
        if field in out and out[field] is not None and not isinstance(out[field], str):
            out[field] = json.dumps(out[field])
    return out


def deserialize_row(row: Any, json_fields: frozenset[str]) -> dict | None:
    """Convert a sqlite3.Row to a dict with JSON fields parsed."""
    if row is None:
        return None
    result = dict(row)
    for field in json_fields:
        raw = result.get(field)
        if raw is not None and isinstance(raw, str):
            result[field] = json.loads(raw)
    return result


def upsert(conn: Any, table: str, data: dict, key: str = "id") -> None:
    columns = ", ".join(data.keys())
    placeholders = ", ".join("?" for _ in data)
    updates = ", ".join(f"{k} = excluded.{k}" for k in data if k != key)
    sql = (
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) "
        f"ON CONFLICT({key}) DO UPDATE SET {updates}"
    )
    conn.execute(sql, list(data.values()))
