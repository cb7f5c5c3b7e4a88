"""Tests for src/dungeon_rpg/storage/repos/."""
from __future__ import annotations

import json

import pytest

from dungeon_rpg.models.player import EquipSlot
from dungeon_rpg.models.room import LootStack, RoomEncounterState
from dungeon_rpg.storage.repos import EncounterRepo, PlayerRepo


class TestPlayerRepo:
    @pytest.fixture
    def repo(self, in_memory_db):
        return PlayerRepo(in_memory_db)

    def test_save_and_load(self, repo, player):
        player.equipment = {EquipSlot.WEAPON: "blade"}
        player.inventory = {"bone_shard": 3}
        player.conditions = {"poison": 2}
        player.skill_cooldowns = {"heavy_swing": 1234.5}
        player.status.shield = 4
        repo.save(player)
        assert repo.get("p1") == player

    def test_upsert_overwrites(self, repo, player):
        repo.save(player)
        player.hp = 7
        player.defeated_templates.append("ghoul")
        repo.save(player)
        loaded = repo.get("p1")
        assert loaded.hp == 7
        assert loaded.defeated_templates == ["ghoul"]
        assert repo.list_ids() == ["p1"]

    def test_missing_player(self, repo):
        assert repo.get("nobody") is None


class TestEncounterRepo:
    @pytest.fixture
    def repo(self, in_memory_db):
        return EncounterRepo(in_memory_db)

    def test_save_and_load(self, repo, make_state, spawn):
        state = make_state(
            spawn("ghoul", conditions={"bleed": 1}, power=1),
            death_count=2,
            loot=[LootStack(item_id="bone_shard", quantity=2, owner_id="p1")],
            last_updated=42.0,
        )
        repo.save(state)
        assert repo.get("crypt") == state

    def test_missing_room(self, repo):
        assert repo.get("void") is None

    def test_legacy_row_defaults(self, repo, in_memory_db):
        with in_memory_db.get_connection() as conn:
            conn.execute(
                "INSERT INTO room_encounters (id, monsters, loot, death_count, last_updated) "
                "VALUES (?, ?, NULL, NULL, ?)",
                ("old_room", json.dumps([{"template_id": "ghoul", "hp": 3}]), 10.0),
            )
        state = repo.get("old_room")
        assert isinstance(state, RoomEncounterState)
        assert state.loot == []
        assert state.death_count == 0
        assert state.monsters[0].hp == 3
