"""Death penalty mechanics — pure calculations, no I/O.

When a player is defeated in a room:
- The first half of their inventory stacks (rounded up) is left in the room,
  tagged with the player as owner
- HP and stamina are restored in full, conditions and target are cleared
- They get up 'weakened' for a few turns
"""
from __future__ import annotations

import math

from dungeon_rpg.mechanics.conditions import Condition, apply_condition
from dungeon_rpg.models.player import Player
from dungeon_rpg.models.room import LootStack

DEATH_WEAKEN_TURNS = 3


def split_inventory(inventory: dict[str, int]) -> tuple[dict[str, int], dict[str, int]]:
    """Return ``(dropped, kept)``. Oldest stacks drop first."""
    entries = [(item_id, qty) for item_id, qty in inventory.items() if qty > 0]
    cut = math.ceil(len(entries) / 2)
    return dict(entries[:cut]), dict(entries[cut:])


def apply_death(player: Player) -> list[LootStack]:
    """Revive a defeated player in place. Returns the stacks they dropped."""
    dropped, kept = split_inventory(player.inventory)
    player.inventory = kept
    player.hp = player.stats.max_hp
    player.stamina = player.stats.max_stamina
    player.selected_target = None
    player.conditions = {}
    player.status.shield = 0
    apply_condition(player, Condition.WEAKEN.value, DEATH_WEAKEN_TURNS)
    return [LootStack(item_id=item_id, quantity=qty, owner_id=player.id) for item_id, qty in dropped.items()]
