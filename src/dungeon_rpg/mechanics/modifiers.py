"""Combat modifier resolution — pure functions over player state, no I/O.

Passives and essences are looked up in closed effect tables. Each known id
contributes additive deltas; ids missing from the tables contribute
nothing. Random procs are returned as chances for the resolver to roll, so
the same player state always yields the same ``CombatModifiers``.
"""
from __future__ import annotations

import math
from dataclasses import replace
from enum import Enum
from typing import Any, Mapping

from dungeon_rpg.mechanics.conditions import player_damage_factor, player_stamina_penalty
from dungeon_rpg.models.combat import CombatModifiers
from dungeon_rpg.models.item import Item
from dungeon_rpg.models.player import Player
from dungeon_rpg.models.room import RoomEncounterState


class PassiveId(str, Enum):
    PREDATOR_INSTINCT = "predator_instinct"
    BLADE_DANCE = "blade_dance"
    COSMIC_ECHO = "cosmic_echo"
    IRON_SKIN = "iron_skin"
    SPECTRAL_MANTLE = "spectral_mantle"
    DRACONIC_CARAPACE = "draconic_carapace"
    ASYMMETRY_PROTOCOL = "asymmetry_protocol"
    LIGHT_STEPS = "light_steps"


class EssenceId(str, Enum):
    CRYPT_ECHO = "crypt_echo"
    SWAMP_TOXIN = "swamp_toxin"
    LIVING_MANUSCRIPT = "living_manuscript"
    LATENT_RIFT = "latent_rift"
    WHISPERING_SAND = "whispering_sand"
    TECHNOMANTIC_CORE = "technomantic_core"


# Deltas per passive. "extra_hit_proc" is (chance, hits).
PASSIVE_EFFECTS: dict[PassiveId, dict[str, Any]] = {
    PassiveId.PREDATOR_INSTINCT: {"damage_mult": 0.10},
    PassiveId.BLADE_DANCE: {"stamina_delta": -1, "extra_hit_proc": (0.12, 1.0)},
    PassiveId.COSMIC_ECHO: {"extra_hit_proc": (0.12, 0.5)},
    PassiveId.IRON_SKIN: {"counter_mit_flat": 2},
    PassiveId.SPECTRAL_MANTLE: {"counter_skip_chance": 0.15},
    PassiveId.DRACONIC_CARAPACE: {"counter_mit_percent": 0.08},
    PassiveId.ASYMMETRY_PROTOCOL: {"stamina_delta": -1, "counter_mit_flat": 1, "min_alive": 2},
    PassiveId.LIGHT_STEPS: {"flee_bonus": 0.08},
}

# Listed in element precedence order: the first essence granting an
# element names it.
ESSENCE_EFFECTS: dict[EssenceId, dict[str, Any]] = {
    EssenceId.LIVING_MANUSCRIPT: {"stamina_delta": -2, "element_damage": 2, "element_type": "arcane"},
    EssenceId.CRYPT_ECHO: {"heal_on_kill": 6, "element_damage": 2, "element_type": "shadow"},
    EssenceId.TECHNOMANTIC_CORE: {
        "counter_mit_percent": 0.25,
        "element_damage": 1,
        "element_type": "shock",
        "drone_pulse": 3,
    },
    EssenceId.SWAMP_TOXIN: {"dot_damage": 2},
    EssenceId.LATENT_RIFT: {"counter_skip_chance": 0.12},
    EssenceId.WHISPERING_SAND: {"crit_bonus": 0.05, "flee_bonus": 0.05},
}

_ADDITIVE = (
    "damage_mult",
    "element_damage",
    "stamina_delta",
    "crit_bonus",
    "counter_skip_chance",
    "counter_mit_percent",
    "counter_mit_flat",
    "dot_damage",
    "heal_on_kill",
)

WEIGHT_DAMAGE_STEP = 0.03
WEIGHT_DAMAGE_CAP = 0.15
WEIGHT_SKIP_STEP = 0.01
WEIGHT_SKIP_CAP = 0.05


def passive_set(player: Player) -> frozenset[PassiveId]:
    """Known passives the player has unlocked."""
    known = {p.value for p in PassiveId}
    return frozenset(PassiveId(p) for p in player.passives if p in known)


def essence_set(player: Player) -> frozenset[EssenceId]:
    known = {e.value for e in EssenceId}
    return frozenset(EssenceId(e) for e in player.essences if e in known)


def weight_penalty(player: Player, items: Mapping[str, Item]) -> tuple[int, int]:
    """Return ``(excess, surcharge)`` for equipped weight over carry capacity."""
    total = 0
    for item_id in player.equipment.values():
        item = items.get(item_id)
        if item is not None:
            total += item.weight
    excess = max(0, total - player.stats.sub.carry_capacity)
    surcharge = math.ceil(excess / 2) if excess > 0 else 0
    return excess, surcharge


def flee_bonus(player: Player) -> float:
    """Sum of flee chance bonuses from passives and essences."""
    bonus = 0.0
    for pid in passive_set(player):
        bonus += PASSIVE_EFFECTS[pid].get("flee_bonus", 0.0)
    for eid in essence_set(player):
        bonus += ESSENCE_EFFECTS[eid].get("flee_bonus", 0.0)
    return bonus


def _accumulate(totals: dict[str, float], deltas: dict[str, Any]) -> None:
    for key in _ADDITIVE:
        if key in deltas:
            totals[key] += deltas[key]


def compute_modifiers(
    player: Player,
    room_state: RoomEncounterState,
    items: Mapping[str, Item],
) -> CombatModifiers:
    """Derive the combat modifiers for one action from player state."""
    totals: dict[str, float] = {key: 0 for key in _ADDITIVE}
    totals["damage_mult"] = 1.0
    procs: list[tuple[float, float]] = []
    alive = len(room_state.living())

    passives = passive_set(player)
    for pid in PassiveId:
        if pid not in passives:
            continue
        deltas = PASSIVE_EFFECTS[pid]
        if alive < deltas.get("min_alive", 0):
            continue
        _accumulate(totals, deltas)
        if "extra_hit_proc" in deltas:
            procs.append(deltas["extra_hit_proc"])

    element_type = None
    drone_pulse = 0
    essences = essence_set(player)
    for eid, deltas in ESSENCE_EFFECTS.items():
        if eid not in essences:
            continue
        _accumulate(totals, deltas)
        if element_type is None and deltas.get("element_type"):
            element_type = deltas["element_type"]
        if deltas.get("drone_pulse") and player.status.drone_charges > 0:
            drone_pulse = max(drone_pulse, deltas["drone_pulse"])

    excess, surcharge = weight_penalty(player, items)
    if excess > 0:
        totals["damage_mult"] -= min(WEIGHT_DAMAGE_CAP, WEIGHT_DAMAGE_STEP * excess)
        totals["counter_skip_chance"] -= min(WEIGHT_SKIP_CAP, WEIGHT_SKIP_STEP * excess)

    if player.corruption >= 40:
        totals["damage_mult"] *= 0.95
        totals["crit_bonus"] -= 0.02
    if player.corruption >= 70:
        totals["stamina_delta"] += 1
        totals["counter_skip_chance"] -= 0.05

    return CombatModifiers(
        damage_mult=round(totals["damage_mult"], 6),
        element_damage=int(totals["element_damage"]),
        element_type=element_type,
        stamina_delta=int(totals["stamina_delta"]),
        crit_bonus=round(totals["crit_bonus"], 6),
        counter_skip_chance=max(0.0, round(totals["counter_skip_chance"], 6)),
        counter_mit_percent=round(totals["counter_mit_percent"], 6),
        counter_mit_flat=int(totals["counter_mit_flat"]),
        extra_hit_procs=tuple(procs),
        dot_damage=int(totals["dot_damage"]),
        heal_on_kill=int(totals["heal_on_kill"]),
        drone_pulse=drone_pulse,
        weight_excess=excess,
        weight_surcharge=surcharge,
    )


def apply_player_conditions(mods: CombatModifiers, player: Player) -> CombatModifiers:
    """Fold the player's own silence/weaken/slow into a copy of ``mods``."""
    return replace(
        mods,
        damage_mult=round(mods.damage_mult * player_damage_factor(player.conditions), 6),
        stamina_delta=mods.stamina_delta + player_stamina_penalty(player.conditions),
    )
