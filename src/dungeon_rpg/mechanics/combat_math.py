"""Combat math — pure functions, no I/O."""
from __future__ import annotations

import math

from dungeon_rpg.mechanics.dice import Dice
from dungeon_rpg.models.combat import CombatModifiers
from dungeon_rpg.models.monster import MonsterRole
from dungeon_rpg.models.player import Attributes, Player

MIN_STAMINA_COST = 4
CRIT_MULTIPLIER = 1.5
PHYSICAL_MITIGATION_CAP = 0.4


def damage_bounds(base_damage: tuple[int, int], attributes: Attributes) -> tuple[int, int]:
    """Skill range scaled by strength and agility, floored."""
    low = base_damage[0] + attributes.strength * 0.6 + attributes.agility * 0.3
    high = base_damage[1] + attributes.strength * 0.8 + attributes.agility * 0.5
    return math.floor(low), math.floor(high)


def stamina_cost(base_cost: int, mods: CombatModifiers, difficulty: int) -> int:
    """Stamina for one action: never below 4, +10% per difficulty above 1."""
    raw = (base_cost + mods.weight_surcharge + mods.stamina_delta) * (1 + 0.1 * (difficulty - 1))
    return max(MIN_STAMINA_COST, math.floor(raw))


def crit_chance(luck: int, mods: CombatModifiers) -> float:
    return 0.10 + 0.01 * luck + mods.crit_bonus


def mitigate_counter(raw_damage: int, physical_resistance: int, mods: CombatModifiers) -> int:
    """Reduce an incoming monster hit. Always at least 1."""
    base = 1 - min(PHYSICAL_MITIGATION_CAP, physical_resistance * 0.02)
    extra = max(0.0, 1 - mods.counter_mit_percent)
    return max(1, math.floor(raw_damage * base * extra - mods.counter_mit_flat))


def absorb_with_shield(player: Player, damage: int) -> tuple[int, int]:
    """Spend shield points against ``damage``. Returns ``(absorbed, remaining)``."""
    shield = player.status.shield
    if shield <= 0 or damage <= 0:
        return 0, damage
    absorbed = min(shield, damage)
    player.status.shield = shield - absorbed
    return absorbed, damage - absorbed


def flee_chance(
    agility: int,
    attack_speed: int,
    bonus: float,
    alive_count: int,
    weight_surcharge: int,
    death_count: int,
) -> float:
    """Chance to escape a room that still holds living monsters."""
    living_penalty = min(0.20, 0.05 * alive_count)
    death_penalty = min(0.10, 0.03 * death_count)
    chance = (
        0.35
        + 0.03 * agility
        + 0.02 * attack_speed
        + bonus
        - living_penalty
        - weight_surcharge * 0.02
        - death_penalty
    )
    return max(0.05, min(0.95, chance))


FLEE_ROLE_WEIGHT: dict[MonsterRole, float] = {
    MonsterRole.BRUTE: 1.2,
    MonsterRole.SKIRMISHER: 1.1,
}


def shield_from_skill(attributes: Attributes) -> int:
    """Shield granted by a warding skill, sized from vigor and focus."""
    return 3 + attributes.vigor + attributes.focus // 2


def roll_extra_hits(dice: Dice, mods: CombatModifiers) -> float:
    """Roll every extra-hit proc and return the total extra hits."""
    hits = 0.0
    for chance, amount in mods.extra_hit_procs:
        if dice.chance(chance):
            hits += amount
    return hits
