"""Status condition ledger — stacking, decaying effects on any combatant.

A combatant is anything with ``hp`` and a ``conditions`` mapping of
effect id -> remaining duration. Monster instances also carry ``alive``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class Condition(str, Enum):
    POISON = "poison"
    BLEED = "bleed"
    FEAR = "fear"
    STUN = "stun"
    FREEZE = "freeze"
    WEAKEN = "weaken"
    SILENCE = "silence"
    SLOW = "slow"


DOT_DAMAGE = 2

CONDITION_EFFECTS: dict[str, dict[str, Any]] = {
    "poison": {"periodic_damage": DOT_DAMAGE},
    "bleed": {"periodic_damage": DOT_DAMAGE},
    "fear": {"hesitate_chance": 0.5},
    "stun": {"skip_turn": True},
    "freeze": {"skip_turn": True},
    "weaken": {"monster_damage_factor": 0.85, "player_damage_factor": 0.9},
    "silence": {"blocks_specials": True, "player_damage_factor": 0.9},
    "slow": {"monster_damage_factor": 0.9, "player_stamina_penalty": 1},
}


def get_condition_effects(condition: str) -> dict[str, Any]:
    """Get the mechanical effects of a condition."""
    return CONDITION_EFFECTS.get(condition.lower(), {})


def _active(conditions: dict[str, int]) -> list[str]:
    return [c for c, d in conditions.items() if d > 0]


def apply_condition(combatant: Any, effect: str, duration: int) -> int:
    """Apply ``effect`` keeping the longer of the current and incoming duration.

    Returns the resulting duration.
    """
    key = Condition(effect).value
    current = combatant.conditions.get(key, 0)
    result = max(current, int(duration))
    if result > 0:
        combatant.conditions[key] = result
    return result


def tick_conditions(combatant: Any, log: list[str], name: str = "You") -> int:
    """Advance every condition on ``combatant`` by one tick.

    Poison and bleed hit before their durations drop. Returns the periodic
    damage dealt.
    """
    damage = 0
    sources: list[str] = []
    for cond in (Condition.POISON.value, Condition.BLEED.value):
        if combatant.conditions.get(cond, 0) > 0:
            damage += CONDITION_EFFECTS[cond]["periodic_damage"]
            sources.append(cond)

    if damage:
        combatant.hp = max(0, combatant.hp - damage)
        log.append(f"{name} suffer{'s' if name != 'You' else ''} {damage} damage from {' and '.join(sources)}.")
        if combatant.hp <= 0 and hasattr(combatant, "alive"):
            combatant.alive = False

    for cond in list(combatant.conditions):
        remaining = combatant.conditions[cond] - 1
        if remaining <= 0:
            del combatant.conditions[cond]
        else:
            combatant.conditions[cond] = remaining
    return damage


def tick_player(player: Any, log: list[str]) -> int:
    """Tick the player's conditions. A tick alone never kills: it leaves 1 HP."""
    damage = tick_conditions(player, log, "You")
    if damage and player.hp <= 0:
        player.hp = 1
        log.append("You collapse! Rest or retreat before you fight again.")
    return damage


def skips_turn(conditions: dict[str, int]) -> bool:
    """Stunned or frozen combatants lose their action."""
    return any(get_condition_effects(c).get("skip_turn") for c in _active(conditions))


def hesitate_chance(conditions: dict[str, int]) -> float:
    return max((get_condition_effects(c).get("hesitate_chance", 0.0) for c in _active(conditions)), default=0.0)


def is_silenced(conditions: dict[str, int]) -> bool:
    return any(get_condition_effects(c).get("blocks_specials") for c in _active(conditions))


def monster_damage_factor(conditions: dict[str, int]) -> float:
    factor = 1.0
    for c in _active(conditions):
        factor *= get_condition_effects(c).get("monster_damage_factor", 1.0)
    return factor


def player_damage_factor(conditions: dict[str, int]) -> float:
    factor = 1.0
    for c in _active(conditions):
        factor *= get_condition_effects(c).get("player_damage_factor", 1.0)
    return factor


def player_stamina_penalty(conditions: dict[str, int]) -> int:
    return sum(get_condition_effects(c).get("player_stamina_penalty", 0) for c in _active(conditions))
