"""Monster turn controller — the room's monsters act against the player.

The number of actions grows with the number of living monsters and with
the room's death history (the danger ramp). Each action picks a random
living monster, which then behaves according to its role.
"""
from __future__ import annotations

import logging
import math

from dungeon_rpg.content.catalog import Catalog
from dungeon_rpg.mechanics.combat_math import mitigate_counter
from dungeon_rpg.mechanics.conditions import (
    apply_condition,
    hesitate_chance,
    is_silenced,
    monster_damage_factor,
    skips_turn,
    tick_conditions,
    tick_player,
)
from dungeon_rpg.mechanics.dice import Dice, damage_roll
from dungeon_rpg.mechanics.modifiers import compute_modifiers
from dungeon_rpg.models.action import MonsterTurnOutcome
from dungeon_rpg.models.combat import CombatModifiers
from dungeon_rpg.models.monster import MonsterInstance, MonsterRole, MonsterTemplate
from dungeon_rpg.models.player import Player
from dungeon_rpg.models.room import RoomEncounterState
from dungeon_rpg.systems.combat.system import strike_player

logger = logging.getLogger(__name__)

MAX_DANGER_RAMP = 2

# role -> (damage multiplier, chance it applies). None means always.
ROLE_DAMAGE: dict[MonsterRole, tuple[float, float | None]] = {
    MonsterRole.BRUTE: (1.2, None),
    MonsterRole.CASTER: (1.1, None),
    MonsterRole.SKIRMISHER: (1.3, 0.20),
}

ELITE_STRIKE_CHANCE = 0.35
ELITE_PIERCE_CHANCE = 0.40
CASTER_DRAIN_CHANCE = 0.45
SKIRMISHER_AMBUSH_CHANCE = 0.25

# (condition, chance, duration)
ROLE_AFFLICTIONS: dict[MonsterRole, tuple[str, float, int]] = {
    MonsterRole.SKIRMISHER: ("bleed", 0.25, 2),
    MonsterRole.CASTER: ("silence", 0.20, 2),
    MonsterRole.BRUTE: ("stun", 0.20, 1),
    MonsterRole.SUPPORT: ("weaken", 0.25, 2),
    MonsterRole.ELITE: ("fear", 0.20, 2),
}

BIOME_AFFLICTIONS: dict[str, tuple[str, float, int]] = {
    "swamp": ("poison", 0.25, 3),
    "crypt": ("fear", 0.20, 1),
    "abyssal_rift": ("weaken", 0.20, 2),
}


def danger_ramp(death_count: int) -> int:
    return min(MAX_DANGER_RAMP, death_count)


def action_budget(alive_count: int, death_count: int) -> int:
    """How many monster actions happen this turn."""
    return min(alive_count, 1 + (1 if alive_count > 1 else 0) + danger_ramp(death_count))


def trap_chance(death_count: int) -> float:
    return min(0.25, 0.05 * death_count)


def trap_damage(death_count: int) -> int:
    return 2 + 2 * death_count


class MonsterTurnController:
    def __init__(self, catalog: Catalog, dice: Dice | None = None) -> None:
        self.catalog = catalog
        self.dice = dice or Dice()

    def run(self, player: Player, room_state: RoomEncounterState) -> MonsterTurnOutcome:
        log: list[str] = []

        tick_player(player, log)

        alive = room_state.living()
        if not alive:
            player.clamp_resources()
            return MonsterTurnOutcome(log=log, player=player)

        ramp = danger_ramp(room_state.death_count)
        budget = action_budget(len(alive), room_state.death_count)
        mods = compute_modifiers(player, room_state, self.catalog.items)
        ticked: set[str] = set()

        for _ in range(budget):
            alive = room_state.living()
            if not alive:
                break
            inst = self.dice.pick(alive)
            template = self.catalog.monster(inst.template_id)
            if template is None:
                logger.warning("Room %s holds unknown monster template %s", room_state.room_id, inst.template_id)
                continue

            if inst.id not in ticked:
                ticked.add(inst.id)
                tick_conditions(inst, log, template.name)
                if not inst.is_standing:
                    inst.alive = False
                    log.append(f"{template.name} succumbs before it can act.")
                    continue

            chance = trap_chance(room_state.death_count)
            if chance > 0 and self.dice.chance(chance):
                damage = trap_damage(room_state.death_count)
                log.append("A trap left by earlier struggles springs!")
                strike_player(player, damage, "The trap", log)
                continue

            if skips_turn(inst.conditions):
                log.append(f"{template.name} is unable to act.")
                continue
            hesitate = hesitate_chance(inst.conditions)
            if hesitate > 0 and self.dice.chance(hesitate):
                log.append(f"{template.name} hesitates in fear.")
                continue

            if self._act(inst, template, player, room_state, mods, ramp, log):
                self._afflict(template, player, log)

        player.clamp_resources()
        return MonsterTurnOutcome(log=log, player=player)

    # -- Role behavior --

    def _act(
        self,
        inst: MonsterInstance,
        template: MonsterTemplate,
        player: Player,
        room_state: RoomEncounterState,
        mods: CombatModifiers,
        ramp: int,
        log: list[str],
    ) -> bool:
        """Run one monster action. Returns True if it targeted the player."""
        role = template.role

        if role == MonsterRole.SUPPORT and self._heal_ally(template, room_state, log):
            return False

        if role == MonsterRole.ELITE and self.dice.chance(ELITE_STRIKE_CHANCE):
            raw = damage_roll(self.dice, template.damage_range)
            raw = math.floor(raw * (1.5 + 0.25 * inst.power) * (1 + 0.1 * ramp) * monster_damage_factor(inst.conditions))
            pierce = self.dice.chance(ELITE_PIERCE_CHANCE)
            final = mitigate_counter(raw, player.stats.sub.physical_resistance, mods)
            log.append(f"{template.name} unleashes an empowered strike{' that pierces your shield' if pierce else ''}!")
            strike_player(player, final, template.name, log, pierce_shield=pierce)
            return True

        if role == MonsterRole.CASTER and not is_silenced(inst.conditions) and self.dice.chance(CASTER_DRAIN_CHANCE):
            drain = max(2, damage_roll(self.dice, template.damage_range) // 2 + ramp)
            player.stamina = max(0, player.stamina - drain)
            log.append(f"{template.name} siphons {drain} stamina from you.")
            return True

        bonus = 0
        if role == MonsterRole.SKIRMISHER and self.dice.chance(SKIRMISHER_AMBUSH_CHANCE):
            bonus = math.ceil(template.damage_range[1] / 2)
            log.append(f"{template.name} strikes from an unseen angle!")

        raw = self._standard_damage(inst, template, ramp) + bonus
        final = mitigate_counter(raw, player.stats.sub.physical_resistance, mods)
        strike_player(player, final, template.name, log)
        return True

    def _standard_damage(self, inst: MonsterInstance, template: MonsterTemplate, ramp: int) -> int:
        raw = float(damage_roll(self.dice, template.damage_range))
        role_mult, role_chance = ROLE_DAMAGE.get(template.role, (1.0, None))
        if role_chance is None or self.dice.chance(role_chance):
            raw *= role_mult
        raw *= 1 + 0.1 * ramp
        raw *= 1 + 0.15 * inst.power
        raw *= monster_damage_factor(inst.conditions)
        return math.floor(raw)

    def _heal_ally(self, healer: MonsterTemplate, room_state: RoomEncounterState, log: list[str]) -> bool:
        injured: list[tuple[MonsterInstance, MonsterTemplate]] = []
        for m in room_state.living():
            template = self.catalog.monster(m.template_id)
            if template is not None and m.hp < template.hp:
                injured.append((m, template))
        if not injured:
            return False
        ally, ally_template = min(injured, key=lambda pair: pair[0].hp / max(pair[1].hp, 1))
        amount = min(max(2, healer.hp // 5), ally_template.hp - ally.hp)
        ally.hp += amount
        log.append(f"{healer.name} mends {ally_template.name} for {amount} HP.")
        return True

    def _afflict(self, template: MonsterTemplate, player: Player, log: list[str]) -> None:
        rolls = []
        if template.role in ROLE_AFFLICTIONS:
            rolls.append(ROLE_AFFLICTIONS[template.role])
        if template.biome in BIOME_AFFLICTIONS:
            rolls.append(BIOME_AFFLICTIONS[template.biome])
        for condition, chance, duration in rolls:
            if self.dice.chance(chance):
                apply_condition(player, condition, duration)
                log.append(f"{template.name} leaves you afflicted with {condition}.")
