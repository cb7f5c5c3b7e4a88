"""Combat system — resolves one player action against a room's monsters."""
from __future__ import annotations

import logging
import math
import time
from typing import Callable

from dungeon_rpg.content.catalog import BASIC_ATTACK, Catalog
from dungeon_rpg.mechanics.combat_math import (
    CRIT_MULTIPLIER,
    FLEE_ROLE_WEIGHT,
    absorb_with_shield,
    crit_chance,
    damage_bounds,
    flee_chance,
    mitigate_counter,
    roll_extra_hits,
    shield_from_skill,
    stamina_cost,
)
from dungeon_rpg.mechanics.conditions import apply_condition
from dungeon_rpg.mechanics.dice import Dice, damage_roll
from dungeon_rpg.mechanics.modifiers import (
    apply_player_conditions,
    compute_modifiers,
    flee_bonus,
    weight_penalty,
)
from dungeon_rpg.models.action import ActionOutcome, CombatAction, FleeOutcome
from dungeon_rpg.models.combat import CombatModifiers
from dungeon_rpg.models.item import Skill
from dungeon_rpg.models.monster import MonsterInstance, MonsterTemplate
from dungeon_rpg.models.player import Player
from dungeon_rpg.models.room import Room, RoomEncounterState

logger = logging.getLogger(__name__)

MAX_DRONE_CHARGES = 3
DRONE_GRANT = 2


def _now_ms() -> float:
    return time.time() * 1000


def pick_target(room_state: RoomEncounterState, dice: Dice, target_id: str | None = None) -> MonsterInstance | None:
    """Prefer the requested living instance, else a random living one."""
    alive = room_state.living()
    if not alive:
        return None
    if target_id:
        for m in alive:
            if m.id == target_id:
                return m
    return dice.pick(alive)


def strike_player(
    player: Player,
    damage: int,
    attacker: str,
    log: list[str],
    pierce_shield: bool = False,
) -> int:
    """Land an already-mitigated hit on the player: shield first, then HP.

    A hit that would drop the player to 0 leaves them at 1 HP instead.
    Returns the HP actually lost.
    """
    if not pierce_shield:
        absorbed, damage = absorb_with_shield(player, damage)
        if absorbed:
            log.append(f"Your shield absorbs {absorbed} damage.")
    before = player.hp
    player.hp = max(0, player.hp - damage)
    log.append(f"{attacker} hits you for {damage} damage.")
    if player.hp <= 0:
        player.hp = 1
        log.append("You collapse! Rest or retreat before you fight again.")
    return before - player.hp


class CombatSystem:
    """Action resolver: basic attacks, skills and flee attempts."""

    def __init__(
        self,
        catalog: Catalog,
        dice: Dice | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.catalog = catalog
        self.dice = dice or Dice()
        self.clock = clock

    # -- Player actions --

    def resolve_player_action(
        self,
        player: Player,
        room: Room,
        room_state: RoomEncounterState,
        action: CombatAction | None = None,
    ) -> ActionOutcome:
        action = action or CombatAction(target_id=player.selected_target)
        skill = action.skill or BASIC_ATTACK
        log: list[str] = []

        target = pick_target(room_state, self.dice, action.target_id)
        if target is None:
            log.append("There is nothing left to fight here.")
            return ActionOutcome(log=log, player=player, room_state=room_state, killed=None)

        now = self.clock()
        if skill.cooldown_ms > 0:
            last = player.skill_cooldowns.get(skill.id)
            if last is not None and now - last < skill.cooldown_ms:
                remaining = math.ceil((skill.cooldown_ms - (now - last)) / 1000)
                log.append(f"{skill.name} is recharging: {remaining}s left.")
                return ActionOutcome(log=log, player=player, room_state=room_state, killed=None)

        template = self.catalog.monster(target.template_id)
        foe_name = template.name if template else target.template_id
        mods = apply_player_conditions(compute_modifiers(player, room_state, self.catalog.items), player)

        low, high = damage_bounds(skill.base_damage, player.stats.attributes)
        damage = math.floor(self.dice.between(low, high) * mods.damage_mult)

        cost = stamina_cost(skill.stamina_cost, mods, room.difficulty)
        if player.stamina < cost:
            damage = math.floor(damage * 0.5)
            log.append("Exhausted: too little stamina, your blow lands weakly.")
        player.stamina = max(0, player.stamina - cost)

        if self.dice.chance(crit_chance(player.stats.attributes.luck, mods)):
            damage = math.floor(damage * CRIT_MULTIPLIER)
            log.append("Critical hit!")

        target.hp -= damage
        if target.hp <= 0:
            target.alive = False
            log.append(f"You defeat {foe_name} with {damage} damage.")
        else:
            log.append(f"You hit {foe_name} for {damage}. It has {target.hp} HP left.")

        if mods.element_damage > 0 and target.alive:
            target.hp -= mods.element_damage
            log.append(f"{(mods.element_type or 'elemental').capitalize()} surge deals {mods.element_damage} extra.")
            self._check_defeat(target, foe_name, log)

        if mods.drone_pulse > 0 and target.alive:
            target.hp -= mods.drone_pulse
            player.status.drone_charges = max(0, player.status.drone_charges - 1)
            log.append(f"Your drone fires a pulse for {mods.drone_pulse} damage.")
            self._check_defeat(target, foe_name, log)

        if target.alive and template is not None:
            self._counter_attack(player, template, mods, log)

        extra_hits = roll_extra_hits(self.dice, mods)
        if extra_hits > 0 and target.alive:
            extra = math.floor(damage * extra_hits * 0.5)
            target.hp -= extra
            log.append(f"A follow-up strike deals {extra} damage.")
            self._check_defeat(target, foe_name, log)

        if mods.dot_damage > 0 and target.alive:
            target.hp -= mods.dot_damage
            log.append(f"Lingering toxin deals {mods.dot_damage} damage.")
            self._check_defeat(target, foe_name, log)

        if not target.alive and mods.heal_on_kill > 0:
            before = player.hp
            player.hp = min(player.stats.max_hp, player.hp + mods.heal_on_kill)
            log.append(f"Vital echo: you recover {player.hp - before} HP.")

        self._apply_status_table(skill, player, target, foe_name, log)
        self._apply_side_effect(skill, player, log)

        if target.hp < 0:
            target.hp = 0
        if skill.cooldown_ms > 0:
            player.skill_cooldowns[skill.id] = now
        if not target.alive and template is not None:
            self._award_kill(player, template, log)

        logger.debug("%s used %s on %s (alive=%s)", player.id, skill.id, target.id, target.alive)
        player.clamp_resources()
        return ActionOutcome(
            log=log,
            player=player,
            room_state=room_state,
            killed=None if target.alive else target,
        )

    def resolve_flee(self, player: Player, room_state: RoomEncounterState) -> FleeOutcome:
        log: list[str] = []
        alive = room_state.living()
        if not alive:
            log.append("Nothing here stands in your way. You leave freely.")
            return FleeOutcome(success=True, log=log)

        _, surcharge = weight_penalty(player, self.catalog.items)
        chance = flee_chance(
            agility=player.stats.attributes.agility,
            attack_speed=player.stats.sub.attack_speed,
            bonus=flee_bonus(player),
            alive_count=len(alive),
            weight_surcharge=surcharge,
            death_count=room_state.death_count,
        )
        if self.dice.chance(chance):
            player.stamina = max(0, player.stamina - (4 + surcharge))
            log.append("You break away and run.")
            return FleeOutcome(success=True, log=log)

        chaser, weight = self._most_dangerous(alive)
        damage = 0
        name = "Something"
        if chaser is not None:
            name = chaser.name
            damage = math.floor(damage_roll(self.dice, chaser.damage_range) * weight)
        absorbed, damage = absorb_with_shield(player, damage)
        if absorbed:
            log.append(f"Your shield absorbs {absorbed} damage.")
        player.hp = max(0, player.hp - damage)
        log.append(f"Escape failed! {name} catches you for {damage} damage.")
        return FleeOutcome(success=False, log=log)

    # -- Helpers --

    def _check_defeat(self, target: MonsterInstance, foe_name: str, log: list[str]) -> None:
        if target.hp <= 0 and target.alive:
            target.alive = False
            log.append(f"{foe_name} is defeated.")

    def _counter_attack(
        self,
        player: Player,
        template: MonsterTemplate,
        mods: CombatModifiers,
        log: list[str],
    ) -> None:
        if player.status.drone_charges > 0:
            player.status.drone_charges -= 1
            log.append("Your drone intercepts the counter-attack.")
            return
        if self.dice.chance(mods.counter_skip_chance):
            log.append("You slip away from the counter-attack.")
            return
        raw = damage_roll(self.dice, template.damage_range)
        final = mitigate_counter(raw, player.stats.sub.physical_resistance, mods)
        strike_player(player, final, template.name, log)

    def _apply_status_table(
        self,
        skill: Skill,
        player: Player,
        target: MonsterInstance,
        foe_name: str,
        log: list[str],
    ) -> None:
        for entry in skill.applies:
            if not self.dice.chance(entry.chance):
                continue
            if entry.target == "self":
                apply_condition(player, entry.effect.value, entry.duration)
                log.append(f"You are affected by {entry.effect.value} ({entry.duration}).")
            elif target.alive:
                apply_condition(target, entry.effect.value, entry.duration)
                log.append(f"{foe_name} is afflicted with {entry.effect.value} ({entry.duration}).")

    def _apply_side_effect(self, skill: Skill, player: Player, log: list[str]) -> None:
        if skill.side_effect is None:
            return
        if skill.required_lineage and player.lineage.value != skill.required_lineage:
            log.append(f"{skill.name} stirs nothing in your blood.")
            return
        if skill.required_class and player.base_class != skill.required_class:
            log.append(f"You go through the motions of {skill.name}, to no effect.")
            return
        if skill.side_effect == "shield":
            amount = shield_from_skill(player.stats.attributes)
            player.status.shield += amount
            log.append(f"A ward of {amount} points shimmers around you.")
        elif skill.side_effect == "drone":
            player.status.drone_charges = min(MAX_DRONE_CHARGES, player.status.drone_charges + DRONE_GRANT)
            log.append(f"Drone online: {player.status.drone_charges} charges.")

    def _award_kill(self, player: Player, template: MonsterTemplate, log: list[str]) -> None:
        if template.id not in player.defeated_templates:
            player.defeated_templates.append(template.id)
            player.xp += 1
            log.append(f"XP +1 for defeating a new kind of foe: {template.name}. Total XP: {player.xp}.")
        for drop in template.drop_table:
            if self.dice.chance(drop.chance):
                player.add_item(drop.item_id, drop.quantity)
                item = self.catalog.item(drop.item_id)
                log.append(f"Loot: {item.name if item else drop.item_id} x{drop.quantity}")

    def _most_dangerous(self, alive: list[MonsterInstance]) -> tuple[MonsterTemplate | None, float]:
        best: MonsterTemplate | None = None
        best_weight = 1.0
        best_score = -1.0
        for inst in alive:
            template = self.catalog.monster(inst.template_id)
            if template is None:
                continue
            weight = FLEE_ROLE_WEIGHT.get(template.role, 1.0)
            score = (template.damage_range[0] + template.damage_range[1]) / 2 * weight
            if score > best_score:
                best, best_weight, best_score = template, weight, score
        return best, best_weight
