"""Tests for src/dungeon_rpg/systems/combat/system.py."""
from __future__ import annotations

from dungeon_rpg.models.action import CombatAction
from dungeon_rpg.models.player import Lineage
from dungeon_rpg.models.room import Room
from dungeon_rpg.systems.combat.system import CombatSystem, pick_target, strike_player

ROOM = Room(id="crypt", name="Crypt", biome="crypt", monster_template_ids=("ghoul",))

# Roll order for a basic attack on a lone, surviving ghoul:
# damage, crit, counter-skip, counter damage.
PLAIN_HIT = [0.0, 0.5, 0.5, 0.0]


def _system(catalog, dice, clock=lambda: 50_000.0):
    return CombatSystem(catalog, dice, clock=clock)


class TestBasicAttack:
    def test_full_exchange(self, catalog, player, make_state, spawn, scripted_dice):
        ghoul = spawn("ghoul")
        state = make_state(ghoul)
        dice = scripted_dice(PLAIN_HIT)

        outcome = _system(catalog, dice).resolve_player_action(player, ROOM, state)

        assert player.stamina == 14
        assert ghoul.hp == 4
        assert player.hp == 27
        assert outcome.killed is None
        assert outcome.log[0] == "You hit Ghoul for 11. It has 4 HP left."
        assert "Ghoul hits you for 3 damage." in outcome.log
        assert dice.remaining == 0

    def test_critical_kill_awards_loot_and_xp(self, catalog, player, make_state, spawn, scripted_dice):
        ghoul = spawn("ghoul")
        state = make_state(ghoul)
        dice = scripted_dice([0.99, 0.0, 0.5])

        outcome = _system(catalog, dice).resolve_player_action(player, ROOM, state)

        assert outcome.killed is ghoul
        assert ghoul.alive is False
        assert ghoul.hp == 0
        assert "Critical hit!" in outcome.log
        assert "You defeat Ghoul with 27 damage." in outcome.log
        assert player.xp == 1
        assert player.defeated_templates == ["ghoul"]
        assert player.inventory == {"bone_shard": 1}
        assert player.hp == 30

    def test_repeat_kill_gives_no_xp(self, catalog, player, make_state, spawn, scripted_dice):
        player.defeated_templates = ["ghoul"]
        state = make_state(spawn("ghoul", hp=5))
        _system(catalog, scripted_dice([0.0, 0.5, 0.5])).resolve_player_action(player, ROOM, state)
        assert player.xp == 0

    def test_exhausted_blow_is_halved(self, catalog, player, make_state, spawn, scripted_dice):
        player.stamina = 3
        ghoul = spawn("ghoul")
        outcome = _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(player, ROOM, make_state(ghoul))
        assert ghoul.hp == 10
        assert player.stamina == 0
        assert any(line.startswith("Exhausted") for line in outcome.log)

    def test_nothing_to_fight(self, catalog, player, make_state, spawn, scripted_dice):
        state = make_state(spawn("ghoul", hp=0, alive=False))
        before = player.model_copy(deep=True)
        outcome = _system(catalog, scripted_dice([])).resolve_player_action(player, ROOM, state)
        assert outcome.log == ["There is nothing left to fight here."]
        assert outcome.killed is None
        assert player == before

    def test_explicit_target_is_preferred(self, catalog, player, make_state, spawn, scripted_dice):
        first, second = spawn("ghoul"), spawn("ghoul")
        state = make_state(first, second)
        action = CombatAction(target_id=second.id)
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(player, ROOM, state, action)
        assert first.hp == 15
        assert second.hp == 4

    def test_dead_explicit_target_falls_back_to_random(self, catalog, player, make_state, spawn, scripted_dice):
        dead, alive = spawn("ghoul", hp=0, alive=False), spawn("ghoul")
        state = make_state(dead, alive)
        action = CombatAction(target_id=dead.id)
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(player, ROOM, state, action)
        assert alive.hp == 4

    def test_difficulty_raises_stamina_cost(self, catalog, player, make_state, spawn, scripted_dice):
        hard = Room(id="deep", difficulty=3, monster_template_ids=("ghoul",))
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(player, hard, make_state(spawn("ghoul")))
        assert player.stamina == 13


class TestCounterAttack:
    def test_drone_intercepts(self, catalog, player, make_state, spawn, scripted_dice):
        player.status.drone_charges = 1
        outcome = _system(catalog, scripted_dice([0.0, 0.5])).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul"))
        )
        assert player.status.drone_charges == 0
        assert player.hp == 30
        assert "Your drone intercepts the counter-attack." in outcome.log

    def test_shield_absorbs_first(self, catalog, player, make_state, spawn, scripted_dice):
        player.status.shield = 2
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(player, ROOM, make_state(spawn("ghoul")))
        assert player.status.shield == 0
        assert player.hp == 29

    def test_counter_skip(self, catalog, player, make_state, spawn, scripted_dice):
        player.passives = ["spectral_mantle"]
        outcome = _system(catalog, scripted_dice([0.0, 0.5, 0.1])).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul"))
        )
        assert player.hp == 30
        assert "You slip away from the counter-attack." in outcome.log

    def test_lethal_counter_leaves_one_hp(self, catalog, player, make_state, spawn, scripted_dice):
        player.hp = 2
        outcome = _system(catalog, scripted_dice([0.0, 0.5, 0.5, 0.99])).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul"))
        )
        assert player.hp == 1
        assert outcome.log[-1].startswith("You collapse!")


class TestModifierEffects:
    def test_element_surge_and_toxin(self, catalog, player, make_state, spawn, scripted_dice):
        player.essences = ["living_manuscript", "swamp_toxin"]
        ghoul = spawn("ghoul", hp=40)
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(player, ROOM, make_state(ghoul))
        # 11 hit + 2 arcane + 2 toxin
        assert ghoul.hp == 25
        # 6 base - 2 from the manuscript
        assert player.stamina == 16

    def test_extra_hit_proc(self, catalog, player, make_state, spawn, scripted_dice):
        player.passives = ["blade_dance"]
        ghoul = spawn("ghoul", hp=40)
        _system(catalog, scripted_dice(PLAIN_HIT + [0.05])).resolve_player_action(player, ROOM, make_state(ghoul))
        # 11 + floor(11 * 1 * 0.5)
        assert ghoul.hp == 24

    def test_heal_on_kill(self, catalog, player, make_state, spawn, scripted_dice):
        player.essences = ["crypt_echo"]
        player.hp = 20
        outcome = _system(catalog, scripted_dice([0.0, 0.5, 0.5])).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul", hp=5))
        )
        assert player.hp == 26
        assert any(line.startswith("Vital echo") for line in outcome.log)

    def test_drone_pulse_spends_charge(self, catalog, player, make_state, spawn, scripted_dice):
        player.essences = ["technomantic_core"]
        player.status.drone_charges = 2
        ghoul = spawn("ghoul", hp=40)
        _system(catalog, scripted_dice([0.0, 0.5])).resolve_player_action(player, ROOM, make_state(ghoul))
        # 11 hit + 1 shock + 3 pulse; the second charge intercepts the counter
        assert ghoul.hp == 25
        assert player.status.drone_charges == 0


class TestSkills:
    def test_status_table_applies_to_foe(self, catalog, player, make_state, spawn, scripted_dice):
        ghoul = spawn("ghoul")
        action = CombatAction(skill=catalog.skill("venom_dart"))
        _system(catalog, scripted_dice(PLAIN_HIT + [0.1])).resolve_player_action(player, ROOM, make_state(ghoul), action)
        assert ghoul.hp == 6
        assert ghoul.conditions == {"poison": 3}
        assert player.stamina == 15

    def test_status_roll_can_miss(self, catalog, player, make_state, spawn, scripted_dice):
        ghoul = spawn("ghoul")
        action = CombatAction(skill=catalog.skill("venom_dart"))
        _system(catalog, scripted_dice(PLAIN_HIT + [0.9])).resolve_player_action(player, ROOM, make_state(ghoul), action)
        assert ghoul.conditions == {}

    def test_ward_grants_shield(self, catalog, player, make_state, spawn, scripted_dice):
        action = CombatAction(skill=catalog.skill("ward"))
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul", hp=40)), action
        )
        assert player.status.shield == 4

    def test_lineage_mismatch_is_flavor_only(self, catalog, player, make_state, spawn, scripted_dice):
        ghoul = spawn("ghoul")
        action = CombatAction(skill=catalog.skill("drone"))
        outcome = _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(
            player, ROOM, make_state(ghoul), action
        )
        assert player.status.drone_charges == 0
        assert ghoul.hp == 4
        assert "Deploy Drone stirs nothing in your blood." in outcome.log

    def test_matching_lineage_deploys_drone(self, catalog, player, make_state, spawn, scripted_dice):
        player.lineage = Lineage.TECHNOLOGICAL
        action = CombatAction(skill=catalog.skill("drone"))
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul")), action
        )
        assert player.status.drone_charges == 2

    def test_cooldown_blocks_reuse(self, catalog, player, make_state, spawn, scripted_dice):
        ghoul = spawn("ghoul")
        player.skill_cooldowns = {"heavy_swing": 48_000.0}
        action = CombatAction(skill=catalog.skill("heavy_swing"))
        outcome = _system(catalog, scripted_dice([])).resolve_player_action(player, ROOM, make_state(ghoul), action)
        assert outcome.log == ["Heavy Swing is recharging: 1s left."]
        assert ghoul.hp == 15
        assert player.stamina == 20

    def test_cooldown_recorded_after_use(self, catalog, player, make_state, spawn, scripted_dice):
        action = CombatAction(skill=catalog.skill("heavy_swing"))
        _system(catalog, scripted_dice(PLAIN_HIT)).resolve_player_action(
            player, ROOM, make_state(spawn("ghoul")), action
        )
        assert player.skill_cooldowns == {"heavy_swing": 50_000.0}


class TestFlee:
    def test_free_exit_from_empty_room(self, catalog, player, make_state, scripted_dice):
        outcome = _system(catalog, scripted_dice([])).resolve_flee(player, make_state())
        assert outcome.success is True
        assert player.stamina == 20

    def test_successful_escape_costs_stamina(self, catalog, player, make_state, spawn, scripted_dice):
        outcome = _system(catalog, scripted_dice([0.1])).resolve_flee(player, make_state(spawn("ghoul")))
        assert outcome.success is True
        assert player.stamina == 16

    def test_failed_escape_takes_a_hit(self, catalog, player, make_state, spawn, scripted_dice):
        outcome = _system(catalog, scripted_dice([0.9, 0.99])).resolve_flee(
            player, make_state(spawn("wraith"), spawn("ghoul"))
        )
        assert outcome.success is False
        # ghoul is the brute: floor(6 * 1.2)
        assert player.hp == 23
        assert outcome.log == ["Escape failed! Ghoul catches you for 7 damage."]


def test_pick_target_prefers_living_requested(make_state, spawn, scripted_dice):
    a, b = spawn("ghoul"), spawn("wraith")
    assert pick_target(make_state(a, b), scripted_dice([]), b.id) is b
    assert pick_target(make_state(a, b), scripted_dice([0.9])) is b
    assert pick_target(make_state(), scripted_dice([])) is None


def test_strike_player_pierces_shield(player):
    player.status.shield = 10
    log: list[str] = []
    lost = strike_player(player, 4, "Warden", log, pierce_shield=True)
    assert lost == 4
    assert player.status.shield == 10
    assert log == ["Warden hits you for 4 damage."]
