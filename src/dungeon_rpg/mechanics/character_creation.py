"""Character creation logic — assembles a complete Player."""
from __future__ import annotations

from dungeon_rpg.models.player import Attributes, Lineage, Player, Stats, SubAttributes

LINEAGE_BONUSES: dict[Lineage, dict[str, int]] = {
    Lineage.MAGICAL: {"mind": 2, "focus": 1},
    Lineage.COSMIC: {"luck": 2, "mind": 1},
    Lineage.TECHNOLOGICAL: {"focus": 1, "agility": 1, "strength": 1},
    Lineage.SUPERNATURAL: {"blood": 2, "vigor": 1},
}

# race -> sub-attribute bonuses
RACE_PERKS: dict[str, dict[str, int]] = {
    "human": {"perception": 1},
    "wanderer": {"essence_affinity": 1},
    "remnant": {"ethereal_resistance": 1},
}

STARTING_KITS: dict[Lineage, dict[str, int]] = {
    Lineage.MAGICAL: {"healing_draught": 1},
    Lineage.COSMIC: {"healing_draught": 1},
    Lineage.TECHNOLOGICAL: {"healing_draught": 1},
    Lineage.SUPERNATURAL: {"healing_draught": 2},
}

BASE_HP = 30
BASE_STAMINA = 20
STARTING_WEAPON = "rusted_blade"
STARTING_ARMOR = "padded_jerkin"


def apply_lineage_bonuses(attributes: Attributes, lineage: Lineage) -> Attributes:
    data = attributes.model_dump()
    for attr, bonus in LINEAGE_BONUSES.get(lineage, {}).items():
        data[attr] += bonus
    return Attributes(**data)


def derive_sub_attributes(attributes: Attributes, race: str) -> SubAttributes:
    """Sub-attributes follow from the primary ones plus a small racial perk."""
    sub = SubAttributes(
        carry_capacity=10 + attributes.strength,
        physical_resistance=attributes.vigor // 2,
        ethereal_resistance=attributes.mind // 2,
        attack_speed=attributes.agility // 3,
        stamina_regen=1 + attributes.focus // 3,
        essence_affinity=attributes.blood // 2,
        perception=attributes.luck // 2,
    )
    for field, bonus in RACE_PERKS.get(race, {}).items():
        setattr(sub, field, getattr(sub, field) + bonus)
    return sub


def derive_stats(attributes: Attributes, race: str = "human") -> Stats:
    return Stats(
        attributes=attributes,
        sub=derive_sub_attributes(attributes, race),
        max_hp=BASE_HP + 2 * attributes.vigor,
        max_stamina=BASE_STAMINA + attributes.vigor + attributes.focus,
    )


def create_player(
    name: str,
    lineage: Lineage | str = Lineage.MAGICAL,
    race: str = "human",
    attributes: Attributes | dict | None = None,
    base_class: str = "wanderer",
) -> Player:
    """Build a fresh level-1 player with full resources and a starting kit.

    Raises ValueError for an unknown lineage or race, or a blank name.
    """
    name = name.strip()
    if not name:
        raise ValueError("Player name cannot be empty")
    lineage = Lineage(lineage)
    if race not in RACE_PERKS:
        raise ValueError(f"Unknown race '{race}'. Choose from: {', '.join(sorted(RACE_PERKS))}")

    if attributes is None:
        attributes = Attributes()
    elif isinstance(attributes, dict):
        attributes = Attributes(**attributes)
    attributes = apply_lineage_bonuses(attributes, lineage)
    stats = derive_stats(attributes, race)

    return Player(
        name=name,
        lineage=lineage,
        race=race,
        base_class=base_class,
        stats=stats,
        hp=stats.max_hp,
        stamina=stats.max_stamina,
        equipment={"weapon": STARTING_WEAPON, "armor": STARTING_ARMOR},
        inventory=dict(STARTING_KITS[lineage]),
    )
