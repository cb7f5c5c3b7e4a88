from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CombatModifiers:
    """Derived per-action combat view of a player. Never persisted."""

    damage_mult: float = 1.0
    element_damage: int = 0
    element_type: Optional[str] = None
    stamina_delta: int = 0
    crit_bonus: float = 0.0
    counter_skip_chance: float = 0.0
    counter_mit_percent: float = 0.0
    counter_mit_flat: int = 0
    # (chance, hits) pairs rolled by the action resolver
    extra_hit_procs: tuple[tuple[float, float], ...] = field(default_factory=tuple)
    dot_damage: int = 0
    heal_on_kill: int = 0
    drone_pulse: int = 0
    weight_excess: int = 0
    weight_surcharge: int = 0
