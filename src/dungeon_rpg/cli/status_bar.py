"""Persistent status bar — rendered after each command."""
from __future__ import annotations

from rich.console import Console
from rich.text import Text

from dungeon_rpg.models.player import Player


def _bar(current: int, maximum: int, width: int = 8) -> tuple[str, str]:
    pct = current / max(maximum, 1)
    color = "green" if pct > 0.5 else ("yellow" if pct > 0.25 else "red")
    filled = int(max(0.0, pct) * width)
    return f"{'█' * filled}{'░' * (width - filled)}", color


class StatusBar:
    """Compact one-line status: HP | Stamina | Shield | Corruption | Location."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render(self, player: Player, location_name: str = "") -> None:
        line = Text()

        hp_bar, hp_color = _bar(player.hp, player.stats.max_hp)
        line.append("HP ", style="bold")
        line.append(f"[{hp_bar}]", style=hp_color)
        line.append(f" {player.hp}/{player.stats.max_hp}", style=hp_color)

        st_bar, _ = _bar(player.stamina, player.stats.max_stamina)
        line.append(" | ", style="dim")
        line.append("ST ", style="bold")
        line.append(f"[{st_bar}] {player.stamina}/{player.stats.max_stamina}", style="cyan")

        if player.status.shield:
            line.append(" | ", style="dim")
            line.append(f"Shield {player.status.shield}", style="bright_blue")
        if player.status.drone_charges:
            line.append(" | ", style="dim")
            line.append(f"Drone x{player.status.drone_charges}", style="bright_cyan")

        if player.corruption:
            line.append(" | ", style="dim")
            style = "red" if player.corruption >= 70 else ("magenta" if player.corruption >= 40 else "dim")
            line.append(f"Corruption {player.corruption}", style=style)

        if player.conditions:
            line.append(" | ", style="dim")
            line.append(" ".join(f"{c}({d})" for c, d in sorted(player.conditions.items())), style="yellow")

        if location_name:
            line.append(" | ", style="dim")
            line.append(location_name, style="bold white")

        self.console.print(line)
