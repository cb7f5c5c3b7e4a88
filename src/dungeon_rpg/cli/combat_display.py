"""Combat-specific display helpers."""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dungeon_rpg.content.catalog import Catalog
from dungeon_rpg.models.player import Player
from dungeon_rpg.models.room import Room, RoomEncounterState

CONDITION_COLORS = {
    "poison": "green",
    "bleed": "red",
    "fear": "magenta",
    "stun": "yellow",
    "freeze": "bright_blue",
    "weaken": "dim",
    "silence": "cyan",
    "slow": "dark_orange",
}


class CombatDisplay:
    def __init__(self, catalog: Catalog, console: Console | None = None) -> None:
        self.catalog = catalog
        self.console = console or Console()

    def show_room(self, room: Room, state: RoomEncounterState) -> None:
        """Panel listing every monster instance with an HP bar and conditions."""
        title = f"{room.name or room.id} [dim]({room.room_type.value}, difficulty {room.difficulty})[/dim]"
        if not state.monsters:
            self.console.print(Panel("Nothing stirs here.", title=title, border_style="green", box=box.ROUNDED))
            return

        table = Table(box=None, show_header=False, padding=(0, 1))
        table.add_column("Name")
        table.add_column("HP")
        table.add_column("Id", style="dim")
        table.add_column("Conditions")
        for inst in state.monsters:
            template = self.catalog.monster(inst.template_id)
            name = template.name if template else inst.template_id
            if inst.power:
                name = f"{name} [bold yellow]*[/bold yellow]"
            maximum = inst.max_hp or (template.hp if template else max(inst.hp, 1))
            if not inst.is_standing:
                table.add_row(f"[strike dim]{name}[/strike dim]", "[dim]defeated[/dim]", inst.id[:8], "")
                continue
            table.add_row(name, self._hp_bar(inst.hp, maximum), inst.id[:8], self._conditions(inst.conditions))

        border = "red" if state.living() else "green"
        notes = []
        if state.death_count:
            notes.append(f"Room clears: {state.death_count}")
        if state.loot_units:
            notes.append(f"Loot left behind: {state.loot_units}")
        footer = " | ".join(notes) or None
        self.console.print(Panel(table, title=title, subtitle=footer, border_style=border, box=box.ROUNDED))

    def show_log(self, log: list[str]) -> None:
        for line in log:
            self.console.print(self._style_line(line))

    def show_victory(self, name: str) -> None:
        self.console.print(Panel(f"[bold green]{name} falls![/bold green]", border_style="green", box=box.HEAVY))

    def show_flee(self, success: bool) -> None:
        if success:
            self.console.print("[bold green]You escape.[/bold green]")
        else:
            self.console.print("[bold red]You are cut off![/bold red]")

    def show_player(self, player: Player) -> None:
        """Character sheet: attributes, gear and inventory."""
        attrs = player.stats.attributes
        table = Table(title=f"{player.name} [dim]({player.lineage.value} {player.race})[/dim]", box=box.SIMPLE)
        table.add_column("Attribute")
        table.add_column("Value", justify="right")
        for field_name, value in attrs.model_dump().items():
            table.add_row(field_name.capitalize(), str(value))
        table.add_row("XP", str(player.xp))
        table.add_row("Gold", str(player.gold))
        self.console.print(table)

        if player.equipment:
            gear = ", ".join(
                f"{slot.value}: {self._item_name(item_id)}" for slot, item_id in player.equipment.items()
            )
            self.console.print(f"[bold]Equipped:[/bold] {gear}")
        if player.inventory:
            bag = ", ".join(f"{self._item_name(i)} x{q}" for i, q in sorted(player.inventory.items()))
            self.console.print(f"[bold]Pack:[/bold] {bag}")
        if player.passives or player.essences:
            self.console.print(f"[bold]Passives:[/bold] {', '.join(player.passives) or '-'}   "
                               f"[bold]Essences:[/bold] {', '.join(player.essences) or '-'}")

    # -- Helpers --

    def _item_name(self, item_id: str) -> str:
        item = self.catalog.item(item_id)
        return item.name if item else item_id

    @staticmethod
    def _hp_bar(current: int, maximum: int, width: int = 12) -> str:
        pct = max(0.0, current / max(maximum, 1))
        color = "green" if pct > 0.5 else ("yellow" if pct > 0.25 else "red")
        filled = min(width, int(pct * width))
        return f"[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim] {current}/{maximum}"

    @staticmethod
    def _conditions(conditions: dict[str, int]) -> str:
        tags = []
        for cond, turns in sorted(conditions.items()):
            color = CONDITION_COLORS.get(cond, "cyan")
            tags.append(f"[{color}]{cond}({turns})[/{color}]")
        return " ".join(tags)

    @staticmethod
    def _style_line(line: str) -> Text:
        text = Text(line)
        if "Critical" in line or "defeat" in line:
            text.stylize("bold yellow")
        elif "hits you" in line or "collapse" in line or "trap" in line.lower():
            text.stylize("red")
        elif "shield" in line.lower() or "drone" in line.lower():
            text.stylize("bright_blue")
        elif line.startswith("Loot") or line.startswith("XP"):
            text.stylize("green")
        return text
