"""Typer CLI application."""
from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(
    name="dungeon-rpg",
    help="Room-based dungeon combat from the command line",
    no_args_is_help=True,
)

console = Console()

PlayerOpt = typer.Option(..., "--player", "-p", help="Player id (printed by new-player)")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")) -> None:
    setup_logging(verbose)


def _app():
    from dungeon_rpg.app import GameApp

    return GameApp()


def _run(fn):
    """Call into the game, turning caller-facing failures into a clean exit."""
    from dungeon_rpg.app import EntityNotFoundError
    from dungeon_rpg.storage.locks import LockUnavailableError

    try:
        return fn()
    except EntityNotFoundError as e:
        console.print(f"[bold red]Not found:[/bold red] {e}")
        raise typer.Exit(code=2)
    except LockUnavailableError as e:
        console.print(f"[bold yellow]Busy:[/bold yellow] {e}. Try again in a moment.")
        raise typer.Exit(code=3)
    except ValueError as e:
        console.print(f"[bold red]Invalid input:[/bold red] {e}")
        raise typer.Exit(code=1)


def _show_report(game_app, report) -> None:
    from dungeon_rpg.cli.combat_display import CombatDisplay
    from dungeon_rpg.cli.status_bar import StatusBar

    display = CombatDisplay(game_app.catalog, console)
    display.show_log(report.log)
    if report.killed is not None:
        template = game_app.catalog.monster(report.killed.template_id)
        display.show_victory(template.name if template else report.killed.template_id)
    if report.fled is not None:
        display.show_flee(report.fled)
    else:
        display.show_room(report.room, report.room_state)
    StatusBar(console).render(report.player, report.room.name)


@app.command("new-player")
def new_player(
    name: str = typer.Argument(..., help="Character name"),
    lineage: str = typer.Option("magical", "--lineage", "-l", help="magical, cosmic, technological or supernatural"),
    race: str = typer.Option("human", "--race", "-r", help="human, wanderer or remnant"),
) -> None:
    """Create a new character and print its id."""
    game_app = _app()
    player = _run(lambda: game_app.create_player(name, lineage=lineage, race=race))
    console.print(f"Created [bold]{player.name}[/bold]. Player id: [cyan]{player.id}[/cyan]")


@app.command()
def look(room_id: str = typer.Argument(..., help="Room id")) -> None:
    """Show who is standing in a room."""
    from dungeon_rpg.cli.combat_display import CombatDisplay

    game_app = _app()
    room, state = _run(lambda: game_app.look(room_id))
    CombatDisplay(game_app.catalog, console).show_room(room, state)


@app.command()
def attack(
    room_id: str = typer.Argument(..., help="Room id"),
    player_id: str = PlayerOpt,
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Monster instance id"),
) -> None:
    """Basic attack against a monster in the room."""
    game_app = _app()
    report = _run(lambda: game_app.attack(player_id, room_id, target_id=_resolve_target(game_app, room_id, target)))
    _show_report(game_app, report)


@app.command()
def skill(
    skill_id: str = typer.Argument(..., help="Skill id"),
    room_id: str = typer.Argument(..., help="Room id"),
    player_id: str = PlayerOpt,
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Monster instance id"),
) -> None:
    """Use a skill in the room."""
    game_app = _app()
    report = _run(lambda: game_app.attack(
        player_id, room_id, skill_id=skill_id, target_id=_resolve_target(game_app, room_id, target),
    ))
    _show_report(game_app, report)


@app.command()
def flee(room_id: str = typer.Argument(..., help="Room id"), player_id: str = PlayerOpt) -> None:
    """Try to escape the room."""
    game_app = _app()
    _show_report(game_app, _run(lambda: game_app.flee(player_id, room_id)))


@app.command()
def rest(room_id: str = typer.Argument(..., help="Room id"), player_id: str = PlayerOpt) -> None:
    """Recover some HP and stamina. Safe only in a sanctuary."""
    game_app = _app()
    _show_report(game_app, _run(lambda: game_app.rest(player_id, room_id)))


@app.command()
def players() -> None:
    """List saved characters."""
    from rich.table import Table

    game_app = _app()
    roster = game_app.list_players()
    if not roster:
        console.print("[dim]No characters yet. Create one with new-player.[/dim]")
        return
    table = Table("Id", "Name", "Lineage", "HP")
    for player in roster:
        table.add_row(player.id, player.name, player.lineage.value, f"{player.hp}/{player.stats.max_hp}")
    console.print(table)


@app.command()
def status(player_id: str = PlayerOpt) -> None:
    """Show the character sheet."""
    from dungeon_rpg.cli.combat_display import CombatDisplay
    from dungeon_rpg.cli.status_bar import StatusBar

    game_app = _app()
    player = _run(lambda: game_app.status(player_id))
    CombatDisplay(game_app.catalog, console).show_player(player)
    StatusBar(console).render(player)


def _resolve_target(game_app, room_id: str, prefix: str | None) -> str | None:
    """Expand the short id shown by ``look`` to a full instance id."""
    if not prefix:
        return None
    _, state = _run(lambda: game_app.look(room_id))
    for inst in state.monsters:
        if inst.id.startswith(prefix):
            return inst.id
    return prefix


if __name__ == "__main__":
    app()
