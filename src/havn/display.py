"""Rich terminal display for havn."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from havn.entries import Entry
from havn.reconcile import ReconcileResult
from havn.streaks import StreakStats

console = Console()

_PREVIEW_WIDTH = 48


def preview_text(text: str | None, width: int = _PREVIEW_WIDTH) -> str:
    """First line of an entry body, shortened to width with an ellipsis."""
    if not text or not text.strip():
        return ""
    first = text.strip().splitlines()[0]
    if len(first) <= width:
        return first
    return first[: width - 1].rstrip() + "…"


def format_streak(days: int) -> str:
    """'1 day' / 'N days'."""
    return f"{days} day" if days == 1 else f"{days} days"


def _streak_color(current: int) -> str:
    if current >= 30:
        return "gold1"
    if current >= 7:
        return "orange_red1"
    if current > 0:
        return "dark_orange3"
    return "grey70"


def print_streak(stats: StreakStats, has_entry_today: bool, total_entries: int = 0) -> None:
    """Print the streak badge panel."""
    color = _streak_color(stats.current)
    lines: list[str] = [""]
    lines.append(f"  [bold {color}]\U0001f525 {format_streak(stats.current)}[/]")
    lines.append(f"  \U0001f3c6 Best: {format_streak(stats.best)}")
    last = stats.last_entry_day.isoformat() if stats.last_entry_day else "never"
    lines.append(f"  \U0001f4c5 Last entry: {last}")
    lines.append(f"  \U0001f4d3 Entries: {total_entries:,}")
    lines.append("")
    if has_entry_today:
        lines.append("  [green]✅ Today's entry is done[/]")
    elif stats.current > 0:
        lines.append("  [yellow]⏳ Write today to keep the streak going[/]")
    else:
        lines.append("  [dim]Start a new streak today[/]")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]HAVN[/]",
        box=box.ROUNDED,
        border_style=color,
        width=50,
    )
    console.print(panel)


def print_history(entries: list[Entry]) -> None:
    """Print entries as a table, in the order given."""
    table = Table(title="Journal", box=box.SIMPLE_HEAVY)
    table.add_column("Day", style="bold")
    table.add_column("★", justify="center")
    table.add_column("Entry")
    table.add_column("Photo", justify="center")
    table.add_column("Tags", style="cyan")
    table.add_column("Mood / Energy / Weather", style="dim")

    for entry in entries:
        day = entry.resolved_day()
        vitals = " ".join(v for v in (entry.mood, entry.energy, entry.weather) if v)
        table.add_row(
            day.isoformat() if day else "[red]?[/]",
            "★" if entry.is_starred else "",
            preview_text(entry.text),
            "\U0001f4f7" if entry.photo else "",
            ", ".join(sorted(entry.tags)),
            vitals,
        )
    console.print(table)


def print_reconcile_result(result: ReconcileResult) -> None:
    """Summarize what a reconcile pass changed."""
    if not result.changed and not result.skipped:
        console.print(f"[green]✔[/] {len(result.survivors)} days, no duplicates found.")
        return

    if result.changed:
        console.print(
            f"[green]✔[/] Removed {len(result.deletions)} duplicate record(s), "
            f"updated {len(result.updated)} kept entr{'y' if len(result.updated) == 1 else 'ies'}."
        )
        for entry in result.updated:
            day = entry.resolved_day()
            console.print(f"  [dim]• {day.isoformat() if day else '?'} kept {entry.id}[/]")
    if result.skipped:
        console.print(
            f"[yellow]⚠ Skipped {len(result.skipped)} record(s) with no usable day:[/] "
            + ", ".join(result.skipped)
        )


def print_entry_saved(entry: Entry, created: bool) -> None:
    day = entry.resolved_day()
    verb = "Created" if created else "Updated"
    console.print(f"[green]✔[/] {verb} entry for {day.isoformat() if day else '?'}")


def print_import_result(imported: int, skipped: int, updated: int = 0) -> None:
    console.print(f"[green]✔[/] Imported {imported} record(s).")
    if updated:
        console.print(f"[green]✔[/] Updated {updated} record(s) with newer copies.")
    if skipped:
        console.print(f"[yellow]⚠ {skipped} record(s) were already up to date or invalid.[/]")


def print_config(config: dict) -> None:
    if not config:
        console.print("[dim]No settings configured.[/]")
        return
    table = Table(box=box.SIMPLE)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key in sorted(config):
        table.add_row(key, str(config[key]))
    console.print(table)


def print_no_data_message() -> None:
    console.print(
        "[yellow]No journal entries yet.[/] Write one with: [bold]havn add --text \"...\"[/]"
    )


def print_error(message: str) -> None:
    console.print(f"[red]✘ {message}[/]")
