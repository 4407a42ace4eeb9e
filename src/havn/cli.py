"""CLI commands for havn."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path

from havn.config import (
    coerce_value,
    get_log_level,
    get_reconcile_window_days,
    get_timezone,
    get_widget_state_path,
    is_biometric_lock_enabled,
    load_config,
    set_config_value,
)
from havn.days import day_key, parse_day
from havn.db import Database, StoreError
from havn.display import (
    console,
    print_config,
    print_entry_saved,
    print_error,
    print_history,
    print_import_result,
    print_no_data_message,
    print_reconcile_result,
    print_streak,
)
from havn.entries import Entry, as_utc, entry_from_dict, entry_to_dict, new_entry
from havn.logging_config import configure_logging
from havn.reconcile import ReconcileResult
from havn.refresh import Refresher, RefreshResult
from havn.widget import read_widget_state


def _day_arg(raw: str) -> date:
    try:
        return parse_day(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="havn",
        description="A daily journal that keeps your streak",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("streak", help="Show current and best streak")

    add_parser = subparsers.add_parser("add", help="Write or update a day's entry")
    add_parser.add_argument("--day", type=_day_arg, default=None, help="Day (YYYY-MM-DD), default today")
    add_parser.add_argument("--text", default=None, help="Entry text")
    add_parser.add_argument("--photo", type=Path, default=None, help="Path to a photo file")
    star_group = add_parser.add_mutually_exclusive_group()
    star_group.add_argument("--star", dest="star", action="store_true", default=None)
    star_group.add_argument("--unstar", dest="star", action="store_false")
    add_parser.add_argument("--tag", action="append", default=[], help="Tag (repeatable)")
    add_parser.add_argument("--mood", default=None)
    add_parser.add_argument("--energy", default=None)
    add_parser.add_argument("--weather", default=None)

    history_parser = subparsers.add_parser("history", help="List past entries")
    history_parser.add_argument("--starred", action="store_true", help="Only starred entries")
    history_parser.add_argument("--tag", default=None, help="Only entries with this tag")
    history_parser.add_argument("--limit", "-n", type=int, default=None)

    subparsers.add_parser("reconcile", help="Merge duplicate entries for the same day")

    import_parser = subparsers.add_parser("import", help="Load entries synced from another device")
    import_parser.add_argument("file", type=Path)
    export_parser = subparsers.add_parser("export", help="Write all entries to a JSON file")
    export_parser.add_argument("file", type=Path)

    subparsers.add_parser("widget", help="Refresh the widget state file")

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Print current settings")
    config_set_p = config_sub.add_parser("set", help="Change a setting")
    config_set_p.add_argument("key")
    config_set_p.add_argument("value")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "streak"
    configure_logging(args.log_level, fallback=get_log_level())

    if command == "config":
        code = do_config(args)
        if code:
            sys.exit(code)
        return

    db = Database(tz=get_timezone())
    try:
        if command == "streak":
            do_streak(db)
        elif command == "add":
            do_add(
                db,
                day=args.day,
                text=args.text,
                photo_path=args.photo,
                star=args.star,
                tags=args.tag,
                mood=args.mood,
                energy=args.energy,
                weather=args.weather,
            )
        elif command == "history":
            do_history(db, starred=args.starred, tag=args.tag, limit=args.limit)
        elif command == "reconcile":
            do_reconcile(db)
        elif command == "import":
            do_import(db, args.file)
        elif command == "export":
            do_export(db, args.file)
        elif command == "widget":
            do_widget(db)
    except StoreError as exc:
        print_error(f"Journal store error: {exc}")
        sys.exit(1)
    except (OSError, ValueError) as exc:
        print_error(str(exc))
        sys.exit(1)
    finally:
        db.close()


def make_refresher(db: Database, config_path: Path | None = None, widget: bool = True) -> Refresher:
    """Build a Refresher from the saved settings."""
    return Refresher(
        db,
        tz=get_timezone(config_path),
        window_days=get_reconcile_window_days(config_path),
        widget_path=get_widget_state_path(config_path) if widget else None,
        locked=is_biometric_lock_enabled(config_path),
    )


def do_streak(
    db: Database, now: datetime | None = None, config_path: Path | None = None
) -> RefreshResult:
    """Reconcile, then show the streak panel."""
    result = make_refresher(db, config_path).refresh(now)
    total = db.count_entries()
    if total == 0:
        print_no_data_message()
    else:
        print_streak(result.stats, result.has_entry_today, total_entries=total)
    return result


def do_add(
    db: Database,
    day: date | None = None,
    text: str | None = None,
    photo_path: Path | None = None,
    star: bool | None = None,
    tags: list[str] | None = None,
    mood: str | None = None,
    energy: str | None = None,
    weather: str | None = None,
    now: datetime | None = None,
    config_path: Path | None = None,
) -> dict:
    """Edit the day's entry, creating it if the day has none, then refresh.

    Returns a dict with the entry id and whether it was created.
    """
    now = as_utc(now) or datetime.now(tz=timezone.utc)
    tz = get_timezone(config_path)
    day = day or day_key(now, tz)

    existing = db.get_entries_for_day(day)
    created = not existing
    entry: Entry = existing[0] if existing else new_entry(day, now=now)

    if text is not None:
        entry.text = text
    if photo_path is not None:
        entry.photo = photo_path.read_bytes()
    if star is not None:
        entry.is_starred = star
    if tags:
        entry.tags = frozenset(entry.tags) | frozenset(t.strip() for t in tags if t.strip())
    if mood is not None:
        entry.mood = mood
    if energy is not None:
        entry.energy = energy
    if weather is not None:
        entry.weather = weather
    entry.updated_at = now

    if created:
        db.add_entry(entry)
    else:
        db.save([entry])
    print_entry_saved(entry, created)

    result = make_refresher(db, config_path).on_local_save(now)
    return {"entry_id": entry.id, "created": created, "streak": result.stats.current}


def do_history(
    db: Database, starred: bool = False, tag: str | None = None, limit: int | None = None
) -> list[Entry]:
    """Show entries newest first, optionally filtered."""
    entries = db.fetch_all()
    entries.sort(key=lambda e: e.resolved_day() or date.min, reverse=True)
    if starred:
        entries = [e for e in entries if e.is_starred]
    if tag:
        entries = [e for e in entries if tag in e.tags]
    if limit is not None:
        entries = entries[:limit]

    if not entries:
        print_no_data_message()
    else:
        print_history(entries)
    return entries


def do_reconcile(
    db: Database, now: datetime | None = None, config_path: Path | None = None
) -> ReconcileResult:
    """Run one reconcile pass and report what changed."""
    result = make_refresher(db, config_path).refresh(now)
    print_reconcile_result(result.reconciled)
    return result.reconciled


def _is_newer(incoming: Entry, stored: Entry) -> bool:
    if incoming.updated_at is None:
        return False
    return stored.updated_at is None or as_utc(incoming.updated_at) > as_utc(stored.updated_at)


def do_import(
    db: Database, path: Path, now: datetime | None = None, config_path: Path | None = None
) -> dict:
    """Insert records delivered by another device, then fire the remote-change trigger.

    A record whose id is already stored replaces the stored copy only when
    its updated_at is newer. Older copies and records that cannot be parsed
    are skipped.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("entries", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of entries")

    tz = get_timezone(config_path)
    imported = 0
    updated = 0
    skipped = 0
    for raw in data:
        try:
            entry = entry_from_dict(raw, tz)
        except (ValueError, TypeError, AttributeError):
            skipped += 1
            continue
        stored = db.get_entry(entry.id)
        if stored is None:
            db.add_entry(entry)
            imported += 1
        elif _is_newer(entry, stored) and db.save([entry], expected={stored.id: stored.updated_at}):
            updated += 1
        else:
            skipped += 1

    print_import_result(imported, skipped, updated)
    result = make_refresher(db, config_path).on_remote_change(now)
    print_reconcile_result(result.reconciled)
    return {
        "imported": imported,
        "updated": updated,
        "skipped": skipped,
        "merged_days": len(result.reconciled.updated),
        "deleted": len(result.reconciled.deletions),
    }


def do_export(db: Database, path: Path) -> int:
    """Write every entry to a JSON file in the import format."""
    entries = db.fetch_all()
    payload = {"entries": [entry_to_dict(e) for e in entries]}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    console.print(f"[green]✔[/] Exported {len(entries)} entries to {path}")
    return len(entries)


def do_widget(
    db: Database, now: datetime | None = None, config_path: Path | None = None
) -> Path:
    """Refresh and write the widget state file. Returns its path."""
    refresher = make_refresher(db, config_path)
    refresher.refresh(now, trigger="widget")
    state = read_widget_state(refresher.widget_path)
    if state is None:
        raise ValueError(f"Widget state at {refresher.widget_path} could not be read back")
    console.print(
        f"[green]✔[/] Widget state written to {refresher.widget_path} "
        f"(streak {state['streak']}, today {'done' if state['has_entry_today'] else 'open'})"
    )
    return refresher.widget_path


def do_config(args: argparse.Namespace, config_path: Path | None = None) -> int:
    """Handle `havn config show|set`. Returns an exit code."""
    if getattr(args, "config_command", None) == "set":
        try:
            value = coerce_value(args.key, args.value)
        except ValueError as exc:
            print_error(str(exc))
            return 2
        set_config_value(args.key, value, config_path)
        console.print(f"[green]✔[/] {args.key} = {value}")
        return 0
    print_config(load_config(config_path))
    return 0
