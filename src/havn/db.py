"""SQLite entry store for havn."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Mapping
from datetime import date, datetime, tzinfo
from pathlib import Path

from havn.days import parse_day
from havn.entries import Entry, as_utc

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".havn" / "journal.db"
SCHEMA_VERSION = 1


class StoreError(Exception):
    """The entry store could not complete an operation."""


class StoreReadError(StoreError):
    """Entries could not be read from the store."""


class StoreWriteError(StoreError):
    """Entries could not be saved to or deleted from the store."""


def _ts(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def _parse_ts(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return as_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


def _parse_stored_day(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return parse_day(raw[:10])
    except ValueError:
        return None


def _day_text(entry: Entry, tz: tzinfo | None) -> str | None:
    day = entry.resolved_day(tz)
    return day.isoformat() if day else None


class Database:
    """SQLite entry store with WAL mode."""

    def __init__(self, db_path: Path | None = None, tz: tzinfo | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        # Zone used to store entries whose day is a timestamp
        self.tz = tz
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS entries (
                id TEXT PRIMARY KEY,
                day TEXT,
                text TEXT,
                photo BLOB,
                is_starred BOOLEAN DEFAULT 0,
                created_at TEXT,
                updated_at TEXT,
                mood TEXT,
                energy TEXT,
                weather TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_entries_day ON entries (day);

            CREATE TABLE IF NOT EXISTS entry_tags (
                entry_id TEXT NOT NULL REFERENCES entries (id) ON DELETE CASCADE,
                tag TEXT NOT NULL,
                PRIMARY KEY (entry_id, tag)
            );
        """)
        self.conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        self.conn.commit()

    # ── reads ────────────────────────────────────────────────────────────────

    def _tags_for(self, ids: list[str]) -> dict[str, set[str]]:
        tags: dict[str, set[str]] = {}
        if not ids:
            return tags
        placeholders = ", ".join(["?"] * len(ids))
        rows = self.conn.execute(
            f"SELECT entry_id, tag FROM entry_tags WHERE entry_id IN ({placeholders})",
            ids,
        ).fetchall()
        for row in rows:
            tags.setdefault(row["entry_id"], set()).add(row["tag"])
        return tags

    def _rows_to_entries(self, rows: list[sqlite3.Row]) -> list[Entry]:
        tags = self._tags_for([row["id"] for row in rows])
        return [
            Entry(
                id=row["id"],
                day=_parse_stored_day(row["day"]),
                text=row["text"],
                photo=bytes(row["photo"]) if row["photo"] is not None else None,
                is_starred=bool(row["is_starred"]),
                created_at=_parse_ts(row["created_at"]),
                updated_at=_parse_ts(row["updated_at"]),
                tags=frozenset(tags.get(row["id"], ())),
                mood=row["mood"],
                energy=row["energy"],
                weather=row["weather"],
            )
            for row in rows
        ]

    def fetch_all(self, day_range: tuple[date, date] | None = None) -> list[Entry]:
        """Return entries ordered by day, optionally limited to an inclusive range.

        Entries with no stored day are only returned when no range is given.
        """
        try:
            if day_range is None:
                rows = self.conn.execute(
                    "SELECT * FROM entries ORDER BY day, updated_at DESC"
                ).fetchall()
            else:
                start, end = day_range
                rows = self.conn.execute(
                    "SELECT * FROM entries WHERE day >= ? AND day <= ? "
                    "ORDER BY day, updated_at DESC",
                    (start.isoformat(), end.isoformat()),
                ).fetchall()
            return self._rows_to_entries(rows)
        except sqlite3.Error as exc:
            logger.error("Reading entries failed: %s", exc)
            raise StoreReadError(str(exc)) from exc

    def fetch_days(self) -> set[date]:
        """Return the distinct days that have at least one entry."""
        try:
            rows = self.conn.execute(
                "SELECT DISTINCT day FROM entries WHERE day IS NOT NULL"
            ).fetchall()
        except sqlite3.Error as exc:
            logger.error("Reading entry days failed: %s", exc)
            raise StoreReadError(str(exc)) from exc
        days = {_parse_stored_day(row["day"]) for row in rows}
        days.discard(None)
        return days

    def get_entries_for_day(self, day: date) -> list[Entry]:
        """All records stored for one day, newest update first."""
        return self.fetch_all((day, day))

    def get_entry(self, entry_id: str) -> Entry | None:
        """Get a single entry by id."""
        try:
            row = self.conn.execute(
                "SELECT * FROM entries WHERE id = ?", (entry_id,)
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_entries([row])[0]
        except sqlite3.Error as exc:
            raise StoreReadError(str(exc)) from exc

    def count_entries(self) -> int:
        try:
            return self.conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]
        except sqlite3.Error as exc:
            raise StoreReadError(str(exc)) from exc

    # ── writes ───────────────────────────────────────────────────────────────

    def _write_tags(self, entry: Entry) -> None:
        self.conn.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry.id,))
        self.conn.executemany(
            "INSERT INTO entry_tags (entry_id, tag) VALUES (?, ?)",
            [(entry.id, tag) for tag in sorted(entry.tags)],
        )

    def add_entry(self, entry: Entry) -> None:
        """Insert a new entry. Raises StoreWriteError if the id already exists."""
        try:
            with self.conn:
                self.conn.execute(
                    "INSERT INTO entries (id, day, text, photo, is_starred, created_at, "
                    "updated_at, mood, energy, weather) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry.id, _day_text(entry, self.tz), entry.text, entry.photo,
                        entry.is_starred, _ts(entry.created_at), _ts(entry.updated_at),
                        entry.mood, entry.energy, entry.weather,
                    ),
                )
                self._write_tags(entry)
        except sqlite3.Error as exc:
            logger.error("Adding entry %s failed: %s", entry.id, exc)
            raise StoreWriteError(str(exc)) from exc

    def save(
        self,
        entries: Iterable[Entry],
        expected: Mapping[str, datetime | None] | None = None,
    ) -> int:
        """Write field updates for entries that still exist.

        Entries deleted in the meantime are not recreated. When ``expected``
        maps an id to the updated_at the caller read, that record is only
        written if it has not been modified since. Returns the number of
        records updated.
        """
        updated = 0
        try:
            with self.conn:
                for entry in entries:
                    sql = (
                        "UPDATE entries SET day = ?, text = ?, photo = ?, is_starred = ?, "
                        "created_at = ?, updated_at = ?, mood = ?, energy = ?, weather = ? "
                        "WHERE id = ?"
                    )
                    params = [
                        _day_text(entry, self.tz), entry.text, entry.photo, entry.is_starred,
                        _ts(entry.created_at), _ts(entry.updated_at),
                        entry.mood, entry.energy, entry.weather, entry.id,
                    ]
                    if expected is not None and entry.id in expected:
                        sql += " AND updated_at IS ?"
                        params.append(_ts(expected[entry.id]))
                    cursor = self.conn.execute(sql, params)
                    if cursor.rowcount:
                        self._write_tags(entry)
                        updated += cursor.rowcount
        except sqlite3.Error as exc:
            logger.error("Saving entries failed: %s", exc)
            raise StoreWriteError(str(exc)) from exc
        return updated

    def delete(
        self,
        ids: Iterable[str],
        expected: Mapping[str, datetime | None] | None = None,
    ) -> int:
        """Delete entries by id. Unknown ids are ignored. Returns rows removed.

        Ids listed in ``expected`` are only deleted while their updated_at still
        matches, so a record edited after it was read is kept.
        """
        ids = list(ids)
        if not ids:
            return 0
        expected = expected or {}
        checked = [i for i in ids if i in expected]
        plain = [i for i in ids if i not in expected]
        removed = 0
        try:
            with self.conn:
                if plain:
                    placeholders = ", ".join(["?"] * len(plain))
                    cursor = self.conn.execute(
                        f"DELETE FROM entries WHERE id IN ({placeholders})", plain
                    )
                    removed += cursor.rowcount
                for entry_id in checked:
                    cursor = self.conn.execute(
                        "DELETE FROM entries WHERE id = ? AND updated_at IS ?",
                        (entry_id, _ts(expected[entry_id])),
                    )
                    removed += cursor.rowcount
        except sqlite3.Error as exc:
            logger.error("Deleting entries failed: %s", exc)
            raise StoreWriteError(str(exc)) from exc
        return removed

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
