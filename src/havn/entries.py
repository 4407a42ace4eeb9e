"""Journal entry model for havn.

Entries are plain values. The store hands them out, the reconciler returns
merged copies, and the store writes those copies back.
"""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo

from havn.days import day_key

ENTRY_SCHEMA_VERSION = 1

# Optional fields merged with "non-empty wins"
MERGEABLE_FIELDS = ("text", "photo", "mood", "energy", "weather")


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a timestamp to aware UTC. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_empty(value: object) -> bool:
    """None, empty strings, whitespace-only strings and empty bytes are empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    return False


@dataclass
class Entry:
    id: str
    day: date | datetime | None
    text: str | None = None
    photo: bytes | None = None
    is_starred: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    mood: str | None = None
    energy: str | None = None
    weather: str | None = None

    def resolved_day(self, tz: tzinfo | None = None) -> date | None:
        """The logical day key, or None if the entry has no usable day."""
        if self.day is None:
            return None
        try:
            return day_key(self.day, tz)
        except (TypeError, ValueError):
            return None

    @property
    def has_content(self) -> bool:
        return not (is_empty(self.text) and is_empty(self.photo))


def new_entry(day: date, now: datetime | None = None, **fields: object) -> Entry:
    """Create a fresh entry for a day with a new id and matching timestamps."""
    now = as_utc(now) or utcnow()
    return Entry(
        id=uuid.uuid4().hex,
        day=day,
        created_at=now,
        updated_at=now,
        **fields,
    )


def entry_to_dict(entry: Entry) -> dict:
    """Serialize an entry to a JSON-compatible dict (photo as base64)."""
    resolved = entry.resolved_day()
    return {
        "schema_version": ENTRY_SCHEMA_VERSION,
        "id": entry.id,
        "day": resolved.isoformat() if resolved else None,
        "text": entry.text,
        "photo": base64.b64encode(entry.photo).decode("ascii") if entry.photo else None,
        "is_starred": entry.is_starred,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
        "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
        "tags": sorted(entry.tags),
        "mood": entry.mood,
        "energy": entry.energy,
        "weather": entry.weather,
    }


def _parse_timestamp(raw: object) -> datetime | None:
    if not raw:
        return None
    try:
        return as_utc(datetime.fromisoformat(str(raw)))
    except ValueError:
        return None


def _parse_tags(raw: object) -> frozenset[str]:
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"tags must be a list, got {type(raw).__name__}")
    return frozenset(str(tag).strip() for tag in raw if str(tag).strip())


def entry_from_dict(data: dict, tz: tzinfo | None = None) -> Entry:
    """Build an entry from a dict produced by entry_to_dict.

    Missing optional fields default to empty. A missing or unparsable day is
    kept as None so the reconciler can report the entry as malformed. A
    timestamp-form day is keyed in ``tz`` (local zone when None).
    Raises ValueError if the dict has no id or its tags are not a list.
    """
    entry_id = data.get("id")
    if not entry_id:
        raise ValueError("Entry has no id")

    raw_day = data.get("day")
    day: date | None = None
    if raw_day:
        try:
            day = day_key(str(raw_day), tz)
        except ValueError:
            day = None

    raw_photo = data.get("photo")
    photo = base64.b64decode(raw_photo) if raw_photo else None

    return Entry(
        id=str(entry_id),
        day=day,
        text=data.get("text"),
        photo=photo,
        is_starred=bool(data.get("is_starred", False)),
        created_at=_parse_timestamp(data.get("created_at")),
        updated_at=_parse_timestamp(data.get("updated_at")),
        tags=_parse_tags(data.get("tags")),
        mood=data.get("mood"),
        energy=data.get("energy"),
        weather=data.get("weather"),
    )
