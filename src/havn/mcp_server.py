"""MCP server for havn.

Exposes the journal streak and entries as MCP tools so an assistant can query
them mid-conversation.
Run via: python3 -m havn.mcp_server
"""
from __future__ import annotations

from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(name="havn")


def _get_db():
    from havn.config import get_timezone
    from havn.db import Database
    return Database(tz=get_timezone())


def _summarize(entry) -> dict[str, Any]:
    day = entry.resolved_day()
    return {
        "id": entry.id,
        "day": day.isoformat() if day else None,
        "text": entry.text or "",
        "has_photo": bool(entry.photo),
        "is_starred": entry.is_starred,
        "tags": sorted(entry.tags),
        "mood": entry.mood,
        "energy": entry.energy,
        "weather": entry.weather,
    }


@mcp.tool()
def get_streak() -> dict[str, Any]:
    """Get the current and best journaling streak after merging duplicate days."""
    from havn.cli import make_refresher
    from havn.db import StoreError

    db = _get_db()
    try:
        result = make_refresher(db, widget=False).refresh(trigger="mcp")
        if db.count_entries() == 0:
            return {"error": "No journal entries yet. Write one with: havn add"}
        data = result.stats.to_dict()
        data["has_entry_today"] = result.has_entry_today
        return data
    except StoreError as exc:
        return {"error": f"Journal store error: {exc}"}
    finally:
        db.close()


@mcp.tool()
def get_entry(day: str) -> dict[str, Any]:
    """Get the journal entry for a day (YYYY-MM-DD)."""
    from havn.db import StoreError

    try:
        target = date.fromisoformat(day)
    except ValueError:
        return {"error": f"Invalid day: {day}. Use YYYY-MM-DD."}
    db = _get_db()
    try:
        entries = db.get_entries_for_day(target)
        if not entries:
            return {"error": f"No entry for {day}."}
        return _summarize(entries[0])
    except StoreError as exc:
        return {"error": f"Journal store error: {exc}"}
    finally:
        db.close()


@mcp.tool()
def list_entries(limit: int = 30) -> dict[str, Any]:
    """List the most recent journal entries, newest first."""
    from havn.db import StoreError

    limit = max(1, min(limit, 365))
    db = _get_db()
    try:
        entries = db.fetch_all()
    except StoreError as exc:
        return {"error": f"Journal store error: {exc}"}
    finally:
        db.close()
    entries.sort(key=lambda e: e.resolved_day() or date.min, reverse=True)
    return {
        "total_count": len(entries),
        "entries": [_summarize(e) for e in entries[:limit]],
    }


@mcp.tool()
def reconcile_entries() -> dict[str, Any]:
    """Merge duplicate entries created for the same day on different devices."""
    from havn.cli import make_refresher
    from havn.db import StoreError

    db = _get_db()
    try:
        result = make_refresher(db, widget=False).refresh(trigger="mcp")
    except StoreError as exc:
        return {"error": f"Journal store error: {exc}"}
    finally:
        db.close()
    reconciled = result.reconciled
    return {
        "days": len(reconciled.survivors),
        "merged_days": len(reconciled.updated),
        "deleted_ids": sorted(reconciled.deletions),
        "skipped_ids": list(reconciled.skipped),
        "streak": result.stats.current,
    }


if __name__ == "__main__":
    mcp.run()
