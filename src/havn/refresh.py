"""Reconcile-then-compute passes for havn.

Local saves and remote-change notifications both end up here. Each pass reads
a snapshot of the store, collapses duplicate days, commits the merge, and
recomputes the streak from what is left.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Protocol

from havn.days import day_key, window
from havn.entries import Entry
from havn.reconcile import ReconcileResult, apply_reconciliation, reconcile
from havn.streaks import StreakStats, compute_streak
from havn.widget import publish_widget_state

logger = logging.getLogger(__name__)

# Snapshot reads per refresh when other writers keep committing
MAX_PASSES = 3


class EntryStore(Protocol):
    def fetch_all(self, day_range=None) -> list[Entry]: ...

    def fetch_days(self) -> set: ...

    def save(self, entries: list[Entry], expected: dict | None = None) -> int: ...

    def delete(self, ids: set[str], expected: dict | None = None) -> int: ...


@dataclass
class RefreshResult:
    stats: StreakStats
    reconciled: ReconcileResult
    has_entry_today: bool
    trigger: str


class Refresher:
    """Single owner of reconcile passes over one entry store.

    Overlapping triggers wait on the lock, then run against a fresh snapshot.
    Other processes writing the same store are detected at commit time and
    the pass is re-read, up to ``MAX_PASSES`` times. Store errors propagate
    to the caller; the last good stats stay available in ``last_stats``.
    """

    def __init__(
        self,
        store: EntryStore,
        tz: tzinfo | None = None,
        window_days: int | None = None,
        widget_path: Path | None = None,
        locked: bool = False,
    ) -> None:
        self.store = store
        self.tz = tz
        self.window_days = window_days
        self.widget_path = widget_path
        self.locked = locked
        self.last_stats: StreakStats | None = None
        self._lock = threading.Lock()

    def refresh(self, now: datetime | None = None, trigger: str = "manual") -> RefreshResult:
        """Run one reconcile pass and recompute the streak."""
        now = now or datetime.now(tz=timezone.utc)
        with self._lock:
            day_range = window(self.window_days, now, self.tz) if self.window_days else None
            for attempt in range(1, MAX_PASSES + 1):
                entries = self.store.fetch_all(day_range)
                result = reconcile(entries, self.tz)
                if apply_reconciliation(self.store, result):
                    break
                logger.info("Refresh (%s): store changed during pass %d, re-reading", trigger, attempt)
            else:
                logger.warning(
                    "Refresh (%s): store kept changing, duplicates left for the next pass", trigger
                )

            days = self.store.fetch_days()
            stats = compute_streak(days, now, self.tz)
            has_today = day_key(now, self.tz) in days
            self.last_stats = stats

            logger.debug(
                "Refresh (%s): %d merged, %d deleted, streak %d/%d",
                trigger, len(result.updated), len(result.deletions), stats.current, stats.best,
            )

            if self.widget_path is not None:
                publish_widget_state(
                    stats, has_today, self.widget_path, locked=self.locked, now=now
                )

        return RefreshResult(
            stats=stats, reconciled=result, has_entry_today=has_today, trigger=trigger
        )

    def on_local_save(self, now: datetime | None = None) -> RefreshResult:
        return self.refresh(now, trigger="local_save")

    def on_remote_change(self, now: datetime | None = None) -> RefreshResult:
        return self.refresh(now, trigger="remote_change")
