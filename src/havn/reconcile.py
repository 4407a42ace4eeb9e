"""Per-day de-duplication for havn.

Two devices can each create an entry for the same day before they sync. This
module folds every such group into one keeper: the most recently updated
record, topped up with any non-empty fields from the others.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, tzinfo
from itertools import groupby
from typing import Protocol

from havn.entries import MERGEABLE_FIELDS, Entry, as_utc, is_empty

logger = logging.getLogger(__name__)


class EntryWriter(Protocol):
    def save(self, entries: list[Entry], expected: dict | None = None) -> int: ...

    def delete(self, ids: set[str], expected: dict | None = None) -> int: ...


@dataclass
class ReconcileResult:
    survivors: list[Entry]  # one per day, ascending
    deletions: set[str] = field(default_factory=set)
    updated: list[Entry] = field(default_factory=list)  # keepers whose fields changed
    skipped: list[str] = field(default_factory=list)  # ids with no usable day
    # updated_at of every record in a duplicate group, as read
    versions: dict[str, datetime | None] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.deletions or self.updated)


def _updated_ts(entry: Entry) -> float:
    ts = as_utc(entry.updated_at)
    return ts.timestamp() if ts else float("-inf")


def merge_into(keeper: Entry, loser: Entry) -> Entry:
    """Return a copy of keeper with loser's data folded in.

    - Optional fields: keeper's value wins unless it is empty
    - Star: kept if either record is starred
    - updated_at: the later of the two
    - Tags: union
    """
    changes: dict = {}
    for name in MERGEABLE_FIELDS:
        ours = getattr(keeper, name)
        theirs = getattr(loser, name)
        if is_empty(ours) and not is_empty(theirs):
            changes[name] = theirs

    if loser.is_starred and not keeper.is_starred:
        changes["is_starred"] = True

    if _updated_ts(loser) > _updated_ts(keeper):
        changes["updated_at"] = loser.updated_at

    tags = frozenset(keeper.tags or ()) | frozenset(loser.tags or ())
    if tags != frozenset(keeper.tags or ()):
        changes["tags"] = tags

    if not changes:
        return keeper
    return replace(keeper, **changes)


def reconcile(entries: Iterable[Entry], tz: tzinfo | None = None) -> ReconcileResult:
    """Collapse the entries to one per calendar day.

    Entries without a usable day are left out and reported in ``skipped``.
    Running this again on ``survivors`` yields no deletions and no updates.
    """
    dated: list[tuple[date, Entry]] = []
    skipped: list[str] = []
    for entry in entries:
        day = entry.resolved_day(tz)
        if day is None:
            logger.warning("Skipping entry %s: no usable day", entry.id)
            skipped.append(entry.id)
            continue
        dated.append((day, entry))

    # Newest first within a day; id breaks ties so every device picks the same keeper
    dated.sort(key=lambda pair: (pair[0], -_updated_ts(pair[1]), str(pair[1].id)))

    survivors: list[Entry] = []
    updated: list[Entry] = []
    deletions: set[str] = set()
    versions: dict[str, datetime | None] = {}
    for day, group in groupby(dated, key=lambda pair: pair[0]):
        run = [entry for _, entry in group]
        keeper = run[0]
        if len(run) == 1:
            survivors.append(keeper)
            continue

        for entry in run:
            versions.setdefault(entry.id, entry.updated_at)
        merged = keeper
        for loser in run[1:]:
            merged = merge_into(merged, loser)
            if loser.id != keeper.id:
                deletions.add(loser.id)
        logger.info(
            "Merged %d duplicate entries for %s into %s",
            len(run) - 1, day.isoformat(), keeper.id,
        )
        survivors.append(merged)
        if merged is not keeper:
            updated.append(merged)

    return ReconcileResult(
        survivors=survivors,
        deletions=deletions,
        updated=updated,
        skipped=skipped,
        versions=versions,
    )


def apply_reconciliation(store: EntryWriter, result: ReconcileResult) -> bool:
    """Commit a reconcile result: save merged keepers, then delete losers.

    Writes are conditional on ``result.versions``. Returns False when a record
    changed after it was read; nothing that changed is overwritten or deleted,
    and the caller should reconcile a fresh snapshot.

    If the delete fails, the merged keepers stay saved next to their
    duplicates and the next pass deletes them. Store errors propagate.
    """
    if result.updated:
        saved = store.save(result.updated, expected=result.versions)
        if saved < len(result.updated):
            logger.info(
                "%d merged entries changed since they were read",
                len(result.updated) - saved,
            )
            return False
    if result.deletions:
        deleted = store.delete(result.deletions, expected=result.versions)
        if deleted < len(result.deletions):
            logger.info(
                "%d duplicates changed or vanished since they were read",
                len(result.deletions) - deleted,
            )
            return False
    return True

