"""
Resurfacer - ranks forgotten notes worth revisiting.

Two queries on top of the index engine and the scoring functions:

Daily digest:
1. Anchors = up to 10 most recently modified notes (last 3 days)
2. For each anchor, take its 20 nearest notes; skip notes younger than
   min_days_old; keep the best similarity per candidate across anchors
3. Rank candidates by composite(relevance, staleness, connectivity)
4. No anchors → fall back to staleness + connectivity over every old
   enough note, with a fixed base relevance of 0.3

Contextual related:
    Nearest notes to a given note, filtered to old enough ones, in pure
    similarity order (no re-ranking).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..embeddings.engine import IndexEngine, SimilarNote
from ..storage import BaseNoteStore
from ..utils import SECONDS_PER_DAY, days_since
from .scoring import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    composite,
    connectivity_boost,
    relevance,
    staleness,
)

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = 3
MAX_ANCHORS = 10
NEIGHBOURS_PER_ANCHOR = 20
FALLBACK_RELEVANCE = 0.3
DEFAULT_MIN_DAYS_OLD = 7

REASON_RELATED = "Related to your recent work"
REASON_LONG_AGO = "Written long ago, might be worth revisiting"
REASON_UNLINKED = "Unlinked note, consider connecting it"
REASON_FORGOTTEN = "Forgotten note worth revisiting"


@dataclass
class ResurfacedNote:
    """Single digest entry"""
    note_id: str
    score: float                # Composite score
    reason: str                 # Human-readable explanation
    days_since_modified: int    # Rounded age in days


def resurface_reason(relevance_score: float, staleness_score: float, boost: float) -> str:
    """Pick the explanation for a digest entry by threshold priority"""
    if relevance_score > 0.3:
        return REASON_RELATED
    if staleness_score > 0.8:
        return REASON_LONG_AGO
    if boost > 0.5:
        return REASON_UNLINKED
    return REASON_FORGOTTEN


class Resurfacer:
    """
    Ranks notes to resurface using the index engine and note metadata.

    Args:
        engine: Shared index engine (read-only use)
        store: Note store providing modification times and backlink counts
        min_days_old: Notes modified more recently are never resurfaced
        weights: Composite score weights
        clock: Returns current time in epoch seconds (injectable for tests)
    """

    def __init__(
        self,
        engine: IndexEngine,
        store: BaseNoteStore,
        min_days_old: float = DEFAULT_MIN_DAYS_OLD,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        clock: Callable[[], float] = time.time,
    ):
        self.engine = engine
        self.store = store
        self.min_days_old = min_days_old
        self.weights = weights
        self.clock = clock

    def daily_digest(self, count: int = 5) -> List[ResurfacedNote]:
        """
        Get the top-N notes to resurface today.

        Returns:
            Up to count entries sorted by composite score (descending),
            ties broken by note id. Empty when the index is not ready.
        """
        if not self.engine.is_ready() or count <= 0:
            return []

        now = self.clock()
        anchors = self._recent_notes(now)
        if not anchors:
            logger.debug("No recent notes, falling back to staleness ranking")
            return self._forgotten_notes(count, now)

        # Best similarity per candidate across all anchors
        best: Dict[str, float] = {}
        for anchor in anchors:
            for hit in self.engine.find_similar(anchor, NEIGHBOURS_PER_ANCHOR):
                if not self._old_enough(hit.note_id, now):
                    continue
                if hit.similarity > best.get(hit.note_id, 0.0):
                    best[hit.note_id] = hit.similarity

        scored = []
        for note_id, max_similarity in best.items():
            entry = self._score(note_id, relevance(max_similarity), now)
            if entry is not None:
                scored.append(entry)

        logger.debug(f"Digest: {len(anchors)} anchors, {len(scored)} candidates")
        return _top(scored, count)

    def contextual_related(self, note_id: str, count: int = 5) -> List[SimilarNote]:
        """
        Forgotten notes on the same topic as note_id, by similarity alone.

        Returns:
            Up to count hits, at least min_days_old old, in the engine's
            similarity order. Empty when the index is not ready.
        """
        if not self.engine.is_ready() or count <= 0:
            return []

        now = self.clock()
        similar = self.engine.find_similar(note_id, count * 3)
        return [hit for hit in similar if self._old_enough(hit.note_id, now)][:count]

    def _forgotten_notes(self, count: int, now: float) -> List[ResurfacedNote]:
        """Fallback ranking by staleness + connectivity only"""
        scored = []
        for note_id in self.engine.indexed_ids():
            if not self._old_enough(note_id, now):
                continue
            entry = self._score(note_id, FALLBACK_RELEVANCE, now)
            if entry is not None:
                scored.append(entry)
        return _top(scored, count)

    def _score(self, note_id: str, relevance_score: float, now: float) -> Optional[ResurfacedNote]:
        mtime = self.store.modified_time(note_id)
        if mtime is None:
            return None

        stale = staleness(mtime, now)
        boost = connectivity_boost(self.store.backlink_count(note_id))
        return ResurfacedNote(
            note_id=note_id,
            score=composite(relevance_score, stale, boost, self.weights),
            reason=resurface_reason(relevance_score, stale, boost),
            days_since_modified=round(days_since(mtime, now)),
        )

    def _recent_notes(self, now: float) -> List[str]:
        """Up to MAX_ANCHORS notes modified within the recent window, newest first"""
        cutoff = now - RECENT_WINDOW_DAYS * SECONDS_PER_DAY
        recent = []
        for note_id in self.engine.indexed_ids():
            mtime = self.store.modified_time(note_id)
            if mtime is not None and mtime > cutoff:
                recent.append((mtime, note_id))
        recent.sort(key=lambda item: (-item[0], item[1]))
        return [note_id for _, note_id in recent[:MAX_ANCHORS]]

    def _old_enough(self, note_id: str, now: float) -> bool:
        mtime = self.store.modified_time(note_id)
        return mtime is not None and days_since(mtime, now) >= self.min_days_old


def _top(entries: List[ResurfacedNote], count: int) -> List[ResurfacedNote]:
    entries.sort(key=lambda entry: (-entry.score, entry.note_id))
    return entries[:count]
