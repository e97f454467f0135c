"""
Index engine - owns the TF-IDF corpus state for all notes.

State machine: unbuilt → ready. Only a successful full build (or snapshot
restore) makes the engine ready; incremental updates keep it ready and only
reset() clears it.

Incremental consistency model:
- upsert_one() recomputes the global IDF table, but only the upserted note's
  TF-IDF vector. Other notes keep vectors computed against the IDF table as
  it stood when they were last indexed, until their own next upsert or the
  next full rebuild.
- remove() drops the note's vectors but leaves the IDF table in place.

Document frequencies are tracked as per-term counters, so recomputing IDF
after an upsert is O(vocabulary) instead of O(total tokens). The resulting
table is identical to compute_idf() over the current TF maps.

Everything runs in memory and never raises on malformed text: empty or
unreadable notes simply contribute empty vectors.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .tfidf import (
    SparseVector,
    compute_tf,
    compute_tfidf,
    cosine_similarity,
    document_frequencies,
    idf_from_frequencies,
)
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

# Similarities at or below this value are treated as noise
SIMILARITY_NOISE_FLOOR = 0.01


@dataclass
class SimilarNote:
    """Single similarity hit"""
    note_id: str
    similarity: float   # Cosine similarity in (0.01, 1]


class IndexEngine:
    """
    TF-IDF index over a mutable note corpus.

    One instance per corpus; pass it to collaborators instead of sharing
    it through globals.
    """

    def __init__(self):
        self._tf_maps: Dict[str, SparseVector] = {}
        self._tfidf_vectors: Dict[str, SparseVector] = {}
        self._idf: SparseVector = {}
        self._df: Dict[str, int] = {}
        self._ready = False
        self._built_at: Optional[int] = None

    def __len__(self) -> int:
        return len(self._tf_maps)

    def __contains__(self, note_id: str) -> bool:
        return note_id in self._tf_maps

    def is_ready(self) -> bool:
        """True once a full build or snapshot restore has succeeded"""
        return self._ready

    @property
    def built_at(self) -> Optional[int]:
        """Epoch seconds of the last full build (None before any build)"""
        return self._built_at

    @property
    def idf(self) -> SparseVector:
        """Copy of the current IDF table"""
        return dict(self._idf)

    def indexed_ids(self) -> List[str]:
        """All indexed note ids, sorted"""
        return sorted(self._tf_maps)

    def tfidf_vector(self, note_id: str) -> Optional[SparseVector]:
        """Copy of a note's TF-IDF vector (None if not indexed)"""
        vector = self._tfidf_vectors.get(note_id)
        return dict(vector) if vector is not None else None

    def build_full(self, documents: Iterable[Tuple[str, str]]) -> int:
        """
        Rebuild the whole index from scratch.

        Args:
            documents: Iterable of (note_id, text) pairs

        Returns:
            Number of notes indexed. 0 means there was nothing to index;
            the previous state is kept and readiness is unchanged.
        """
        start = time.perf_counter()

        tf_maps: Dict[str, SparseVector] = {}
        for note_id, text in documents:
            tf_maps[note_id] = compute_tf(tokenize(text or ""))

        if not tf_maps:
            logger.info("Nothing to index: corpus is empty")
            return 0

        self._tf_maps = tf_maps
        self._df = document_frequencies(tf_maps.values())
        self._idf = idf_from_frequencies(self._df, len(tf_maps))
        self._tfidf_vectors = {
            note_id: compute_tfidf(tf, self._idf)
            for note_id, tf in tf_maps.items()
        }
        self._ready = True
        self._built_at = int(time.time())

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Indexed {len(tf_maps)} notes ({len(self._idf)} terms) in {elapsed_ms:.0f}ms"
        )
        return len(tf_maps)

    def upsert_one(self, note_id: str, text: str) -> bool:
        """
        Add or replace a single note.

        Ignored (returns False) until the engine is ready: incremental
        updates before a full build are meaningless.
        """
        if not self._ready:
            logger.debug(f"Ignoring upsert of {note_id}: index not built")
            return False

        tf = compute_tf(tokenize(text or ""))

        previous = self._tf_maps.get(note_id)
        if previous is not None:
            self._count_terms(previous, -1)
        self._count_terms(tf, 1)
        self._tf_maps[note_id] = tf

        self._idf = idf_from_frequencies(self._df, len(self._tf_maps))
        self._tfidf_vectors[note_id] = compute_tfidf(tf, self._idf)

        logger.debug(f"Upserted {note_id}: {len(tf)} terms")
        return True

    def remove(self, note_id: str) -> None:
        """Drop a note's vectors. The IDF table is left as is."""
        tf = self._tf_maps.pop(note_id, None)
        self._tfidf_vectors.pop(note_id, None)
        if tf is not None:
            self._count_terms(tf, -1)
            logger.debug(f"Removed {note_id} from index")

    def reset(self) -> None:
        """Forget everything and return to the unbuilt state"""
        self._tf_maps = {}
        self._tfidf_vectors = {}
        self._idf = {}
        self._df = {}
        self._ready = False
        self._built_at = None

    def find_similar(self, note_id: str, top_k: int = 5) -> List[SimilarNote]:
        """
        Find the notes most similar to an indexed note.

        Args:
            note_id: Reference note
            top_k: Maximum number of results

        Returns:
            Up to top_k hits sorted by similarity (descending), ties broken
            by note id (ascending). Never includes the note itself or hits
            at or below the noise floor. Empty when the engine is not ready
            or the note is unknown.
        """
        if not self._ready or top_k <= 0:
            return []

        source = self._tfidf_vectors.get(note_id)
        if source is None:
            return []

        hits = []
        for other_id, vector in self._tfidf_vectors.items():
            if other_id == note_id:
                continue
            similarity = cosine_similarity(source, vector)
            if similarity > SIMILARITY_NOISE_FLOOR:
                hits.append(SimilarNote(note_id=other_id, similarity=similarity))

        hits.sort(key=lambda hit: (-hit.similarity, hit.note_id))
        return hits[:top_k]

    def snapshot(self) -> str:
        """
        Serialize the index source of truth (TF maps + IDF table) as JSON.

        TF-IDF vectors are derived data and are never persisted.
        """
        return json.dumps({
            "term_frequencies": self._tf_maps,
            "idf": self._idf,
            "built_at": self._built_at if self._built_at is not None else int(time.time()),
        }, ensure_ascii=False)

    def restore(self, blob: Union[str, bytes, None]) -> bool:
        """
        Replace the index with a snapshot produced by snapshot().

        Returns:
            True if the snapshot was valid and loaded (engine becomes ready).
            False on missing, corrupted or empty snapshots; the current
            state is left untouched so the caller can fall back to
            build_full().
        """
        if not blob:
            return False

        try:
            data = json.loads(blob)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid index snapshot: {e}")
            return False

        parsed = _parse_snapshot(data)
        if parsed is None:
            logger.warning("Invalid index snapshot: unexpected structure")
            return False

        tf_maps, idf, built_at = parsed
        if not tf_maps:
            logger.info("Index snapshot is empty, ignoring it")
            return False

        self._tf_maps = tf_maps
        self._idf = idf
        self._df = document_frequencies(tf_maps.values())
        self._tfidf_vectors = {
            note_id: compute_tfidf(tf, idf)
            for note_id, tf in tf_maps.items()
        }
        self._ready = True
        self._built_at = built_at

        logger.info(f"Restored index snapshot: {len(tf_maps)} notes, {len(idf)} terms")
        return True

    def _count_terms(self, tf: SparseVector, delta: int) -> None:
        """Apply +1/-1 to the document frequency of every term in tf"""
        for term in tf:
            count = self._df.get(term, 0) + delta
            if count > 0:
                self._df[term] = count
            else:
                self._df.pop(term, None)


def _parse_snapshot(data) -> Optional[Tuple[Dict[str, SparseVector], SparseVector, Optional[int]]]:
    """Validate snapshot JSON; None if anything has the wrong shape"""
    if not isinstance(data, dict):
        return None

    raw_tf_maps = data.get("term_frequencies")
    raw_idf = data.get("idf")
    built_at = data.get("built_at")

    if not isinstance(raw_tf_maps, dict) or not isinstance(raw_idf, dict):
        return None
    if built_at is not None and (isinstance(built_at, bool) or not isinstance(built_at, int)):
        return None

    tf_maps: Dict[str, SparseVector] = {}
    for note_id, tf in raw_tf_maps.items():
        vector = _parse_vector(tf)
        if vector is None:
            return None
        tf_maps[note_id] = vector

    idf = _parse_vector(raw_idf)
    if idf is None:
        return None

    return tf_maps, idf, built_at


def _parse_vector(raw) -> Optional[SparseVector]:
    if not isinstance(raw, dict):
        return None
    vector: SparseVector = {}
    for term, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        vector[term] = float(value)
    return vector
