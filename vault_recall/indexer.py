"""
Index service - keeps the index engine in sync with the note store.

Responsibilities:
- Startup: restore the persisted snapshot, or fall back to a full rebuild
- Full rebuilds (manual reindex)
- Debounced incremental updates for changed / renamed notes
- Immediate removal of deleted notes
- Snapshot persistence after every change

Rebuilds and debounced upsert batches are serialized with one asyncio lock:
a batch that fires while a rebuild is in flight waits for it, then
re-validates each note (deleted → removed, content unchanged → skipped).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set

from .embeddings.engine import IndexEngine
from .embeddings.markdown import indexable_content
from .scheduler import Debouncer
from .storage import VaultStorage
from .utils import calculate_content_hash

logger = logging.getLogger(__name__)

DEFAULT_INDEX_DEBOUNCE_SECONDS = 2.0


class IndexService:
    """
    Owns the write path into an IndexEngine.

    Args:
        engine: Index engine to maintain
        storage: Vault the notes come from (and the snapshot goes to)
        debounce_seconds: Quiet period before changed notes are re-indexed
        on_indexed: Optional async callback run after each applied change
    """

    def __init__(
        self,
        engine: IndexEngine,
        storage: VaultStorage,
        debounce_seconds: float = DEFAULT_INDEX_DEBOUNCE_SECONDS,
        on_indexed: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.engine = engine
        self.storage = storage
        self.on_indexed = on_indexed
        self._lock = asyncio.Lock()
        self._debouncer = Debouncer(debounce_seconds, self._process_batch, name="index")
        # note_id -> hash of the content last fed to the engine
        self._content_hashes: Dict[str, str] = {}

    @property
    def pending_updates(self) -> Set[str]:
        return self._debouncer.pending

    async def initialize(self) -> bool:
        """
        Load the persisted index, or rebuild when there is no valid snapshot.

        Returns:
            True if the engine is ready afterwards
        """
        blob = await self.storage.load_snapshot()
        if self.engine.restore(blob):
            logger.info(f"Index loaded from snapshot ({len(self.engine)} notes)")
            # Populate link data for backlink counts
            await self.storage.list_documents()
            return True

        logger.info("No valid index snapshot, building from scratch")
        await self.rebuild()
        return self.engine.is_ready()

    async def rebuild(self) -> int:
        """
        Rebuild the index from every note in the vault.

        Returns:
            Number of notes indexed (0 = nothing to index)
        """
        async with self._lock:
            documents = await self.storage.list_documents()
            indexed = self.engine.build_full(
                (note_id, indexable_content(note_id, text)) for note_id, text in documents
            )
            if indexed == 0:
                logger.warning(f"Nothing to index in {self.storage.root}")
                return 0

            self._content_hashes = {
                note_id: calculate_content_hash(text) for note_id, text in documents
            }
            await self._save()

        await self._notify()
        return indexed

    def note_changed(self, note_id: str):
        """Queue a debounced re-index of a created or modified note"""
        self._debouncer.schedule(note_id)

    def note_deleted(self, note_id: str):
        """Remove a deleted note from the index right away"""
        self._debouncer.discard(note_id)
        self._content_hashes.pop(note_id, None)
        self.storage.forget(note_id)
        self.engine.remove(note_id)

    def note_renamed(self, old_id: str, new_id: str):
        """Rename = remove old id + debounced upsert of the new id"""
        self.note_deleted(old_id)
        self.note_changed(new_id)

    async def flush(self):
        """Process pending updates immediately"""
        await self._debouncer.flush()

    async def shutdown(self):
        """Apply pending updates and persist the index"""
        await self.flush()
        if self.engine.is_ready():
            async with self._lock:
                await self._save()

    async def _process_batch(self, note_ids: Set[str]):
        """Apply one debounced batch of changed notes"""
        if not note_ids:
            return

        applied = 0
        async with self._lock:
            if not self.engine.is_ready():
                logger.debug(f"Index not built, dropping {len(note_ids)} pending updates")
                return

            for note_id in sorted(note_ids):
                text = await self.storage.read_document(note_id)
                if text is None:
                    # Gone (or excluded) since the change was queued
                    self._content_hashes.pop(note_id, None)
                    if note_id in self.engine:
                        self.engine.remove(note_id)
                        applied += 1
                    continue

                content_hash = calculate_content_hash(text)
                if self._content_hashes.get(note_id) == content_hash and note_id in self.engine:
                    logger.debug(f"Skipping {note_id}: content unchanged")
                    continue

                if self.engine.upsert_one(note_id, indexable_content(note_id, text)):
                    self._content_hashes[note_id] = content_hash
                    applied += 1

            if applied:
                await self._save()

        logger.info(f"Incremental update: {applied} of {len(note_ids)} notes re-indexed")
        if applied:
            await self._notify()

    async def _save(self):
        try:
            await self.storage.save_snapshot(self.engine.snapshot())
        except OSError as e:
            # The in-memory index stays valid; next start rebuilds if needed
            logger.warning(f"Failed to save index snapshot: {e}")

    async def _notify(self):
        if self.on_indexed is not None:
            await self.on_indexed()
