"""Unit test fixtures - in-memory note store, no filesystem"""

from typing import Dict, List, Optional, Tuple

import pytest

from vault_recall.storage import BaseNoteStore


class InMemoryNoteStore(BaseNoteStore):
    """Note store backed by dicts, for engine/resurfacer tests"""

    def __init__(self):
        self.texts: Dict[str, str] = {}
        self.mtimes: Dict[str, float] = {}
        self.backlinks: Dict[str, int] = {}

    def add(self, note_id: str, text: str, mtime: float, backlinks: int = 0):
        self.texts[note_id] = text
        self.mtimes[note_id] = mtime
        self.backlinks[note_id] = backlinks

    async def list_documents(self) -> List[Tuple[str, str]]:
        return sorted(self.texts.items())

    async def read_document(self, note_id: str) -> Optional[str]:
        return self.texts.get(note_id)

    def modified_time(self, note_id: str) -> Optional[float]:
        return self.mtimes.get(note_id)

    def backlink_count(self, note_id: str) -> int:
        return self.backlinks.get(note_id, 0)

    def documents(self) -> List[Tuple[str, str]]:
        return sorted(self.texts.items())


@pytest.fixture
def note_store():
    return InMemoryNoteStore()
