"""
Vault storage module - the note store behind the index

Handles all filesystem operations for Vault Recall:
- Enumerate markdown notes (skipping hidden and excluded folders)
- Read note content for full and incremental indexing
- Report modification times and backlink counts
- Persist and load the index snapshot

Structure on disk:
{vault}/
├── ideas/
│   └── spaced-repetition.md   # note id: "ideas/spaced-repetition.md"
├── inbox.md                   # note id: "inbox.md"
└── .vault-recall/
    └── index.json             # TF maps + IDF table snapshot

I/O errors never reach the index engine: unreadable notes become empty
text, a missing or unreadable snapshot becomes None.
"""

import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .embeddings.markdown import snippet

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "index.json"

# [[target]], [[target|alias]], [[target#heading]]
_WIKILINK_TARGET = re.compile(r'\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]')
# [text](relative/path.md)
_MD_LINK_TARGET = re.compile(r'\[[^\]]*\]\(([^)\s]+?\.md)(?:#[^)]*)?\)')


class BaseNoteStore(ABC):
    """
    Abstract note store consumed by the indexing service and resurfacer.

    Implementations translate their own I/O failures into empty text or
    None; nothing here is expected to raise for a missing note.
    """

    @abstractmethod
    async def list_documents(self) -> List[Tuple[str, str]]:
        """All notes as (note_id, raw_text) pairs"""
        pass

    @abstractmethod
    async def read_document(self, note_id: str) -> Optional[str]:
        """Raw text of one note, None if the note no longer exists"""
        pass

    @abstractmethod
    def modified_time(self, note_id: str) -> Optional[float]:
        """Last modification time (epoch seconds), None if unknown"""
        pass

    @abstractmethod
    def backlink_count(self, note_id: str) -> int:
        """Number of other notes linking to note_id"""
        pass


def extract_link_targets(text: str) -> Set[str]:
    """
    Extract normalized link targets from markdown text.

    Examples:
        >>> sorted(extract_link_targets("See [[Graph Theory|graphs]] and [x](ideas/a.md)"))
        ['graph theory', 'ideas/a']
    """
    targets = set()
    for match in _WIKILINK_TARGET.finditer(text):
        targets.add(_normalize_target(match.group(1)))
    for match in _MD_LINK_TARGET.finditer(text):
        targets.add(_normalize_target(match.group(1)))
    targets.discard("")
    return targets


def _normalize_target(target: str) -> str:
    target = target.strip().replace("%20", " ").lstrip("./")
    if target.lower().endswith(".md"):
        target = target[:-3]
    return target.casefold()


class VaultStorage(BaseNoteStore):
    """Filesystem store for a vault of markdown notes"""

    def __init__(
        self,
        root: str,
        excluded_folders: Optional[Iterable[str]] = None,
        index_dir: str = ".vault-recall",
    ):
        """
        Initialize vault storage

        Args:
            root: Vault root directory
            excluded_folders: Vault-relative folders to skip (e.g. ["templates"])
            index_dir: Directory (relative to root) holding the index snapshot
        """
        self.root = Path(root)
        self.excluded_folders = [f.strip("/") for f in (excluded_folders or []) if f.strip("/")]
        self.index_path = self.root / index_dir
        # note_id -> normalized outgoing link targets
        self._links: Dict[str, Set[str]] = {}

    def note_path(self, note_id: str) -> Path:
        """Filesystem path of a note"""
        return self.root / PurePosixPath(note_id)

    def is_excluded(self, note_id: str) -> bool:
        return any(note_id.startswith(folder + "/") for folder in self.excluded_folders)

    def is_note_id(self, note_id: str) -> bool:
        """
        Whether note_id names a note note_ids() could list

        Rejects non-markdown files, hidden path parts (".obsidian/", the
        index dir, "..") and excluded folders, and anything resolving
        outside the vault root.
        """
        path = PurePosixPath(note_id)
        if path.is_absolute() or path.suffix != ".md":
            return False
        if any(part.startswith(".") for part in path.parts):
            return False
        if self.is_excluded(note_id):
            return False
        try:
            self.note_path(note_id).resolve().relative_to(self.root.resolve())
        except ValueError:
            return False
        return True

    def note_ids(self) -> List[str]:
        """All markdown notes in the vault, sorted by id"""
        ids = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            # Prune hidden directories (.obsidian, .git, index dir) in place
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for filename in filenames:
                if not filename.endswith(".md"):
                    continue
                path = Path(dirpath) / filename
                note_id = path.relative_to(self.root).as_posix()
                if self.is_note_id(note_id):
                    ids.append(note_id)
        return sorted(ids)

    async def list_documents(self) -> List[Tuple[str, str]]:
        """
        Read every note in the vault

        Returns:
            List of (note_id, raw_text); unreadable notes have empty text
        """
        note_ids = await asyncio.to_thread(self.note_ids)

        documents = []
        for note_id in note_ids:
            text = await asyncio.to_thread(self._read_text, note_id)
            documents.append((note_id, text or ""))

        # Drop link data of notes that disappeared since the last scan
        self._links = {note_id: self._links[note_id] for note_id in note_ids if note_id in self._links}

        logger.debug(f"Listed {len(documents)} notes under {self.root}")
        return documents

    async def read_document(self, note_id: str) -> Optional[str]:
        """
        Read one note

        Returns:
            Raw text, "" if unreadable, None if missing or not a note
        """
        if not self.is_note_id(note_id):
            logger.debug(f"Ignoring {note_id}: not a note of this vault")
            return None
        text = await asyncio.to_thread(self._read_text, note_id)
        if text is None:
            self._links.pop(note_id, None)
        return text

    async def read_snippet(self, note_id: str, max_length: int = 120) -> str:
        """Short preview of a note for digest entries"""
        if not self.is_note_id(note_id):
            return ""
        text = await asyncio.to_thread(self._read_text, note_id)
        return snippet(text or "", max_length)

    def modified_time(self, note_id: str) -> Optional[float]:
        try:
            return self.note_path(note_id).stat().st_mtime
        except OSError:
            return None

    def backlink_count(self, note_id: str) -> int:
        """
        Count distinct other notes linking to note_id

        Links match by vault path (with or without .md) or by note name,
        case-insensitively. Link data comes from the most recent reads.
        """
        path = PurePosixPath(note_id)
        names = {
            str(path.with_suffix("")).casefold(),
            path.stem.casefold(),
        }
        return sum(
            1 for source, targets in self._links.items()
            if source != note_id and targets & names
        )

    def forget(self, note_id: str):
        """Drop link data of a deleted or renamed note"""
        self._links.pop(note_id, None)

    async def load_snapshot(self) -> Optional[str]:
        """Load the persisted index snapshot (None if missing or unreadable)"""
        path = self.index_path / SNAPSHOT_FILENAME

        def read() -> Optional[str]:
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to read index snapshot {path}: {e}")
                return None

        return await asyncio.to_thread(read)

    async def save_snapshot(self, blob: str):
        """Persist the index snapshot (write to temp file, then replace)"""
        path = self.index_path / SNAPSHOT_FILENAME

        def write():
            self.index_path.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(blob, encoding="utf-8")
            os.replace(tmp_path, path)

        await asyncio.to_thread(write)
        logger.debug(f"Saved index snapshot to {path} ({len(blob)} bytes)")

    def _read_text(self, note_id: str) -> Optional[str]:
        """Helper: read a note and refresh its outgoing links"""
        path = self.note_path(note_id)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read note {note_id}: {e}")
            self._links.pop(note_id, None)
            return ""

        self._links[note_id] = extract_link_targets(text)
        return text
