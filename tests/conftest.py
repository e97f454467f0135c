"""Shared pytest configuration and fixtures"""

import os
import sys
import time
from pathlib import Path

import pytest

# Add project root to path for vault_recall imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

DAY = 24 * 60 * 60

# Fixed reference time for deterministic scoring tests
NOW = 1_750_000_000.0


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def write_note(tmp_path):
    """
    Write a markdown note into a temporary vault.

    Usage:
        write_note("ideas/a.md", "text", days_old=30)
    """
    def _write(note_id: str, text: str, days_old: float = 0.0, vault: Path = tmp_path) -> Path:
        path = vault / note_id
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        mtime = time.time() - days_old * DAY
        os.utime(path, (mtime, mtime))
        return path

    return _write
