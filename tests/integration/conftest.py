"""Shared fixtures for integration tests

Integration tests run the real FastAPI app (lifespan included) in-process
against a temporary vault on disk. NO MOCKS: real storage, real index,
real debouncers (with short delays).

    pytest tests/integration/
"""

import os
import tempfile
from pathlib import Path

import pytest

# main.py configures logging on import: keep session logs out of the repo
os.environ.setdefault("LOG_FILE", str(Path(tempfile.gettempdir()) / "vault-recall-tests" / "vault-recall.log"))

from fastapi.testclient import TestClient

from vault_recall import main

# Short debounce delays so tests don't wait seconds per change
INDEX_DEBOUNCE = 0.05
REFRESH_DEBOUNCE = 0.05


@pytest.fixture
def garden_vault(write_note, tmp_path):
    """
    Vault with one recent journal entry and older notes on mixed topics.

    journal.md is the only recent note (anchor of the daily digest).
    """
    write_note("journal.md", "compost soil mulch garden", days_old=0)
    write_note("garden.md", "compost soil tomatoes garden compost mulch", days_old=60)
    write_note("garden-2.md", "garden soil mulch watering tomatoes seedlings", days_old=30)
    write_note("kubernetes.md", "kubernetes cluster pods deployment", days_old=90)
    write_note("music.md", "guitar chords practice scales", days_old=45)
    write_note("cooking.md", "recipe basil pasta sauce", days_old=20)
    return tmp_path


@pytest.fixture
def api_client(monkeypatch):
    """
    Factory for a TestClient serving a given vault.

    Usage:
        with api_client(vault) as client:
            client.get("/health")
    """
    def _client(vault: Path) -> TestClient:
        monkeypatch.setattr(main, "VAULT_PATH", str(vault))
        monkeypatch.setattr(main, "EXCLUDED_FOLDERS", [])
        monkeypatch.setattr(main, "INDEX_DEBOUNCE_SECONDS", INDEX_DEBOUNCE)
        monkeypatch.setattr(main, "REFRESH_DEBOUNCE_SECONDS", REFRESH_DEBOUNCE)
        return TestClient(main.app)

    return _client
